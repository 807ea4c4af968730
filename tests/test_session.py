"""Tests for the submission lifecycle and copy action."""

import asyncio

import pytest

from prompt_optimizer.ai_engine import AIEngineError
from prompt_optimizer.models import OptimizeRequest
from prompt_optimizer.prompts import GENERATION_TEMPERATURE, RESPONSE_SCHEMA, SYSTEM_INSTRUCTION
from prompt_optimizer.session import (
    COPIED_LABEL,
    COPY_LABEL,
    GENERIC_ERROR_MESSAGE,
    InputIncompleteError,
    OptimizerSession,
    SubmissionInProgress,
)
from tests.conftest import OPTIMIZED_PROMPT, FakeEngine


def _session(engine, **kwargs):
    return OptimizerSession(lambda: engine, engine_name_provider=lambda: "fake", **kwargs)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_success(self, params):
        engine = FakeEngine()
        session = _session(engine)
        state = await session.submit(params)
        assert state.pending is False
        assert state.error is None
        assert state.result is not None
        assert len(state.result.blocks) == 3
        assert state.form == params

    @pytest.mark.asyncio
    async def test_call_shape(self, params):
        engine = FakeEngine()
        await _session(engine).submit(params)
        call = engine.calls[0]
        assert call["system_prompt"] == SYSTEM_INSTRUCTION
        assert call["user_prompt"].startswith('${{input_prompt}}: "Summarize this report"')
        assert call["response_schema"] is RESPONSE_SCHEMA
        assert call["temperature"] == GENERATION_TEMPERATURE == 0.3

    @pytest.mark.asyncio
    async def test_engine_failure_collapses_to_generic_error(self, params):
        session = _session(FakeEngine(error=AIEngineError("401 Unauthorized")))
        state = await session.submit(params)
        assert state.error == GENERIC_ERROR_MESSAGE
        assert state.result is None
        assert state.pending is False

    @pytest.mark.asyncio
    async def test_unexpected_failure_collapses_too(self, params):
        session = _session(FakeEngine(error=KeyError("candidates")))
        state = await session.submit(params)
        assert state.error == GENERIC_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_malformed_body_leaves_no_result(self, params):
        session = _session(FakeEngine())
        await session.submit(params)
        assert session.state.result is not None

        session._engine_provider = lambda: FakeEngine(response='{"status": "ok", "items": [')
        state = await session.submit(params)
        assert state.error == GENERIC_ERROR_MESSAGE
        assert state.result is None

    @pytest.mark.asyncio
    async def test_error_cleared_by_next_success(self, params):
        session = _session(FakeEngine(error=AIEngineError("boom")))
        await session.submit(params)
        session._engine_provider = lambda: FakeEngine()
        state = await session.submit(params)
        assert state.error is None
        assert state.result is not None

    @pytest.mark.asyncio
    async def test_empty_prompt_never_calls_engine(self):
        engine = FakeEngine()
        session = _session(engine)
        blank = OptimizeRequest.model_construct(**{**OptimizeRequest(input_prompt="x").model_dump(), "input_prompt": "   "})
        with pytest.raises(InputIncompleteError):
            await session.submit(blank)
        assert engine.calls == []
        assert session.state.pending is False

    @pytest.mark.asyncio
    async def test_resubmit_blocked_while_pending(self, params):
        gate = asyncio.Event()
        engine = FakeEngine(gate=gate)
        session = _session(engine)

        task = asyncio.create_task(session.submit(params))
        for _ in range(3):
            await asyncio.sleep(0)
        assert session.state.pending is True
        assert session.can_submit is False
        assert session.state.result is None

        with pytest.raises(SubmissionInProgress):
            await session.submit(params)

        gate.set()
        state = await task
        assert state.pending is False
        assert session.can_submit is True
        assert len(engine.calls) == 1

    @pytest.mark.asyncio
    async def test_pending_released_after_failure(self, params):
        session = _session(FakeEngine(error=AIEngineError("down")))
        await session.submit(params)
        assert session.can_submit is True

    @pytest.mark.asyncio
    async def test_engine_lookup_failure_allows_resubmit(self, params):
        def no_active_engine():
            raise RuntimeError("No engine has been activated")

        engine = FakeEngine()
        session = OptimizerSession(lambda: engine, engine_name_provider=no_active_engine)
        state = await session.submit(params)
        assert state.error == GENERIC_ERROR_MESSAGE
        assert state.pending is False
        assert session.last_exchange["engine_name"] == "unknown"

        session._engine_name_provider = lambda: "fake"
        state = await session.submit(params)
        assert state.error is None
        assert state.result is not None
        assert len(engine.calls) == 1

    @pytest.mark.asyncio
    async def test_streams_chunks(self, params):
        chunks: list[str] = []

        async def on_chunk(chunk: str) -> None:
            chunks.append(chunk)

        session = _session(FakeEngine())
        state = await session.submit(params, on_chunk=on_chunk)
        assert len(chunks) > 1
        assert state.result is not None

    @pytest.mark.asyncio
    async def test_last_exchange_recorded(self, params):
        session = _session(FakeEngine())
        await session.submit(params)
        assert session.last_exchange["engine_name"] == "fake"
        assert session.last_exchange["system_prompt"] == SYSTEM_INSTRUCTION
        assert session.last_exchange["response_text"]

    @pytest.mark.asyncio
    async def test_state_serializable(self, params):
        session = _session(FakeEngine())
        await session.submit(params)
        dumped = session.state.model_dump(mode="json")
        assert dumped["form"]["language"] == "es"
        assert dumped["result"]["blocks"][0]["kind"] == "code"


class TestCopy:
    @pytest.mark.asyncio
    async def test_returns_payload_and_reverts_label(self, params):
        session = _session(FakeEngine(), copy_reset_seconds=0.02)
        await session.submit(params)

        assert session.state.copy_label == COPY_LABEL
        assert session.copy() == OPTIMIZED_PROMPT
        assert session.state.copy_label == COPIED_LABEL

        await asyncio.sleep(0.1)
        assert session.state.copy_label == COPY_LABEL

    @pytest.mark.asyncio
    async def test_label_holds_until_delay(self, params):
        session = _session(FakeEngine(), copy_reset_seconds=5)
        await session.submit(params)
        session.copy()
        await asyncio.sleep(0.01)
        assert session.state.copy_label == COPIED_LABEL
        session._copy_reset_handle.cancel()

    @pytest.mark.asyncio
    async def test_no_result_no_copy(self):
        session = _session(FakeEngine())
        assert session.copy() is None
        assert session.state.copy_label == COPY_LABEL

    @pytest.mark.asyncio
    async def test_no_copy_action_no_copy(self, params):
        body = '{"status":"ok","summary":"s","items":[],"actions":[],"debug":{"notes":""}}'
        session = _session(FakeEngine(response=body))
        await session.submit(params)
        assert session.copy() is None
        assert session.state.copy_label == COPY_LABEL
