"""Presentation-layer session: owns the ViewState and the submission lifecycle.

One generation may be pending at a time. Every outcome replaces the previous
result wholesale; every failure collapses into GENERIC_ERROR_MESSAGE.
"""

from __future__ import annotations

import asyncio
import logging
from time import time
from typing import Awaitable, Callable, Optional

from prompt_optimizer.ai_engine import AIEngine, AILogger
from prompt_optimizer.models import OptimizeRequest, ViewState
from prompt_optimizer.prompts import GENERATION_TEMPERATURE, RESPONSE_SCHEMA, compose_request
from prompt_optimizer.renderer import render_response

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to generate prompt. Please check the server logs for more details."
COPY_LABEL = "Copy prompt"
COPIED_LABEL = "Copied!"


class SubmissionInProgress(RuntimeError):
    pass


class InputIncompleteError(ValueError):
    pass


class OptimizerSession:
    def __init__(
        self,
        engine_provider: Callable[[], AIEngine],
        *,
        engine_name_provider: Optional[Callable[[], str]] = None,
        copy_reset_seconds: float = 2.0,
    ) -> None:
        self._engine_provider = engine_provider
        self._engine_name_provider = engine_name_provider or (lambda: "engine")
        self.copy_reset_seconds = copy_reset_seconds
        self.state = ViewState(copy_label=COPY_LABEL)
        self.last_exchange: Optional[dict] = None
        self._copy_reset_handle: Optional[asyncio.TimerHandle] = None

    @property
    def can_submit(self) -> bool:
        return not self.state.pending

    async def submit(
        self,
        params: OptimizeRequest,
        on_chunk: Optional[Callable[[str], Awaitable[None]]] = None,
    ) -> ViewState:
        """Run the pipeline once. Raises before any network call when a
        submission is already pending or the prompt is empty."""
        if self.state.pending:
            raise SubmissionInProgress("A generation is already in progress")
        if not (params.input_prompt or "").strip():
            raise InputIncompleteError("input_prompt is required")

        system_prompt, user_prompt = compose_request(params)
        self.state = ViewState(form=params, pending=True, copy_label=COPY_LABEL)

        engine_name = "unknown"
        response_text = ""
        start = time()
        try:
            engine_name = self._engine_name_provider()
            engine = self._engine_provider()
            async for chunk in engine.generate_stream(
                system_prompt, user_prompt,
                response_schema=RESPONSE_SCHEMA, temperature=GENERATION_TEMPERATURE,
            ):
                response_text += chunk
                if on_chunk is not None:
                    await on_chunk(chunk)
            rendered = render_response(response_text)
        except Exception:
            logger.exception("Generation via %r failed", engine_name)
            AILogger.log_event(engine_name, time() - start, len(user_prompt), False)
            self.state = ViewState(form=params, error=GENERIC_ERROR_MESSAGE, copy_label=COPY_LABEL)
        else:
            AILogger.log_event(engine_name, time() - start, len(user_prompt), True)
            self.state = ViewState(form=params, result=rendered, copy_label=COPY_LABEL)
        finally:
            self.state.pending = False
            self.last_exchange = {
                "engine_name": engine_name,
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": GENERATION_TEMPERATURE,
                "latency_ms": int((time() - start) * 1000),
                "response_text": response_text,
            }
        return self.state

    def copy(self) -> Optional[str]:
        """Record a copy of the current payload and flip the label until the reset delay elapses.

        Returns the payload for the caller to place on the clipboard, or None
        when the current result has nothing to copy.
        """
        result = self.state.result
        payload = result.copy_payload if result else None
        if not payload:
            return None
        self.state.copy_label = COPIED_LABEL
        if self._copy_reset_handle is not None:
            self._copy_reset_handle.cancel()
        loop = asyncio.get_running_loop()
        self._copy_reset_handle = loop.call_later(self.copy_reset_seconds, self._reset_copy_label)
        return payload

    def _reset_copy_label(self) -> None:
        self._copy_reset_handle = None
        self.state.copy_label = COPY_LABEL
