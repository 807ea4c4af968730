"""Shared fixtures: a scriptable fake engine and canned response bodies."""

import asyncio
import json
from typing import Optional

import pytest

from prompt_optimizer.ai_engine import AIEngine
from prompt_optimizer.models import OptimizeRequest

OPTIMIZED_PROMPT = "<ROLE>Senior analyst</ROLE>\n<TASK>Summarize the report</TASK>"

VALID_RESPONSE = json.dumps({
    "status": "ok",
    "summary": "Optimized prompt for Gemini 2.5 Pro.",
    "items": [
        {
            "title": "Optimized Prompt",
            "description": "Short summary",
            "details": {"kv_pairs": [
                {"key": "code", "value": OPTIMIZED_PROMPT},
                {"key": "notes", "value": "usage notes"},
            ]},
        },
        {"title": "Improvements and Guardrails", "description": "Added persona • Added format"},
        {"title": "Suggested Tests", "description": "A • B •  • C"},
    ],
    "actions": [{"label": "Copy prompt", "type": "copy", "payload": OPTIMIZED_PROMPT}],
    "debug": {"notes": "no sensitive data"},
})


class FakeEngine(AIEngine):
    """Records calls; optionally waits on a gate, raises, or streams a fixed body."""

    def __init__(self, response: str = VALID_RESPONSE, error: Optional[Exception] = None,
                 gate: Optional[asyncio.Event] = None):
        self.response = response
        self.error = error
        self.gate = gate
        self.calls: list[dict] = []

    async def generate_stream(self, system_prompt, user_prompt, *, response_schema=None, temperature=0.3):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "response_schema": response_schema,
            "temperature": temperature,
        })
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        for i in range(0, len(self.response), 50):
            yield self.response[i:i + 50]


@pytest.fixture
def params():
    return OptimizeRequest(input_prompt="Summarize this report")
