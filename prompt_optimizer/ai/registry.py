from __future__ import annotations

import logging
from typing import Dict, Optional

from prompt_optimizer.ai_engine import AIEngine, MockAIEngine, HTTPAIEngine, GeminiAIEngine
from prompt_optimizer.config import Settings

logger = logging.getLogger(__name__)


class EngineRegistry:
    """Named generation engines, one of which serves the optimizer at a time.

    All built-in engines are registered up front because credentials are read
    at call time; a missing key surfaces as a generation error, not a startup
    failure.
    """

    def __init__(self) -> None:
        self._engines: Dict[str, AIEngine] = {}
        self._active_name: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineRegistry":
        registry = cls()
        for engine in (MockAIEngine(), GeminiAIEngine(settings), HTTPAIEngine(settings)):
            registry.register(engine.engine_type, engine)
        registry.activate(settings.engine)
        return registry

    def register(self, name: str, engine: AIEngine) -> None:
        self._engines[name] = engine
        logger.info("Registered %s engine as %r", engine.engine_type, name)

    def activate(self, name: str) -> None:
        if name not in self._engines:
            raise ValueError(f"Unknown engine: {name!r}. Available: {sorted(self._engines)}")
        self._active_name = name
        logger.info("Optimizer now generates with %r", name)

    @property
    def active_name(self) -> str:
        if self._active_name is None:
            raise RuntimeError("No engine has been activated")
        return self._active_name

    @property
    def active(self) -> AIEngine:
        return self._engines[self.active_name]

    def describe(self) -> list[dict]:
        return [
            {
                "name": name,
                "type": engine.engine_type,
                "model": engine.model,
                "active": name == self._active_name,
            }
            for name, engine in self._engines.items()
        ]
