"""Environment-driven configuration."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_ENGINES = ("gemini", "openai", "mock")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def gemini_api_key() -> str:
    """Read the Gemini credential at call time (GEMINI_API_KEY, then API_KEY)."""
    return (os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "").strip()


def llm_api_key() -> str:
    return os.getenv("LLM_API_KEY", "").strip()


def _default_engine() -> str:
    if gemini_api_key():
        return "gemini"
    if llm_api_key():
        return "openai"
    return "mock"


@dataclass
class Settings:
    engine: str = "mock"
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    timeout: float = 120.0
    debug_ai: bool = False
    copy_reset_seconds: float = 2.0
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        engine = os.getenv("LLM_ENGINE", "").strip().lower() or _default_engine()
        if engine not in SUPPORTED_ENGINES:
            print(f"[CONFIG] Unsupported LLM_ENGINE={engine!r}, falling back to 'mock'")
            engine = "mock"
        return cls(
            engine=engine,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            gemini_base_url=os.getenv(
                "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
            ),
            llm_base_url=os.getenv("LLM_BASE_URL", "https://api.openai.com/v1"),
            llm_model=os.getenv("LLM_MODEL", "gpt-4o-mini"),
            timeout=float(os.getenv("LLM_TIMEOUT", "120")),
            debug_ai=_env_flag("DEBUG_AI"),
            copy_reset_seconds=float(os.getenv("COPY_RESET_SECONDS", "2.0")),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
        )
