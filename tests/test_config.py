"""Tests for the Settings dataclass."""

from prompt_optimizer.config import Settings, gemini_api_key


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.engine == "mock"
        assert s.gemini_model == "gemini-2.5-flash"
        assert s.copy_reset_seconds == 2.0
        assert s.debug_ai is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_ENGINE", "openai")
        monkeypatch.setenv("LLM_MODEL", "gpt-test")
        monkeypatch.setenv("LLM_TIMEOUT", "30")
        monkeypatch.setenv("DEBUG_AI", "true")
        monkeypatch.setenv("PORT", "9001")
        s = Settings.from_env()
        assert s.engine == "openai"
        assert s.llm_model == "gpt-test"
        assert s.timeout == 30.0
        assert s.debug_ai is True
        assert s.port == 9001

    def test_unknown_engine_falls_back_to_mock(self, monkeypatch):
        monkeypatch.setenv("LLM_ENGINE", "llama")
        assert Settings.from_env().engine == "mock"

    def test_engine_inferred_from_credentials(self, monkeypatch):
        monkeypatch.delenv("LLM_ENGINE", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)
        monkeypatch.delenv("LLM_API_KEY", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        assert Settings.from_env().engine == "gemini"

        monkeypatch.delenv("GEMINI_API_KEY")
        assert Settings.from_env().engine == "mock"

        monkeypatch.setenv("LLM_API_KEY", "sk")
        assert Settings.from_env().engine == "openai"


def test_gemini_api_key_read_at_call_time(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    assert gemini_api_key() == ""
    monkeypatch.setenv("API_KEY", " k1 ")
    assert gemini_api_key() == "k1"
    monkeypatch.setenv("GEMINI_API_KEY", "k2")
    assert gemini_api_key() == "k2"
