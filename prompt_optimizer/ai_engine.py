import json
import asyncio
import re
import httpx
from abc import ABC, abstractmethod
from typing import AsyncGenerator

from prompt_optimizer.config import Settings, gemini_api_key, llm_api_key
from prompt_optimizer.prompts import GENERATION_TEMPERATURE

class AIEngineError(Exception):
    """Any failure of the generation call: network, auth, or a non-conforming upstream reply."""

class AILogger:
    @staticmethod
    def log_event(engine_name: str, duration: float, request_size: int, is_valid: bool):
        status = "SUCCESS" if is_valid else "FAILED/INVALID"
        print(f"[AI_TRACE] Engine: {engine_name} | Latency: {duration:.2f}s | Req: {request_size} chars | Status: {status}")

class AIEngine(ABC):
    engine_type = "custom"
    model: str | None = None

    @abstractmethod
    def generate_stream(
        self, system_prompt: str, user_prompt: str, *,
        response_schema: dict | None = None,
        temperature: float = GENERATION_TEMPERATURE,
    ) -> AsyncGenerator[str, None]:
        pass

    async def generate(
        self, system_prompt: str, user_prompt: str, *,
        response_schema: dict | None = None,
        temperature: float = GENERATION_TEMPERATURE,
    ) -> str:
        """Run one generation and return the full response body."""
        full_response = ""
        async for chunk in self.generate_stream(
            system_prompt, user_prompt,
            response_schema=response_schema, temperature=temperature,
        ):
            full_response += chunk
        return full_response


def to_gemini_schema(schema: dict) -> dict:
    """Convert a JSON-Schema style dict to the Gemini `Schema` dialect (upper-case types)."""
    out: dict = {}
    for key, value in schema.items():
        if key == "type":
            out["type"] = str(value).upper()
        elif key == "properties":
            out["properties"] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items":
            out["items"] = to_gemini_schema(value)
        elif key in ("required", "enum", "description", "nullable", "format"):
            out[key] = value
    return out


class MockAIEngine(AIEngine):
    """Offline engine. Returns a schema-conforming optimization built from the user message."""

    engine_type = "mock"

    _PROMPT_RE = re.compile(r'\$\{\{input_prompt\}\}: "(.*?)"\n\$\{\{language\}\}', re.S)
    _FIELD_RE = r'\$\{\{%s\}\}: "?(.*?)"?$'

    def _field(self, user_prompt: str, name: str, default: str = "") -> str:
        m = re.search(self._FIELD_RE % re.escape(name), user_prompt, re.M)
        return m.group(1) if m else default

    def _build_response(self, system_prompt: str, user_prompt: str) -> str:
        m = self._PROMPT_RE.search(user_prompt)
        draft = m.group(1).strip() if m else ""
        if not draft:
            return json.dumps({
                "status": "needs_input",
                "summary": "The original prompt is empty.",
                "items": [{"title": "Required Fields", "description": "input_prompt"}],
                "actions": [],
                "debug": {"notes": "mock engine"},
            })

        target_model = self._field(user_prompt, "target_model", "the target model")
        tone = self._field(user_prompt, "tone", "neutral")
        context_mode = self._field(user_prompt, "context_mode", "natural")
        fresh = self._field(user_prompt, "requires_fresh_data", "false") == "true"

        optimized = (
            "<ROLE>Domain expert assistant</ROLE>\n"
            f"<TASK>{draft}</TASK>\n"
            f"<TONE>{tone}</TONE>\n"
            f"<OUTPUT_FORMAT>{context_mode}</OUTPUT_FORMAT>\n"
            "<GUARDRAILS>Do not invent facts. Ask for missing inputs.</GUARDRAILS>"
        )
        if fresh:
            optimized += "\n<TOOLS>Google Search (Grounding): cite every source.</TOOLS>"

        return json.dumps({
            "status": "ok",
            "summary": f"Optimized prompt for {target_model}.",
            "items": [
                {
                    "title": "Optimized Prompt",
                    "description": "Mock optimization",
                    "details": {"kv_pairs": [
                        {"key": "code", "value": optimized},
                        {"key": "notes", "value": "Connect a real LLM engine for actual results."},
                    ]},
                },
                {"title": "Improvements and Guardrails",
                 "description": "Added persona • Added delimiters • Added anti-hallucination guardrail"},
                {"title": "Suggested Tests",
                 "description": "Run with a typical input • Run with an empty input"},
            ],
            "actions": [{"label": "Copy prompt", "type": "copy", "payload": optimized}],
            "debug": {"notes": "mock engine"},
        })

    async def generate_stream(
        self, system_prompt: str, user_prompt: str, *,
        response_schema: dict | None = None,
        temperature: float = GENERATION_TEMPERATURE,
    ) -> AsyncGenerator[str, None]:
        response_text = self._build_response(system_prompt, user_prompt)
        for i in range(0, len(response_text), 64):
            yield response_text[i:i+64]
            await asyncio.sleep(0)

class HTTPAIEngine(AIEngine):
    """OpenAI-compatible /chat/completions engine with json_schema response format."""

    engine_type = "openai"

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        settings = settings or Settings.from_env()
        self.base_url = settings.llm_base_url.rstrip("/")
        self.model = settings.llm_model
        self.timeout = settings.timeout
        self._transport = transport

    async def generate_stream(
        self, system_prompt: str, user_prompt: str, *,
        response_schema: dict | None = None,
        temperature: float = GENERATION_TEMPERATURE,
    ) -> AsyncGenerator[str, None]:
        api_key = llm_api_key()
        if not api_key:
            raise AIEngineError("LLM_API_KEY is not configured")
        payload = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, {"role": "user", "content": user_prompt}],
            "stream": True,
            "temperature": temperature,
        }
        if response_schema is not None:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "optimizer_result", "schema": response_schema},
            }
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async with client.stream("POST", f"{self.base_url}/chat/completions", json=payload, headers=headers) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", "replace")[:400]
                        raise AIEngineError(f"HTTP {response.status_code}: {body}")
                    async for line in response.aiter_lines():
                        if not line.startswith("data: ") or line == "data: [DONE]":
                            continue
                        try:
                            chunk = json.loads(line[6:])
                            content = chunk["choices"][0].get("delta", {}).get("content", "")
                        except (json.JSONDecodeError, KeyError, IndexError):
                            continue
                        if content:
                            yield content
        except httpx.ReadTimeout as e:
            raise AIEngineError(f"LLM request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise AIEngineError(str(e)) from e

class GeminiAIEngine(AIEngine):
    """Google Generative Language REST engine (streamGenerateContent over SSE)."""

    engine_type = "gemini"

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        settings = settings or Settings.from_env()
        self.base_url = settings.gemini_base_url.rstrip("/")
        self.model = settings.gemini_model
        self.timeout = settings.timeout
        self._transport = transport

    @staticmethod
    def _extract_text(chunk: dict) -> str:
        parts = []
        for candidate in chunk.get("candidates") or []:
            for part in (candidate.get("content") or {}).get("parts") or []:
                text = part.get("text")
                if text:
                    parts.append(text)
        return "".join(parts)

    async def generate_stream(
        self, system_prompt: str, user_prompt: str, *,
        response_schema: dict | None = None,
        temperature: float = GENERATION_TEMPERATURE,
    ) -> AsyncGenerator[str, None]:
        api_key = gemini_api_key()
        if not api_key:
            raise AIEngineError("GEMINI_API_KEY is not configured")
        generation_config: dict = {"temperature": temperature}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = to_gemini_schema(response_schema)
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": generation_config,
        }
        url = f"{self.base_url}/models/{self.model}:streamGenerateContent"
        headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async with client.stream("POST", url, params={"alt": "sse"}, json=payload, headers=headers) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", "replace")[:400]
                        raise AIEngineError(f"Gemini HTTP {response.status_code}: {body}")
                    async for line in response.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        try:
                            chunk = json.loads(line[6:])
                        except json.JSONDecodeError:
                            continue
                        text = self._extract_text(chunk)
                        if text:
                            yield text
        except httpx.ReadTimeout as e:
            raise AIEngineError(f"Gemini request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise AIEngineError(str(e)) from e
