from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_TARGET_MODEL = "Gemini 2.5 Pro"
DEFAULT_MAX_LATENCY_MS = 2500
DEFAULT_TOKEN_BUDGET = 2000

class Language(str, Enum):
    ES = "es"
    EN = "en"
    FR = "fr"

class Tone(str, Enum):
    NEUTRAL = "neutral"
    TECHNICAL = "technical"
    CLOSE = "close"
    FORMAL = "formal"

class Length(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

class ContextMode(str, Enum):
    JSON = "json"
    XML = "xml"
    YAML = "yaml"
    NATURAL = "natural"

class MultimodalMode(str, Enum):
    NONE = "none"
    IMAGE_ANALYZE = "image-analyze"
    IMAGE_GENERATE = "image-generate"
    AUDIO = "audio"

class OptimizeRequest(BaseModel):
    """User configuration for one optimization run. Field order is the order
    the parameters are serialized into the user message."""

    input_prompt: str = Field(min_length=1)
    language: Language = Language.ES
    tone: Tone = Tone.NEUTRAL
    length: Length = Length.MEDIUM
    target_model: str = DEFAULT_TARGET_MODEL
    context_mode: ContextMode = ContextMode.NATURAL
    requires_fresh_data: bool = False
    multimodal: MultimodalMode = MultimodalMode.NONE
    max_latency_ms: int = Field(default=DEFAULT_MAX_LATENCY_MS, ge=100, le=120000)
    token_budget: int = Field(default=DEFAULT_TOKEN_BUDGET, ge=64, le=32768)
    extra_guardrails: str = ""

    @field_validator("input_prompt")
    @classmethod
    def _require_prompt_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("input_prompt is required")
        return v

class ResultBlock(BaseModel):
    title: str
    kind: str  # 'code' | 'bullets'
    code: Optional[str] = None
    bullets: List[str] = Field(default_factory=list)

class RenderedResult(BaseModel):
    status: str = ""
    summary: str = ""
    blocks: List[ResultBlock] = Field(default_factory=list)
    copy_payload: Optional[str] = None
    debug_notes: str = ""

class ViewState(BaseModel):
    form: Optional[OptimizeRequest] = None
    pending: bool = False
    error: Optional[str] = None
    result: Optional[RenderedResult] = None
    copy_label: str = ""
