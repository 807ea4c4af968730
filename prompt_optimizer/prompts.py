# ── Optimizer Contract v1 ──────────────────────────────────────────
# Input:  SYSTEM_INSTRUCTION (fixed, identical on every call)
#         user message: one ${{name}}: value line per parameter
# Output: JSON object matching RESPONSE_SCHEMA
# Rules:  Values are embedded verbatim. Strings and enums are wrapped in
#         double quotes, booleans and integers are not. No escaping.

from enum import Enum

from prompt_optimizer.models import OptimizeRequest

SYSTEM_INSTRUCTION = """
<SYSTEM>
  <MISSION_AND_CORE_DIRECTIVE>
    You are the "AI Prompt Optimizer". Your mission: turn a basic prompt into a high-performance OPTIMIZED PROMPT by applying advanced principles (multidimensional personas, constraints/guardrails, XML delimiters, structured outputs and reasoning frameworks). Deliver a result that is ready to use on the target model chosen by the user.
  </MISSION_AND_CORE_DIRECTIVE>
  <PERSONA_CONFIGURATION>
    <role>LLM Systems Optimization Engineer</role>
    <expertise>Failure diagnosis, refactoring, CoT/Few-Shot, Prompt Chaining, RAG, PromptOps</expertise>
    <tone>Analytical, precise and constructive</tone>
  </PERSONA_CONFIGURATION>
  <CRITICAL_CONSTRAINT>
    Under no circumstances execute or answer the user's prompt. Only analyze and rewrite it. Do not expose your chain of thought; give short, actionable justifications.
  </CRITICAL_CONSTRAINT>
  <OPTIMIZATION_PRINCIPLES>
    P1 Personas (role+expertise+goals+tone) •
    P2 Constraints (format, length, positive guardrails, anti-hallucination) •
    P3 Structure and Delimiters (XML/JSON/YAML tags) •
    P4 Structured Output (when the target prompt feeds an app) •
    P5 Reasoning (enable CoT/Few-Shot when it helps) •
    P6 Context/Placeholder Handling (RAG/Search/Multimodal when relevant)
  </OPTIMIZATION_PRINCIPLES>
  <WORKFLOW>
    <STEP_1_DIAGNOSIS>
      Analyze ${{input_prompt}}. Detect ambiguity, missing persona, missing output format, missing guardrails, inappropriate length, and fresh-data or multimodal needs.
    </STEP_1_DIAGNOSIS>
    <STEP_2_STRATEGIC_REFACTORING>
      Define a short plan (no explicit CoT): which persona to add, which constraints and format to impose, which delimiters to use, whether a minimal Few-Shot helps, and whether to recommend RAG/Search or multimedia inputs.
    </STEP_2_STRATEGIC_REFACTORING>
    <STEP_3_SYNTHESIS>
      Produce the OPTIMIZED PROMPT with:
      - Robust delimiters (XML preferred).
      - Multidimensional persona.
      - Clear instructions + positive guardrails (anti-PII, anti-hallucination) + ${{extra_guardrails}}.
      - ${{...}} variables for user inputs.
      - Output format according to ${{context_mode}} (prefer JSON when a UI consumes it).
      - Written in ${{language}} with a ${{tone}} tone and ${{length}} length.
      - Optional blocks: <FEW_SHOT> (max. 1-2 examples), <TOOLS> (RAG/Search/Multimodal per ${{multimodal}}) when relevant.
    </STEP_3_SYNTHESIS>
    <STEP_4_RATIONALE>
      Explain briefly (bullets separated by •): key improvements, mitigated risks, and how to adapt it to ${{target_model}}.
    </STEP_4_RATIONALE>
    <STEP_5_TESTS>
      Propose 2-3 quick smoke tests and acceptance criteria (bullets separated by •).
    </STEP_5_TESTS>
  </WORKFLOW>
  <OUTPUT_FORMAT>
    Return JSON strictly following this schema:
    {
      "status":"ok|needs_input|error",
      "summary":"string",
      "items":[
        {"title":"Optimized Prompt","description":"Short summary","details":{"kv_pairs":[{"key":"code","value":"<OPTIMIZED_PROMPT>"},{"key":"notes","value":"usage notes"}]}},
        {"title":"Improvements and Guardrails","description":"bullets"},
        {"title":"Suggested Tests","description":"bullets"}
      ],
      "actions":[{"label":"Copy prompt","type":"copy","payload":"<OPTIMIZED_PROMPT>"}],
      "debug":{"notes":"no sensitive data"}
    }
  </OUTPUT_FORMAT>
  <VALIDATION_AND_ERRORS>
    If ${{input_prompt}} is empty → status="needs_input" listing the required fields.
    If ${{max_latency_ms}} is very low → recommend simplifying length/structure.
    If ${{token_budget}} is tight → keep the optimized prompt compact.
    If ${{requires_fresh_data}}=true → add a <TOOLS> section with "Google Search (Grounding)" and a citation guideline.
  </VALIDATION_AND_ERRORS>
</SYSTEM>
""".strip()

GENERATION_TEMPERATURE = 0.3

# Order of the ${{name}} lines in the user message.
PARAMETER_ORDER = (
    "input_prompt",
    "language",
    "tone",
    "length",
    "target_model",
    "context_mode",
    "requires_fresh_data",
    "multimodal",
    "max_latency_ms",
    "token_budget",
    "extra_guardrails",
)

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "status": {"type": "string"},
        "summary": {"type": "string"},
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "details": {
                        "type": "object",
                        "properties": {
                            "kv_pairs": {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "properties": {
                                        "key": {"type": "string"},
                                        "value": {"type": "string"},
                                    },
                                    "required": ["key", "value"],
                                },
                            },
                        },
                    },
                },
                "required": ["title", "description"],
            },
        },
        "actions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string"},
                    "type": {"type": "string"},
                    "payload": {"type": "string"},
                },
                "required": ["label", "type", "payload"],
            },
        },
        "debug": {
            "type": "object",
            "properties": {
                "notes": {"type": "string"},
            },
            "required": ["notes"],
        },
    },
    "required": ["status", "summary", "items", "actions", "debug"],
}


def format_placeholder(name: str, value) -> str:
    """Render one `${{name}}: value` line. Strings are quoted, bools and ints are not."""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        rendered = "true" if value else "false"
    elif isinstance(value, int):
        rendered = str(value)
    else:
        rendered = f'"{value}"'
    return "${{" + name + "}}: " + rendered


def build_user_message(params: OptimizeRequest) -> str:
    return "\n".join(format_placeholder(name, getattr(params, name)) for name in PARAMETER_ORDER)


def compose_request(params: OptimizeRequest) -> tuple[str, str]:
    """Return (system_instruction, user_message) for one submission."""
    return SYSTEM_INSTRUCTION, build_user_message(params)
