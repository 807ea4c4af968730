"""Parse a generation response body and map it onto presentational blocks.

Rendering rules:
  - an item whose details.kv_pairs holds a `code` entry becomes a `code` block
    carrying that value (the copy action is attached to it by the page);
  - any other item becomes a `bullets` block: description split on `•`,
    segments trimmed, empty segments dropped.
Other kv-pair keys (e.g. `notes`) are not rendered.

The parsed body is not re-validated against RESPONSE_SCHEMA; only JSON
parsing is enforced, plus a top-level object check.
"""

import json
from typing import Any, Optional

from prompt_optimizer.models import RenderedResult, ResultBlock

BULLET_SEPARATOR = "•"
CODE_KEY = "code"
COPY_ACTION_TYPE = "copy"


class ResultParseError(ValueError):
    """Response body is not a JSON object."""


def parse_result(text: str) -> dict:
    try:
        data = json.loads((text or "").strip())
    except json.JSONDecodeError as e:
        raise ResultParseError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ResultParseError(f"Response JSON must be an object, got {type(data).__name__}")
    return data


def split_bullets(description: str) -> list[str]:
    return [seg.strip() for seg in (description or "").split(BULLET_SEPARATOR) if seg.strip()]


def find_code_value(item: dict) -> Optional[str]:
    details = item.get("details") or {}
    for pair in details.get("kv_pairs") or []:
        if isinstance(pair, dict) and pair.get("key") == CODE_KEY:
            return str(pair.get("value", ""))
    return None


def find_copy_payload(actions: list[Any]) -> Optional[str]:
    for action in actions or []:
        if isinstance(action, dict) and action.get("type") == COPY_ACTION_TYPE:
            payload = action.get("payload")
            return payload if payload else None
    return None


def render_item(item: dict) -> ResultBlock:
    title = str(item.get("title", ""))
    code = find_code_value(item)
    if code is not None:
        return ResultBlock(title=title, kind="code", code=code)
    return ResultBlock(title=title, kind="bullets", bullets=split_bullets(str(item.get("description", ""))))


def render_result(result: dict) -> RenderedResult:
    debug = result.get("debug")
    return RenderedResult(
        status=str(result.get("status", "")),
        summary=str(result.get("summary", "")),
        blocks=[render_item(item) for item in result.get("items") or [] if isinstance(item, dict)],
        copy_payload=find_copy_payload(result.get("actions") or []),
        debug_notes=str(debug.get("notes", "")) if isinstance(debug, dict) else "",
    )


def render_response(text: str) -> RenderedResult:
    return render_result(parse_result(text))
