import asyncio
import json
from pathlib import Path
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from sse_starlette.sse import EventSourceResponse

from prompt_optimizer.config import Settings
from prompt_optimizer.models import (
    OptimizeRequest, RenderedResult, ViewState,
    Language, Tone, Length, ContextMode, MultimodalMode,
)
from prompt_optimizer.ai.registry import EngineRegistry
from prompt_optimizer.session import OptimizerSession, SubmissionInProgress, InputIncompleteError

STATIC_DIR = Path(__file__).resolve().parent / "static"

def get_resource_path(relative_path: str) -> Path:
    return STATIC_DIR / relative_path

INDEX_HTML = get_resource_path("index.html").read_text(encoding="utf-8")

app = FastAPI(title="Prompt Optimizer Pro")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

settings = Settings.from_env()

# ── Engines (runtime-switchable) ─────────────────────────────────────
engines = EngineRegistry.from_settings(settings)

print(f"AI ENGINE SELECTED: {engines.active_name}")

session = OptimizerSession(
    lambda: engines.active,
    engine_name_provider=lambda: engines.active_name,
    copy_reset_seconds=settings.copy_reset_seconds,
)

DEBUG_AI = settings.debug_ai

# In-memory store for last debug payload
_last_debug_payload: dict | None = None


def _build_debug_payload() -> dict | None:
    """Capture the last request/response exchange, or None if debug is off."""
    global _last_debug_payload
    if not DEBUG_AI or session.last_exchange is None:
        return None
    exchange = session.last_exchange
    payload = {
        "engine_name": exchange["engine_name"],
        "final_system_prompt": exchange["system_prompt"],
        "final_user_prompt": exchange["user_prompt"],
        "generation_params": {"temperature": exchange["temperature"]},
        "latency_ms": exchange["latency_ms"],
        "token_estimate": (len(exchange["system_prompt"]) + len(exchange["user_prompt"])) // 4,
        "response_chars": len(exchange["response_text"]),
    }
    _last_debug_payload = payload
    return payload


@app.get("/", response_class=HTMLResponse)
async def index():
    return INDEX_HTML


@app.get("/options")
async def get_options():
    """Choices and defaults for the form controls."""
    defaults = {
        name: field.default
        for name, field in OptimizeRequest.model_fields.items()
        if not field.is_required()
    }
    return {
        "language": [e.value for e in Language],
        "tone": [e.value for e in Tone],
        "length": [e.value for e in Length],
        "context_mode": [e.value for e in ContextMode],
        "multimodal": [e.value for e in MultimodalMode],
        "defaults": defaults,
    }


@app.get("/state", response_model=ViewState)
async def get_state():
    return session.state


@app.post("/copy")
async def record_copy():
    """The page writes the returned payload to the clipboard and shows `copy_label` for `reset_ms`."""
    payload = session.copy()
    if payload is None:
        raise HTTPException(status_code=404, detail="Nothing to copy")
    return {
        "payload": payload,
        "copy_label": session.state.copy_label,
        "reset_ms": int(session.copy_reset_seconds * 1000),
    }


# ── Optimization ─────────────────────────────────────────────────────

@app.post("/optimize", response_model=RenderedResult)
async def optimize(req: OptimizeRequest):
    try:
        state = await session.submit(req)
    except SubmissionInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InputIncompleteError as e:
        raise HTTPException(status_code=422, detail=str(e))
    finally:
        _build_debug_payload()
    if state.error or state.result is None:
        raise HTTPException(status_code=502, detail=state.error)
    return state.result


async def _stream_events(req: OptimizeRequest):
    """Yield SSE events for one submission: `token` chunks, then a single `result` or `error`."""
    queue: asyncio.Queue = asyncio.Queue()

    async def on_chunk(chunk: str) -> None:
        await queue.put(chunk)

    task = asyncio.create_task(session.submit(req, on_chunk=on_chunk))
    task.add_done_callback(lambda _: _build_debug_payload())
    task.add_done_callback(lambda _: queue.put_nowait(None))

    while True:
        chunk = await queue.get()
        if chunk is None:
            break
        yield {"event": "token", "data": chunk}

    try:
        state = task.result()
    except (SubmissionInProgress, InputIncompleteError) as e:
        yield {"event": "error", "data": json.dumps({"detail": str(e)})}
        return

    if state.error or state.result is None:
        yield {"event": "error", "data": json.dumps({"detail": state.error})}
    else:
        yield {"event": "result", "data": state.result.model_dump_json()}


@app.post("/optimize/stream")
async def optimize_stream(req: OptimizeRequest):
    if not session.can_submit:
        raise HTTPException(status_code=409, detail="A generation is already in progress")
    return EventSourceResponse(_stream_events(req))


# ── AI Engine switching ──────────────────────────────────────────────

@app.get("/ai/engines")
async def list_engines():
    return engines.describe()

@app.post("/ai/engine")
async def set_engine(data: dict):
    name = data.get("engine")
    if not name:
        raise HTTPException(status_code=400, detail="Missing 'engine' field")
    try:
        engines.activate(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    print(f"[ENGINE] Switched active engine to: {name}")
    return {"active": name}


@app.get("/ai/debug")
async def get_debug_status():
    return {"enabled": DEBUG_AI}

@app.get("/ai/debug/last")
async def get_last_debug():
    return {"enabled": DEBUG_AI, "payload": _last_debug_payload}
