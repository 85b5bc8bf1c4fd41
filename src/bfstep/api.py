"""
HTTP API: stepping sessions over HTTP.

Exposes the StepperEngine so external clients (editor plugins, web
visualisers, other tools) can start sessions, step them and read their
state. Rendering stays entirely on the client side.

Run with: uvicorn bfstep.api:app --port 8000
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from .config import ConfigError, resolve_config
from .kernel.engine import StepperEngine
from .kernel.errors import StepError
from .kernel.schema import OverflowMode

# --- Configuration ---

TAPE_WINDOW = 32
MAX_CAPACITY = 1_000_000
MAX_STEP_LIMIT = 10_000_000

# --- Pydantic Models ---


class StartSessionRequest(BaseModel):
    """Request body for starting a session."""

    program: str
    input: str = ""
    capacity: Optional[int] = Field(default=None, gt=0, le=MAX_CAPACITY)
    overflow: Optional[OverflowMode] = None
    breakpoint: Optional[str] = None
    step_limit: Optional[int] = Field(default=None, gt=0, le=MAX_STEP_LIMIT)
    validate_brackets: bool = False
    entry_context: Optional[Dict[str, Any]] = None


class SessionListResponse(BaseModel):
    """Response containing the ids of live sessions."""

    sessions: List[str]
    count: int


# --- App ---

app = FastAPI(
    title="bfstep",
    description="Stepping interpreter for the 8-symbol byte-tape language",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = StepperEngine(window=TAPE_WINDOW)


@app.on_event("shutdown")
async def shutdown_engine():
    """Terminate any sessions still open when the server stops."""
    engine.close()


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok", "sessions": len(engine.list_sessions())}


@app.post("/sessions")
async def start_session(request: StartSessionRequest) -> Dict[str, Any]:
    """Start a session; returns its id and initial state."""
    try:
        config = resolve_config(
            capacity=request.capacity,
            overflow=request.overflow,
            breakpoint=request.breakpoint,
            step_limit=request.step_limit,
        )
    except (ValidationError, ConfigError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid configuration: {e}")

    try:
        session_id = engine.start_session(
            request.program,
            request.input,
            config=config,
            entry_context=request.entry_context,
            validate=request.validate_brackets,
        )
    except StepError as e:
        raise HTTPException(status_code=422, detail=f"{e.kind}: {e.message}")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"invalid_input: {e}")

    return {"session_id": session_id, "state": engine.snapshot(session_id)}


@app.get("/sessions", response_model=SessionListResponse)
async def list_sessions() -> SessionListResponse:
    sessions = engine.list_sessions()
    return SessionListResponse(sessions=sessions, count=len(sessions))


@app.get("/sessions/{session_id}")
async def get_session(session_id: str) -> Dict[str, Any]:
    try:
        return engine.snapshot(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@app.post("/sessions/{session_id}/{command}")
async def dispatch_command(session_id: str, command: str) -> Dict[str, Any]:
    """
    Run a stepping command (step, line, repeat, breakpoint, run, restart).

    Fatal stepping errors come back with ok=false and the halted state;
    only unknown sessions and commands are HTTP errors.
    """
    result = engine.dispatch(session_id, command)
    if result.error_kind == "session_not_found":
        raise HTTPException(status_code=404, detail=result.error_message)
    if result.error_kind == "command_not_found":
        raise HTTPException(status_code=400, detail=result.error_message)
    return result.to_dict()


@app.delete("/sessions/{session_id}")
async def terminate_session(session_id: str) -> Dict[str, Any]:
    result = engine.terminate(session_id)
    if not result.ok:
        raise HTTPException(status_code=404, detail=result.error_message)
    return result.to_dict()
