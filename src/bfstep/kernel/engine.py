"""
StepperEngine: the single entry point for every host.

CLI, HTTP API and library callers all drive sessions through dispatch().
The engine owns a registry of live sessions, resolves command names and
aliases, and normalises results and errors into a DispatchResult.

Architecture:
    CLI ────┐
    API ────┼──> StepperEngine.dispatch() ──> Stepping Controller ──> TapeVM
    Lib ────┘
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .errors import StepError
from .schema import ExecutionContext, StepperConfig
from .session import InputData, Session
from .stepping import line_step, repeat_run, run_to_breakpoint, run_to_end, single_step
from .vm import TapeVM


class Command(Enum):
    """Stepping commands a host can dispatch."""
    STEP = "step"
    LINE = "line"
    REPEAT = "repeat"
    BREAKPOINT = "breakpoint"
    RUN = "run"
    RESTART = "restart"


COMMAND_ALIASES: Dict[str, Command] = {
    "s": Command.STEP,
    "n": Command.LINE,
    "next": Command.LINE,
    "r": Command.REPEAT,
    "b": Command.BREAKPOINT,
    "c": Command.RUN,
    "continue": Command.RUN,
    "reset": Command.RESTART,
}


@dataclass
class DispatchResult:
    """What a host gets back from dispatch() or terminate().

    error_kind and error_message are only set when ok is False.
    """
    ok: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; the error fields are left out of successful results."""
        if self.ok:
            return {"ok": True, "data": self.data}
        return {
            "ok": False,
            "data": self.data,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


def resolve_command(name: str) -> Optional[Command]:
    """Resolve a full command name or one of its aliases."""
    key = name.strip().lower()
    try:
        return Command(key)
    except ValueError:
        return COMMAND_ALIASES.get(key)


class StepperEngine:
    """
    Registry of live sessions plus command dispatch.

    All registry access and every command run under one engine lock, so
    concurrent hosts (the HTTP API's worker threads) see each command
    execute to completion before the next one starts.

    Example:
        engine = StepperEngine()
        sid = engine.start_session("+++.", b"")
        result = engine.dispatch(sid, "run")
    """

    def __init__(self, config: Optional[StepperConfig] = None, window: Optional[int] = None):
        """
        Args:
            config: Defaults for sessions started without their own config.
            window: Number of tape cells included in snapshots (None = whole tape).
        """
        self.config = config or StepperConfig()
        self.window = window
        self._sessions: Dict[str, Session] = {}
        self._vm = TapeVM()
        self._lock = threading.RLock()

    def start_session(
        self,
        program: str,
        input_data: InputData = None,
        config: Optional[StepperConfig] = None,
        entry_context: Any = None,
        output_sink: Optional[Callable[[str], None]] = None,
        trace: bool = False,
        validate: bool = False,
    ) -> str:
        """Start a session and return its id."""
        session_id = f"session-{uuid.uuid4()}"
        context = ExecutionContext(session_id=session_id, trace=trace, output_sink=output_sink)
        session = Session.start(
            program,
            input_data,
            config=config or self.config,
            entry_context=entry_context,
            context=context,
            validate=validate,
        )
        with self._lock:
            self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> Session:
        with self._lock:
            return self._sessions[session_id]

    def list_sessions(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def snapshot(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            return self._sessions[session_id].snapshot(self.window).model_dump(mode="json")

    def dispatch(
        self,
        session_id: str,
        command: str,
        output_sink: Optional[Callable[[str], None]] = None,
    ) -> DispatchResult:
        """
        Resolve a command and run it against a session.

        Args:
            session_id: Id returned by start_session.
            command: Command name or alias (see COMMAND_ALIASES).
            output_sink: Replaces the session's sink for trace output.

        Returns:
            DispatchResult whose data holds the policy summary and snapshot,
            also on fatal stepping errors.
        """
        resolved = resolve_command(command)

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return DispatchResult(
                    ok=False,
                    error_kind="session_not_found",
                    error_message=f"No such session: {session_id}",
                )

            if resolved is None:
                return DispatchResult(
                    ok=False,
                    error_kind="command_not_found",
                    error_message=f"Could not resolve command: {command}",
                )

            if output_sink is not None:
                session.context.output_sink = output_sink

            try:
                summary = self._run(session, resolved)
            except StepError as exc:
                return DispatchResult(
                    ok=False,
                    data={"command": resolved.value, "state": self.snapshot(session_id)},
                    error_kind=exc.kind,
                    error_message=exc.message,
                )

            return DispatchResult(
                ok=True,
                data={"command": resolved.value, "result": summary, "state": self.snapshot(session_id)},
            )

    def _run(self, session: Session, command: Command) -> Dict[str, Any]:
        limit = session.config.step_limit

        if command == Command.STEP:
            outcome = single_step(session, self._vm)
            return {"policy": "step", "steps": 1, "outcome": outcome.model_dump(mode="json"), "interrupted": False}
        if command == Command.LINE:
            return line_step(session, self._vm, step_limit=limit).model_dump(mode="json")
        if command == Command.REPEAT:
            return repeat_run(session, self._vm, step_limit=limit).model_dump(mode="json")
        if command == Command.BREAKPOINT:
            return run_to_breakpoint(session, vm=self._vm, step_limit=limit).model_dump(mode="json")
        if command == Command.RUN:
            return run_to_end(session, self._vm, step_limit=limit).model_dump(mode="json")

        session.restart()
        return {"policy": "restart", "steps": 0, "outcome": None, "interrupted": False}

    def terminate(self, session_id: str) -> DispatchResult:
        """End a session and hand back its entry context."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return DispatchResult(
                    ok=False,
                    error_kind="session_not_found",
                    error_message=f"No such session: {session_id}",
                )
            return DispatchResult(ok=True, data={"entry_context": session.terminate()})

    def close(self) -> None:
        """Terminate every live session."""
        with self._lock:
            for session in self._sessions.values():
                session.terminate()
            self._sessions.clear()
