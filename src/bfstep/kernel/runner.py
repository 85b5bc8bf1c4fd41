"""
Program Runner: run-to-completion for the CLI and library callers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import StepError
from .schema import ExecutionContext, StepperConfig
from .session import InputData, Session
from .stepping import run_to_end
from .vm import TapeVM


def run_program(
    program: str,
    input_data: InputData = None,
    config: Optional[StepperConfig] = None,
    output_sink: Optional[Callable[[str], None]] = None,
    trace: bool = False,
    validate: bool = False,
) -> Dict[str, Any]:
    """
    Execute a program to completion.

    Returns the output and final state, or an error dictionary carrying the
    error kind and the state the session halted in.
    """
    config = config or StepperConfig()
    context = ExecutionContext(trace=trace, output_sink=output_sink)

    try:
        session = Session.start(program, input_data, config=config, context=context, validate=validate)
    except StepError as exc:
        return {
            "status": "error",
            "error_kind": exc.kind,
            "error_message": exc.message,
            "offset": exc.offset,
        }
    except ValueError as exc:
        return {
            "status": "error",
            "error_kind": "invalid_input",
            "error_message": str(exc),
        }

    try:
        result = run_to_end(session, TapeVM(), step_limit=config.step_limit)
    except StepError as exc:
        return {
            "status": "error",
            "error_kind": exc.kind,
            "error_message": exc.message,
            "offset": exc.offset,
            "state": session.snapshot(window=16).model_dump(mode="json"),
        }

    if result.interrupted:
        return {
            "status": "error",
            "error_kind": "step_limit_exceeded",
            "error_message": f"Stopped after {result.steps} steps without finishing",
            "offset": session.cursor,
            "state": session.snapshot(window=16).model_dump(mode="json"),
        }

    return {
        "status": "success",
        "output": list(session.output_log),
        "output_text": session.output_text,
        "steps": session.steps,
        "pointer": session.tape.pointer,
    }


def execute_file(
    path: str,
    input_data: InputData = None,
    config: Optional[StepperConfig] = None,
    output_sink: Optional[Callable[[str], None]] = None,
    trace: bool = False,
    validate: bool = False,
) -> Dict[str, Any]:
    """Load a program from disk and run it to completion."""
    source = Path(path)
    if not source.exists():
        return {
            "status": "error",
            "error_kind": "program_not_found",
            "error_message": f"Program not found: {path}",
        }

    return run_program(
        source.read_text(encoding="utf-8"),
        input_data,
        config=config,
        output_sink=output_sink,
        trace=trace,
        validate=validate,
    )
