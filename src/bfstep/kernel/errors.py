"""
Fatal stepping errors.

Every error is fatal to the session that raised it. The kernel raises, the
session records a StepErrorRecord and halts, and hosts translate the error
kind into a DispatchResult.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StepError(Exception):
    """Base class for all fatal stepping errors."""

    kind = "step_error"

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.details = details or {}


class MemoryLimitExceeded(StepError):
    """`>` would move the pointer past the last tape cell."""

    kind = "memory_limit_exceeded"


class PointerUnderflow(StepError):
    """`<` would move the pointer below cell 0."""

    kind = "pointer_underflow"


class MalformedProgram(StepError):
    """A bracket has no structurally matching counterpart."""

    kind = "malformed_program"


class ExecutionTerminated(StepError):
    """Stepping was attempted after the cursor reached the end of the program."""

    kind = "execution_terminated"


class SessionHalted(StepError):
    """Stepping was attempted on a halted or terminated session."""

    kind = "session_halted"
