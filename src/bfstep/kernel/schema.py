from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Instruction(str, Enum):
    INC = "+"
    DEC = "-"
    LEFT = "<"
    RIGHT = ">"
    LOOP_START = "["
    LOOP_END = "]"
    OUTPUT = "."
    INPUT = ","


INSTRUCTIONS = frozenset(op.value for op in Instruction)

# Written into the cell by `,` once the input queue is exhausted.
EOF_SENTINEL = 255


class OverflowMode(str, Enum):
    WRAP = "wrap"
    CLAMP = "clamp"


class SessionStatus(str, Enum):
    RUNNING = "running"
    FINISHED = "finished"
    HALTED = "halted"
    TERMINATED = "terminated"


class StepKind(str, Enum):
    CONTINUED = "continued"
    TERMINATED = "terminated"


class StepperConfig(BaseModel):
    """Session-wide settings, fixed once a session has started."""

    capacity: int = Field(default=30000, gt=0)
    overflow: OverflowMode = OverflowMode.WRAP
    breakpoint: str = Field(default="@", min_length=1)
    step_limit: int = Field(default=100000, gt=0)

    model_config = ConfigDict(frozen=True)


class StepOutcome(BaseModel):
    kind: StepKind
    executed: str
    offset: int
    cursor: int

    @property
    def terminated(self) -> bool:
        return self.kind == StepKind.TERMINATED


class PolicyResult(BaseModel):
    """Summary of a compound stepping policy."""

    policy: str
    steps: int = 0
    outcome: Optional[StepOutcome] = None
    interrupted: bool = False


class StepErrorRecord(BaseModel):
    kind: str
    message: str
    offset: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class SessionSnapshot(BaseModel):
    """Pull-based view of a session, the whole contract a renderer consumes."""

    program: str
    cursor: int
    instruction: Optional[str] = None
    line: int
    column: int
    pointer: int
    cell: int
    capacity: int
    tape_start: int = 0
    tape: List[int] = Field(default_factory=list)
    input_remaining: List[int] = Field(default_factory=list)
    output: List[int] = Field(default_factory=list)
    output_text: str = ""
    overflow: OverflowMode
    breakpoint: str
    status: SessionStatus
    steps: int = 0
    error: Optional[StepErrorRecord] = None


class ExecutionContext(BaseModel):
    """Context handed to the VM on every step.

    The output_sink is the membrane between the stepping logic and whatever
    displays it. CLI passes print, the API and tests pass a list collector.
    """

    session_id: Optional[str] = None
    trace: bool = False

    output_sink: Optional[Callable[[str], None]] = Field(default=None, exclude=True)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def emit(self, content: str) -> None:
        """Write one line of session output; hosts without a sink get stdout."""
        sink = self.output_sink or print
        sink(content)

    def log(self, message: str) -> None:
        """Emit a trace line, only when tracing is enabled."""
        if self.trace:
            prefix = f"[{self.session_id}] " if self.session_id else ""
            self.emit(f"{prefix}{message}")
