"""
Kernel: the stepping machinery.

- schema: data structures (config, snapshots, outcomes)
- errors: the fatal error taxonomy
- tape: byte tape and overflow policy
- scanner: instruction scanning and bracket matching
- vm: single-step execution
- session: session lifecycle
- stepping: compound stepping policies
- runner: run-to-completion
- engine: session registry and command dispatch
"""
from .errors import (
    ExecutionTerminated,
    MalformedProgram,
    MemoryLimitExceeded,
    PointerUnderflow,
    SessionHalted,
    StepError,
)
from .schema import (
    ExecutionContext,
    Instruction,
    OverflowMode,
    PolicyResult,
    SessionSnapshot,
    SessionStatus,
    StepOutcome,
    StepperConfig,
)
from .scanner import find_matching_bracket, find_next_instruction
from .tape import Tape
from .session import Session
from .vm import TapeVM
from .stepping import line_step, repeat_run, run_to_breakpoint, run_to_end, single_step
from .engine import DispatchResult, StepperEngine

__all__ = [
    # Errors
    "StepError",
    "MemoryLimitExceeded",
    "PointerUnderflow",
    "MalformedProgram",
    "ExecutionTerminated",
    "SessionHalted",
    # Schema
    "ExecutionContext",
    "Instruction",
    "OverflowMode",
    "PolicyResult",
    "SessionSnapshot",
    "SessionStatus",
    "StepOutcome",
    "StepperConfig",
    # Scanner
    "find_next_instruction",
    "find_matching_bracket",
    # Tape / Session / VM
    "Tape",
    "Session",
    "TapeVM",
    # Stepping
    "single_step",
    "line_step",
    "repeat_run",
    "run_to_breakpoint",
    "run_to_end",
    # Engine
    "StepperEngine",
    "DispatchResult",
]
