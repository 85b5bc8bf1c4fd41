"""
Session: everything one debugging run owns.

A Session is an explicit value handed to every kernel operation. It owns the
tape, the cursor into the program text, the input queue and the output log,
plus the caller's entry context which is handed back untouched on terminate.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Iterable, List, Optional, Union

from .errors import StepError
from .scanner import find_next_instruction, bracket_pairs, line_and_column
from .schema import (
    ExecutionContext,
    OverflowMode,
    SessionSnapshot,
    SessionStatus,
    StepErrorRecord,
    StepperConfig,
)
from .tape import Tape

InputData = Union[bytes, bytearray, str, Iterable[int], None]


def coerce_input(data: InputData) -> List[int]:
    """Normalise caller input into a list of byte values."""
    if data is None:
        return []
    if isinstance(data, (bytes, bytearray)):
        return list(data)
    if isinstance(data, str):
        try:
            return list(data.encode("latin-1"))
        except UnicodeEncodeError as exc:
            raise ValueError(f"Input text must be single-byte characters: {exc}") from exc
    values = [int(value) for value in data]
    for value in values:
        if not 0 <= value <= 255:
            raise ValueError(f"Input byte out of range: {value}")
    return values


class Session:
    def __init__(
        self,
        program: str,
        input_data: InputData = None,
        config: Optional[StepperConfig] = None,
        entry_context: Any = None,
        context: Optional[ExecutionContext] = None,
    ) -> None:
        self.program = program
        self.config = config or StepperConfig()
        self.entry_context = entry_context
        self.context = context or ExecutionContext()
        self._initial_input = coerce_input(input_data)

        self.tape: Optional[Tape] = None
        self.cursor = len(program)
        self.input_queue: Deque[int] = deque()
        self.output_log: List[int] = []
        self.status = SessionStatus.TERMINATED
        self.error: Optional[StepErrorRecord] = None
        self.steps = 0

    @classmethod
    def start(
        cls,
        program: str,
        input_data: InputData = None,
        capacity: Optional[int] = None,
        overflow: Union[OverflowMode, str, None] = None,
        breakpoint: Optional[str] = None,
        config: Optional[StepperConfig] = None,
        entry_context: Any = None,
        context: Optional[ExecutionContext] = None,
        validate: bool = False,
    ) -> "Session":
        """
        Create a session and place the cursor on the first instruction.

        Explicit capacity/overflow/breakpoint override the values in `config`.
        With validate=True a program with unbalanced brackets is rejected here
        instead of at its first jump.
        """
        base = config or StepperConfig()
        overrides = {
            key: value
            for key, value in (
                ("capacity", capacity),
                ("overflow", overflow),
                ("breakpoint", breakpoint),
            )
            if value is not None
        }
        if overrides:
            base = StepperConfig(**{**base.model_dump(), **overrides})

        if validate:
            bracket_pairs(program)

        session = cls(program, input_data, base, entry_context=entry_context, context=context)
        session._reset()
        return session

    def _reset(self) -> None:
        self.tape = Tape(self.config.capacity, self.config.overflow)
        self.input_queue = deque(self._initial_input)
        self.output_log = []
        self.error = None
        self.steps = 0
        first = find_next_instruction(self.program, 0)
        self.cursor = len(self.program) if first is None else first
        self.status = SessionStatus.FINISHED if first is None else SessionStatus.RUNNING

    def restart(self) -> None:
        """Start over with the original program, input and configuration."""
        self._reset()

    def terminate(self) -> Any:
        """Release tape and queues and hand back the entry context."""
        self.tape = None
        self.input_queue = deque()
        self.output_log = []
        self.status = SessionStatus.TERMINATED
        return self.entry_context

    def halt(self, error: StepError) -> None:
        self.status = SessionStatus.HALTED
        self.error = StepErrorRecord(
            kind=error.kind,
            message=error.message,
            offset=error.offset,
            details=error.details,
        )

    @property
    def finished(self) -> bool:
        return self.cursor >= len(self.program)

    @property
    def current_instruction(self) -> Optional[str]:
        if self.finished:
            return None
        return self.program[self.cursor]

    @property
    def output_text(self) -> str:
        return bytes(self.output_log).decode("latin-1")

    def snapshot(self, window: Optional[int] = None) -> SessionSnapshot:
        """Capture the current state; `window` limits the tape to cells around the pointer."""
        line, column = line_and_column(self.program, self.cursor)
        if self.tape is None:
            pointer, cell, start, cells = 0, 0, 0, []
        else:
            pointer, cell = self.tape.pointer, self.tape.read()
            if window is None:
                start, cells = 0, list(self.tape.cells)
            else:
                start, cells = self.tape.window(window)

        return SessionSnapshot(
            program=self.program,
            cursor=self.cursor,
            instruction=self.current_instruction,
            line=line,
            column=column,
            pointer=pointer,
            cell=cell,
            capacity=self.config.capacity,
            tape_start=start,
            tape=cells,
            input_remaining=list(self.input_queue),
            output=list(self.output_log),
            output_text=self.output_text,
            overflow=self.config.overflow,
            breakpoint=self.config.breakpoint,
            status=self.status,
            steps=self.steps,
            error=self.error,
        )
