"""
Tape Virtual Machine: executes one instruction per step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ExecutionTerminated, SessionHalted, StepError
from .scanner import find_matching_bracket, find_next_instruction
from .schema import EOF_SENTINEL, SessionStatus, StepKind, StepOutcome

if TYPE_CHECKING:
    from .session import Session


class TapeVM:
    def step(self, session: Session) -> StepOutcome:
        """
        Execute the instruction under the cursor and move to the next one.

        Returns:
            StepOutcome with kind CONTINUED (cursor on the next instruction)
            or TERMINATED (no instruction left, cursor at program end).

        Raises:
            SessionHalted: the session is halted or terminated.
            ExecutionTerminated: the cursor was already at program end.
            StepError: any fatal error of the executed instruction. The
                session is halted and the error recorded before re-raising.
        """
        if session.status in (SessionStatus.HALTED, SessionStatus.TERMINATED):
            raise SessionHalted(
                f"Session is {session.status.value}; restart it to keep stepping",
                offset=session.cursor,
            )

        program = session.program
        offset = session.cursor
        if offset >= len(program):
            raise ExecutionTerminated("Execution finished; nothing left to run", offset=offset)

        op = program[offset]
        try:
            scan_from = self._execute(session, op, offset)
        except StepError as exc:
            session.halt(exc)
            session.context.log(f"{offset:>5} {op} ✗ {exc.kind}: {exc.message}")
            raise

        session.steps += 1
        tape = session.tape
        session.context.log(f"{offset:>5} {op} ptr={tape.pointer} cell={tape.read()}")

        next_offset = find_next_instruction(program, scan_from)
        if next_offset is None:
            session.cursor = len(program)
            session.status = SessionStatus.FINISHED
            return StepOutcome(
                kind=StepKind.TERMINATED,
                executed=op,
                offset=offset,
                cursor=session.cursor,
            )

        session.cursor = next_offset
        return StepOutcome(kind=StepKind.CONTINUED, executed=op, offset=offset, cursor=next_offset)

    def _execute(self, session: Session, op: str, offset: int) -> int:
        """Apply one instruction; return the offset the next scan starts from."""
        tape = session.tape

        if op == "+":
            tape.increment()
        elif op == "-":
            tape.decrement()
        elif op == ">":
            tape.move_right(offset)
        elif op == "<":
            tape.move_left(offset)
        elif op == ".":
            session.output_log.append(tape.read())
        elif op == ",":
            tape.write(session.input_queue.popleft() if session.input_queue else EOF_SENTINEL)
        elif op == "[":
            if tape.read() == 0:
                return find_matching_bracket(session.program, offset) + 1
        elif op == "]":
            if tape.read() != 0:
                # Land on the opening bracket so it re-checks the cell next step
                return find_matching_bracket(session.program, offset)

        return offset + 1
