"""
Stepping Controller: compound stepping policies built from single steps.

Every policy is an ordinary loop over TapeVM.step with a stopping predicate.
The iter_* variants yield after each executed instruction so a caller can
abandon a policy between any two steps; the plain variants drive the
iterator to its end (or to an optional step budget) and summarise it.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional

from .scanner import line_end
from .schema import PolicyResult, SessionStatus, StepOutcome
from .session import Session
from .vm import TapeVM

Predicate = Callable[[], bool]


def _step_while(session: Session, vm: TapeVM, keep_going: Predicate) -> Iterator[StepOutcome]:
    if session.status != SessionStatus.RUNNING:
        # Finished, halted and terminated sessions raise from the VM
        vm.step(session)
    while keep_going():
        outcome = vm.step(session)
        yield outcome
        if outcome.terminated:
            return


def _drive(
    policy: str,
    steps: Iterator[StepOutcome],
    keep_going: Predicate,
    step_limit: Optional[int],
) -> PolicyResult:
    result = PolicyResult(policy=policy)
    for outcome in steps:
        result.steps += 1
        result.outcome = outcome
        if step_limit is not None and result.steps >= step_limit:
            result.interrupted = not outcome.terminated and keep_going()
            break
    return result


def _line_predicate(session: Session) -> Predicate:
    limit = line_end(session.program, session.cursor)
    return lambda: session.cursor < limit


def _repeat_predicate(session: Session) -> Predicate:
    op = session.current_instruction
    return lambda: session.current_instruction == op


def breakpoint_limit(session: Session, marker: Optional[str] = None) -> int:
    """Offset of the next breakpoint marker at or after the cursor, else program end."""
    marker = marker or session.config.breakpoint
    found = session.program.find(marker, session.cursor)
    return len(session.program) if found == -1 else found


def _breakpoint_predicate(session: Session, marker: Optional[str]) -> Predicate:
    limit = breakpoint_limit(session, marker)
    return lambda: session.cursor < limit


def _always() -> bool:
    return True


def single_step(session: Session, vm: Optional[TapeVM] = None) -> StepOutcome:
    return (vm or TapeVM()).step(session)


def iter_line_step(session: Session, vm: Optional[TapeVM] = None) -> Iterator[StepOutcome]:
    return _step_while(session, vm or TapeVM(), _line_predicate(session))


def iter_repeat_run(session: Session, vm: Optional[TapeVM] = None) -> Iterator[StepOutcome]:
    return _step_while(session, vm or TapeVM(), _repeat_predicate(session))


def iter_run_to_breakpoint(
    session: Session,
    marker: Optional[str] = None,
    vm: Optional[TapeVM] = None,
) -> Iterator[StepOutcome]:
    return _step_while(session, vm or TapeVM(), _breakpoint_predicate(session, marker))


def iter_run_to_end(session: Session, vm: Optional[TapeVM] = None) -> Iterator[StepOutcome]:
    return _step_while(session, vm or TapeVM(), _always)


def line_step(
    session: Session,
    vm: Optional[TapeVM] = None,
    step_limit: Optional[int] = None,
) -> PolicyResult:
    """Run every instruction up to the end of the line the cursor starts on."""
    keep_going = _line_predicate(session)
    steps = _step_while(session, vm or TapeVM(), keep_going)
    return _drive("line", steps, keep_going, step_limit)


def repeat_run(
    session: Session,
    vm: Optional[TapeVM] = None,
    step_limit: Optional[int] = None,
) -> PolicyResult:
    """Fast-forward over a run of the instruction currently under the cursor."""
    keep_going = _repeat_predicate(session)
    steps = _step_while(session, vm or TapeVM(), keep_going)
    return _drive("repeat", steps, keep_going, step_limit)


def run_to_breakpoint(
    session: Session,
    marker: Optional[str] = None,
    vm: Optional[TapeVM] = None,
    step_limit: Optional[int] = None,
) -> PolicyResult:
    """
    Run until the cursor reaches the next breakpoint marker.

    The limit is fixed before stepping starts: the first occurrence of the
    marker at or after the cursor, or the program end when there is none.
    """
    keep_going = _breakpoint_predicate(session, marker)
    steps = _step_while(session, vm or TapeVM(), keep_going)
    return _drive("breakpoint", steps, keep_going, step_limit)


def run_to_end(
    session: Session,
    vm: Optional[TapeVM] = None,
    step_limit: Optional[int] = None,
) -> PolicyResult:
    steps = _step_while(session, vm or TapeVM(), _always)
    return _drive("run", steps, _always, step_limit)
