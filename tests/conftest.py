"""
Pytest configuration, shared fixtures and shared step definitions.

Programs in feature files write newlines as a literal backslash-n.
"""
import json
from itertools import islice

import pytest
from pytest_bdd import given, parsers, then, when

from bfstep.kernel.errors import StepError
from bfstep.kernel.schema import ExecutionContext, StepperConfig
from bfstep.kernel.session import Session
from bfstep.kernel.stepping import (
    iter_run_to_end,
    line_step,
    repeat_run,
    run_to_breakpoint,
    run_to_end,
    single_step,
)


def unescape(text: str) -> str:
    return text.replace("\\n", "\n")


@pytest.fixture
def test_context():
    """Shared context for passing data between steps."""
    return {
        "session": None,
        "outcome": None,
        "policy": None,
        "error": None,
        "captured_output": [],
    }


def _start(test_context, program, input_data=b"", **config):
    sink = test_context["captured_output"].append
    test_context["session"] = Session.start(
        unescape(program),
        input_data,
        config=StepperConfig(**config),
        context=ExecutionContext(trace=True, output_sink=sink),
    )
    return test_context["session"]


# =============================================================================
# Given Steps
# =============================================================================


@given(parsers.parse('a session over "{program}"'))
def session_over(test_context, program: str):
    _start(test_context, program)


@given("a session over an empty program")
def session_over_empty(test_context):
    _start(test_context, "")


@given(parsers.parse('a session with input "{text}" over "{program}"'))
def session_with_input(test_context, text: str, program: str):
    _start(test_context, program, text)


@given(parsers.parse('a {mode} session with capacity {capacity:d} over "{program}"'))
def session_with_mode(test_context, mode: str, capacity: int, program: str):
    _start(test_context, program, capacity=capacity, overflow=mode)


@given(parsers.parse('a session with breakpoint "{marker}" over "{program}"'))
def session_with_breakpoint(test_context, marker: str, program: str):
    _start(test_context, program, breakpoint=marker)


@given(parsers.parse("the current cell is set to {value:d}"))
def set_cell(test_context, value: int):
    test_context["session"].tape.write(value)


# =============================================================================
# When Steps
# =============================================================================


@when("I step once")
def step_once(test_context):
    test_context["outcome"] = single_step(test_context["session"])


@when(parsers.parse("I step {count:d} times"))
def step_times(test_context, count: int):
    for _ in range(count):
        test_context["outcome"] = single_step(test_context["session"])


@when("I try to step")
def try_step(test_context):
    try:
        test_context["outcome"] = single_step(test_context["session"])
    except StepError as exc:
        test_context["error"] = exc


@when("I try to run to the end")
def try_run_to_end(test_context):
    try:
        test_context["policy"] = run_to_end(test_context["session"])
    except StepError as exc:
        test_context["error"] = exc


@when("I run to the end")
def run_end(test_context):
    test_context["policy"] = run_to_end(test_context["session"])


@when(parsers.parse("I run to the end with a step limit of {limit:d}"))
def run_end_limited(test_context, limit: int):
    test_context["policy"] = run_to_end(test_context["session"], step_limit=limit)


@when("I step over the line")
def step_line(test_context):
    test_context["policy"] = line_step(test_context["session"])


@when("I run the repeated instructions")
def step_repeat(test_context):
    test_context["policy"] = repeat_run(test_context["session"])


@when("I run to the breakpoint")
def step_breakpoint(test_context):
    test_context["policy"] = run_to_breakpoint(test_context["session"])


@when(parsers.parse("I take {count:d} steps of a run to the end and abandon it"))
def take_and_abandon(test_context, count: int):
    steps = iter_run_to_end(test_context["session"])
    taken = list(islice(steps, count))
    test_context["outcome"] = taken[-1]


# =============================================================================
# Then Steps
# =============================================================================


@then(parsers.parse("the output log is {values}"))
def check_output(test_context, values: str):
    assert test_context["session"].output_log == json.loads(values)


@then(parsers.parse("the cell is {value:d}"))
def check_cell(test_context, value: int):
    assert test_context["session"].tape.read() == value


@then(parsers.parse("cell {index:d} is {value:d}"))
def check_cell_at(test_context, index: int, value: int):
    assert test_context["session"].tape.cells[index] == value


@then(parsers.parse("the pointer is {pointer:d}"))
def check_pointer(test_context, pointer: int):
    assert test_context["session"].tape.pointer == pointer


@then(parsers.parse("the cursor is {offset:d}"))
def check_cursor(test_context, offset: int):
    assert test_context["session"].cursor == offset


@then(parsers.parse('the next instruction is "{op}"'))
def check_instruction(test_context, op: str):
    assert test_context["session"].current_instruction == op


@then("the input queue is empty")
def check_input_empty(test_context):
    assert len(test_context["session"].input_queue) == 0


@then(parsers.parse("the remaining input is {values}"))
def check_input(test_context, values: str):
    assert list(test_context["session"].input_queue) == json.loads(values)


@then(parsers.parse('the session status is "{status}"'))
def check_status(test_context, status: str):
    assert test_context["session"].status.value == status


@then(parsers.parse('stepping failed with "{kind}"'))
def check_error(test_context, kind: str):
    error = test_context["error"]
    assert error is not None
    assert error.kind == kind


@then(parsers.parse('the recorded error is "{kind}"'))
def check_recorded_error(test_context, kind: str):
    assert test_context["session"].error is not None
    assert test_context["session"].error.kind == kind


@then(parsers.parse("the last policy ran {count:d} steps"))
def check_policy_steps(test_context, count: int):
    assert test_context["policy"].steps == count


@then("the last policy was interrupted")
def check_interrupted(test_context):
    assert test_context["policy"].interrupted is True


@then("the last policy was not interrupted")
def check_not_interrupted(test_context):
    assert test_context["policy"].interrupted is False


@then("the last step terminated the program")
def check_terminated(test_context):
    assert test_context["outcome"].terminated
