"""
Scanner and bracket matching over raw program text.
"""
import pytest

from bfstep.kernel.errors import MalformedProgram
from bfstep.kernel.scanner import (
    bracket_pairs,
    find_matching_bracket,
    find_next_instruction,
    line_and_column,
    line_end,
)


PROGRAM = "read a byte: ,\nloop [ copy >+< - ] done.\n"


def test_next_instruction_skips_comments():
    assert find_next_instruction("abc+", 0) == 3
    assert find_next_instruction("abc+", 3) == 3
    assert find_next_instruction("abc+", 4) is None
    assert find_next_instruction("", 0) is None
    assert find_next_instruction("no code here", 0) is None


def test_next_instruction_is_idempotent():
    for offset in range(len(PROGRAM) + 1):
        found = find_next_instruction(PROGRAM, offset)
        if found is not None:
            assert find_next_instruction(PROGRAM, found) == found


def test_matching_brackets_respect_nesting():
    program = "[a[b]c]"
    assert find_matching_bracket(program, 0) == 6
    assert find_matching_bracket(program, 6) == 0
    assert find_matching_bracket(program, 2) == 4
    assert find_matching_bracket(program, 4) == 2


def test_per_jump_matching_agrees_with_bracket_table():
    program = "+[>[-]<[->+<]]x[]"
    pairs = bracket_pairs(program)
    for offset, target in pairs.items():
        assert find_matching_bracket(program, offset) == target


@pytest.mark.parametrize("program, offset", [("[", 0), ("]", 0), ("[[]", 0), ("[]]", 2)])
def test_unmatched_brackets_are_malformed(program, offset):
    with pytest.raises(MalformedProgram) as excinfo:
        find_matching_bracket(program, offset)
    assert excinfo.value.kind == "malformed_program"
    assert excinfo.value.offset == offset


@pytest.mark.parametrize("program", ["[", "]", "[[]", "[]]", "][", "+]+["])
def test_bracket_table_rejects_unbalanced_programs(program):
    with pytest.raises(MalformedProgram):
        bracket_pairs(program)


def test_matching_requires_a_bracket():
    with pytest.raises(ValueError):
        find_matching_bracket("+", 0)


def test_line_helpers():
    assert line_end("ab\ncd", 0) == 2
    assert line_end("ab\ncd", 3) == 5
    assert line_and_column("ab\ncd", 0) == (1, 0)
    assert line_and_column("ab\ncd", 4) == (2, 1)
