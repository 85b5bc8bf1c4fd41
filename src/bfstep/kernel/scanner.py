"""
Source scanning over the raw program text.

Offsets always refer to the original text, comments included, so a caller can
map the cursor straight back onto the source it is displaying.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .errors import MalformedProgram
from .schema import INSTRUCTIONS


def find_next_instruction(program: str, from_offset: int) -> Optional[int]:
    """Return the first instruction offset at or after from_offset, or None at the end."""
    for offset in range(max(from_offset, 0), len(program)):
        if program[offset] in INSTRUCTIONS:
            return offset
    return None


def find_matching_bracket(program: str, offset: int) -> int:
    """
    Find the bracket paired with the one at `offset`.

    Scans forward from `[` or backward from `]`, counting nesting depth until
    it returns to zero. Comment characters never affect the depth.

    Raises:
        MalformedProgram: if the bracket has no counterpart.
    """
    opener = program[offset]
    if opener == "[":
        direction, closer = 1, "]"
        end = len(program)
    elif opener == "]":
        direction, closer = -1, "["
        end = -1
    else:
        raise ValueError(f"No bracket at offset {offset}: {opener!r}")

    depth = 0
    for position in range(offset, end, direction):
        char = program[position]
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return position

    raise MalformedProgram(
        f"Unmatched '{opener}' at offset {offset}",
        offset=offset,
        details={"bracket": opener},
    )


def bracket_pairs(program: str) -> Dict[int, int]:
    """
    Build the full bracket table for a program in one pass.

    Yields the same targets as find_matching_bracket; used to reject malformed
    programs up front instead of at the first jump.
    """
    pairs: Dict[int, int] = {}
    stack = []
    for offset, char in enumerate(program):
        if char == "[":
            stack.append(offset)
        elif char == "]":
            if not stack:
                raise MalformedProgram(
                    f"Unmatched ']' at offset {offset}",
                    offset=offset,
                    details={"bracket": "]"},
                )
            start = stack.pop()
            pairs[start] = offset
            pairs[offset] = start

    if stack:
        raise MalformedProgram(
            f"Unmatched '[' at offset {stack[-1]}",
            offset=stack[-1],
            details={"bracket": "["},
        )
    return pairs


def line_end(program: str, offset: int) -> int:
    """Offset of the newline ending the line that contains `offset` (or program end)."""
    newline = program.find("\n", offset)
    return len(program) if newline == -1 else newline


def line_and_column(program: str, offset: int) -> Tuple[int, int]:
    """1-based line and 0-based column of `offset`."""
    line = program.count("\n", 0, offset) + 1
    column = offset - (program.rfind("\n", 0, offset) + 1)
    return line, column
