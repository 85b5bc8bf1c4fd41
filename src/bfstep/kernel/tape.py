from __future__ import annotations

from typing import List, Tuple

from .errors import MemoryLimitExceeded, PointerUnderflow
from .schema import OverflowMode


class Tape:
    """Fixed-capacity byte tape with a pointer.

    The pointer never leaves [0, capacity). Moves that would leave it raise
    and leave the tape untouched.
    """

    def __init__(self, capacity: int, overflow: OverflowMode = OverflowMode.WRAP) -> None:
        if capacity <= 0:
            raise ValueError(f"Tape capacity must be positive, got {capacity}")
        self.cells = bytearray(capacity)
        self.pointer = 0
        self.overflow = OverflowMode(overflow)

    @property
    def capacity(self) -> int:
        return len(self.cells)

    def read(self) -> int:
        return self.cells[self.pointer]

    def write(self, value: int) -> None:
        if not 0 <= value <= 255:
            raise ValueError(f"Cell value out of range: {value}")
        self.cells[self.pointer] = value

    def increment(self) -> int:
        value = self.cells[self.pointer]
        if self.overflow == OverflowMode.WRAP:
            value = (value + 1) % 256
        else:
            value = min(value + 1, 255)
        self.cells[self.pointer] = value
        return value

    def decrement(self) -> int:
        value = self.cells[self.pointer]
        if self.overflow == OverflowMode.WRAP:
            value = (value - 1) % 256
        else:
            value = max(value - 1, 0)
        self.cells[self.pointer] = value
        return value

    def move_right(self, offset: int | None = None) -> int:
        if self.pointer + 1 >= len(self.cells):
            raise MemoryLimitExceeded(
                f"Pointer would move past the last cell ({len(self.cells) - 1})",
                offset=offset,
                details={"pointer": self.pointer, "capacity": len(self.cells)},
            )
        self.pointer += 1
        return self.pointer

    def move_left(self, offset: int | None = None) -> int:
        if self.pointer == 0:
            raise PointerUnderflow(
                "Pointer would move below cell 0",
                offset=offset,
                details={"pointer": self.pointer},
            )
        self.pointer -= 1
        return self.pointer

    def window(self, size: int) -> Tuple[int, List[int]]:
        """Return (start, cells) for `size` cells centred on the pointer."""
        size = min(max(size, 1), len(self.cells))
        start = max(0, self.pointer - size // 2)
        end = min(len(self.cells), start + size)
        # Keep the window full when the pointer sits near the end
        start = max(0, end - size)
        return start, list(self.cells[start:end])
