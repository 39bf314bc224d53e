"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Squares are packed into a single integer: the file in the low nibble, the rank in the high nibble.
Files and ranks only ever use 3 bits, so any of the remaining bits being set means the square lies off the board.
That makes the bounds check a single mask test, no matter which way a file/rank over- or underflowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from src.core.exceptions import InvalidRequestError

# Chess board is always 8x8.
BOARD_DIMENSIONS = (8, 8)

_OFF_BOARD_MASK = ~0x77
_INVALID_INDEX = 0x88


@dataclass(frozen=True)
class Square:
    index: int

    INVALID: ClassVar[Square]

    @classmethod
    def at(cls, file: int, rank: int) -> Square:
        """file/rank are zero based: a1 is (0, 0), h8 is (7, 7)"""
        return cls(file | (rank << 4))

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' (files in either case) get converted to (0,0) - (7,7)"""
        if len(sq) != 2:
            raise InvalidRequestError(f"Cannot interpret {sq!r} as a square.")
        file = ord(sq[0].lower()) - ord("a")
        rank = ord(sq[1]) - ord("1")
        if not (0 <= file < BOARD_DIMENSIONS[0] and 0 <= rank < BOARD_DIMENSIONS[1]):
            raise InvalidRequestError(f"Cannot interpret {sq!r} as a square.")
        return cls.at(file, rank)

    def to_algebraic(self) -> str:
        return f"{chr(self.file + ord('a'))}{self.rank + 1}"

    @property
    def file(self) -> int:
        return self.index & 0x7

    @property
    def rank(self) -> int:
        return (self.index >> 4) & 0x7

    def is_valid(self) -> bool:
        return (self.index & _OFF_BOARD_MASK) == 0

    def offset(self, df: int, dr: int) -> Square:
        """Square shifted by the given deltas. Stays unpacked until the mask test, so leaving the board is detectable."""
        if not self.is_valid():
            return Square.INVALID
        return Square.at(self.file + df, self.rank + dr)

    def __repr__(self) -> str:
        return f"Square({self.to_algebraic()})" if self.is_valid() else "Square(INVALID)"


Square.INVALID = Square(_INVALID_INDEX)


def all_squares() -> list[Square]:
    """Every square on the board, a1, b1, ... h8"""
    return [
        Square.at(file, rank)
        for rank in range(BOARD_DIMENSIONS[1])
        for file in range(BOARD_DIMENSIONS[0])
    ]
