"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum
from typing import Self

from src.chess.square import Square
from src.core.shared_types import Color


class CastlingSide(Enum):
    KINGSIDE = "kingside"
    QUEENSIDE = "queenside"


@dataclass
class CastleRights:
    """Rights only ever get revoked (king or rook moved, rook captured), never granted again."""

    kingside: bool = True
    queenside: bool = True

    def holds(self, side: CastlingSide) -> bool:
        return self.kingside if side == CastlingSide.KINGSIDE else self.queenside

    def revoke(self, side: CastlingSide) -> None:
        if side == CastlingSide.KINGSIDE:
            self.kingside = False
        else:
            self.queenside = False

    def revoke_all(self) -> None:
        self.kingside = False
        self.queenside = False


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: If castling rights have not been revoked, we already know the king / rook are still at their starting squares.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        return cls(king_from, king_to, rook_from, rook_to)


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[tuple[Color, CastlingSide], CastlingSquares] = {
    (Color.WHITE, CastlingSide.KINGSIDE): CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    (Color.WHITE, CastlingSide.QUEENSIDE): CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    (Color.BLACK, CastlingSide.KINGSIDE): CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    (Color.BLACK, CastlingSide.QUEENSIDE): CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}


def castling_side_of_rook_square(square: Square, color: Color) -> CastlingSide | None:
    """Which right depends on a rook standing on this (corner) square, if any"""
    for side in CastlingSide:
        if CASTLING_RULES[(color, side)].rook_from == square:
            return side
    return None
