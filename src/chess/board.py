"""The Board only knows where the pieces are. All rules live in moves.py"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.pieces import Piece
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError
from src.core.shared_types import Color, PieceType

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"

Grid = list[list[Optional[Piece]]]


def _empty_grid() -> Grid:
    num_files, num_ranks = BOARD_DIMENSIONS
    return [[None] * num_files for _ in range(num_ranks)]


@dataclass
class Board:
    # indexed as grid[rank][file]
    grid: Grid = field(default_factory=_empty_grid)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board from the piece placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with the rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces.
        """
        num_files, num_ranks = BOARD_DIMENSIONS
        fen_by_ranks = fen_str.split("/")
        if len(fen_by_ranks) != num_ranks:
            raise InvalidFENError(f"Expected {num_ranks} ranks in {fen_str!r}")

        board = cls()
        for rank_idx, fen_one_rank in enumerate(fen_by_ranks):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = num_ranks - 1 - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 0
            for character in fen_one_rank:
                if character in "12345678":
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
                    continue
                if file >= num_files:
                    raise InvalidFENError(f"Rank {fen_one_rank!r} is too long")
                board.place_piece(Piece.from_fen(character), Square.at(file, rank))
                file += 1
            if file != num_files:
                raise InvalidFENError(
                    f"Rank {fen_one_rank!r} covers {file} files instead of {num_files}"
                )
        return board

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_POSITION)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string, highest rank first."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for piece in self.grid[rank]:
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def piece(self, square: Square) -> Optional[Piece]:
        return self.grid[square.rank][square.file]

    def place_piece(self, piece: Piece, square: Square) -> None:
        self.grid[square.rank][square.file] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        removed = self.piece(square)
        self.grid[square.rank][square.file] = None
        return removed

    def is_empty(self, square: Square) -> bool:
        return self.piece(square) is None

    def locate_pieces(self, piece_type: PieceType, color: Color) -> list[Square]:
        target = Piece(piece_type, color)
        return [
            Square.at(file, rank)
            for rank, row in enumerate(self.grid)
            for file, piece in enumerate(row)
            if piece == target
        ]
