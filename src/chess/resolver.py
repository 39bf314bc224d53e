"""
Combine a parsed move with the current position, to find the concrete source and destination squares.
"""

from dataclasses import dataclass
from typing import Optional

from src.chess.castling import CASTLING_RULES, CastlingSide
from src.chess.moves import LAST_RANK, GameState, attempt_move
from src.chess.notation import CastleIntent, ParsedMove, PieceIntent, SquaresIntent
from src.chess.pieces import PIECE_TO_FEN, PROMOTION_OPTIONS, Piece
from src.chess.square import Square, all_squares
from src.core.exceptions import (
    AmbiguousMoveError,
    IllegalMoveError,
    InvalidMoveError,
    MissingPromotionError,
    UnexpectedPromotionError,
)
from src.core.shared_types import PieceType


@dataclass(frozen=True)
class ResolvedMove:
    source: Square
    destination: Square
    promotion: Optional[PieceType] = None

    def to_uci(self) -> str:
        """e.g. e2e4, or e7e8q when promoting"""
        promotion = PIECE_TO_FEN[self.promotion] if self.promotion else ""
        return f"{self.source.to_algebraic()}{self.destination.to_algebraic()}{promotion}"


def resolve_move(parsed: ParsedMove, game: GameState) -> ResolvedMove:
    """
    Find the squares the move is played from/to, for the side to move.

    Raises
    ---
    * IllegalMoveError: castling without the right to do so.
    * InvalidMoveError: no piece of the side to move can make the move.
    * AmbiguousMoveError: more than one piece can make the move.
    * MissingPromotionError / UnexpectedPromotionError: promotion suffix does not match the move.
    """
    intent = parsed.intent
    if isinstance(intent, CastleIntent):
        source, destination = _castling_squares(intent, game)
    elif isinstance(intent, SquaresIntent):
        source, destination = intent.source, intent.destination
    else:
        source, destination = _find_source(intent, game), intent.destination

    if source == destination:
        raise InvalidMoveError("Invalid move")

    _check_promotion(parsed.promotion, source, destination, game)
    return ResolvedMove(source, destination, parsed.promotion)


def _castling_squares(intent: CastleIntent, game: GameState) -> tuple[Square, Square]:
    color = game.side_to_move
    side = CastlingSide.KINGSIDE if intent.kingside else CastlingSide.QUEENSIDE
    if not game.castle_rights[color].holds(side):
        raise IllegalMoveError("Illegal move")
    rule = CASTLING_RULES[(color, side)]
    return rule.king_from, rule.king_to


def _find_source(intent: PieceIntent, game: GameState) -> Square:
    """Scan the board for the one piece of the right type that can reach the destination."""
    wanted = Piece(intent.piece_type, game.side_to_move)
    found: Optional[Square] = None
    for square in all_squares():
        if intent.source_file is not None and square.file != intent.source_file:
            continue
        if intent.source_rank is not None and square.rank != intent.source_rank:
            continue
        if game.board.piece(square) != wanted:
            continue
        if not attempt_move(wanted, square, intent.destination, game, simulate=True):
            continue
        if found is not None:
            raise AmbiguousMoveError("Ambiguous move")
        found = square

    if found is None:
        raise InvalidMoveError("Invalid move")
    return found


def _check_promotion(
    promotion: Optional[PieceType], source: Square, destination: Square, game: GameState
) -> None:
    piece = game.board.piece(source)
    needs_promotion = (
        piece is not None
        and piece.type == PieceType.PAWN
        and destination.rank == LAST_RANK[piece.color]
    )
    if needs_promotion and promotion is None:
        raise MissingPromotionError("Don't know what to promote to")
    if promotion is not None and (not needs_promotion or promotion not in PROMOTION_OPTIONS):
        raise UnexpectedPromotionError("Unexpected promote piece")
