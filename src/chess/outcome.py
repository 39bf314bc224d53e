"""
Checkmate / stalemate detection.

Exhaustive on purpose: every (source, destination) pair of the side to move is tried. The board is small and fixed,
so at most 64x64 pseudo-legality tests plus a handful of full move simulations are needed.
"""

from copy import deepcopy

from src.chess.moves import GameState, attempt_move, checked_king_square, is_in_check
from src.chess.square import Square, all_squares
from src.core.shared_types import PieceType, WinState


def has_legal_move(game: GameState) -> bool:
    """Does the side to move have at least one move that does not leave its own king in check?"""
    color = game.side_to_move
    squares = all_squares()
    for src in squares:
        piece = game.board.piece(src)
        if piece is None or piece.color != color:
            continue
        for dst in squares:
            if src == dst or not attempt_move(piece, src, dst, game, simulate=True):
                continue
            if not _leaves_king_in_check(game, src, dst):
                return True
    return False


def _leaves_king_in_check(game: GameState, src: Square, dst: Square) -> bool:
    """Play the move on a scratch copy and look at the mover's king."""
    scratch = deepcopy(game)
    # which piece a pawn promotes into never changes whether the own king is safe
    scratch.pending_promotion = PieceType.QUEEN
    piece = scratch.board.piece(src)
    assert piece is not None
    attempt_move(piece, src, dst, scratch, simulate=False)
    return is_in_check(scratch, piece.color)


def classify(game: GameState) -> WinState:
    """Classify the position for the side to move. Never mutates the game."""
    if has_legal_move(game):
        return WinState.ONGOING
    if checked_king_square(game) is not None:
        return WinState.CHECKMATE
    return WinState.STALEMATE
