"""
Movement, capturing, and attacking rules

Key idea: Use strategy pattern to define the movement rule of each piece type.

Every rule answers a single question: "may this piece go from src to dst?" (pseudo-legality, so ignoring whether the
own king ends up in check). With simulate=True nothing is touched and only the answer is returned; that mode is the
building block for attack detection and must never recurse into check-safety.
With simulate=False the move is also applied: captures, castling rights, the en passant target and promotion.

Whether the own king is left in check is decided later, on a scratch copy of the game.
"""

from copy import deepcopy
from typing import Callable, Optional, Protocol

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_RULES,
    CastleRights,
    CastlingSide,
    castling_side_of_rook_square,
)
from src.chess.pieces import Piece
from src.chess.square import BOARD_DIMENSIONS, Square, all_squares
from src.core.exceptions import MissingPromotionError
from src.core.shared_types import Color, PieceType


class GameState(Protocol):
    """Just the parts of a Game the movement rules need"""

    board: Board
    side_to_move: Color
    castle_rights: dict[Color, CastleRights]
    en_passant_target: Optional[Square]
    pending_promotion: Optional[PieceType]


MoveFn = Callable[[Square, Square, Color, GameState, bool], bool]

LAST_RANK: dict[Color, int] = {Color.WHITE: BOARD_DIMENSIONS[1] - 1, Color.BLACK: 0}
PAWN_START_RANK: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: BOARD_DIMENSIONS[1] - 2}
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: -1}


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _can_land_on(square: Square, color: Color, board: Board) -> bool:
    """Destination must be empty or hold an enemy piece"""
    piece = board.piece(square)
    return piece is None or piece.color != color


def _is_path_clear(src: Square, dst: Square, board: Board) -> bool:
    """Every square strictly between src and dst (along a straight line or diagonal) is empty."""
    df = dst.file - src.file
    dr = dst.rank - src.rank
    step_f, step_r = _sign(df), _sign(dr)
    for step in range(1, max(abs(df), abs(dr))):
        if not board.is_empty(src.offset(step_f * step, step_r * step)):
            return False
    return True


def _relocate(src: Square, dst: Square, piece: Piece, game: GameState) -> None:
    """
    Put the piece on dst (capturing whatever stood there) and clear src.

    Taking a rook on its corner revokes the opponent's right to castle with it.
    The en passant target only lives for one ply: it is cleared here, a double pawn push sets it again afterwards.
    """
    board = game.board
    captured = board.remove_piece(dst)
    board.remove_piece(src)
    board.place_piece(piece, dst)

    if captured is not None and captured.type == PieceType.ROOK:
        side = castling_side_of_rook_square(dst, captured.color)
        if side is not None:
            game.castle_rights[captured.color].revoke(side)

    game.en_passant_target = None


# --- MOVEMENT RULES ---
def move_pawn(
    src: Square, dst: Square, color: Color, game: GameState, simulate: bool
) -> bool:
    """
    A pawn:
    - moves by a single square forward onto an empty square.
    - can move by two from its starting rank, if both squares are empty (creates an en passant target)
    - takes diagonally, either an enemy piece or en passant
    - must promote when reaching the last rank
    """
    board = game.board
    direction = PAWN_DIRECTION[color]
    df = dst.file - src.file
    dr = dst.rank - src.rank
    en_passant_capture: Optional[Square] = None
    new_en_passant_target: Optional[Square] = None

    if df == 0 and dr == 2 * direction:
        if src.rank != PAWN_START_RANK[color]:
            return False
        skipped = src.offset(0, direction)
        if not (board.is_empty(skipped) and board.is_empty(dst)):
            return False
        new_en_passant_target = skipped
    elif df == 0 and dr == direction:
        if not board.is_empty(dst):
            return False
    elif abs(df) == 1 and dr == direction:
        target = board.piece(dst)
        if target is None:
            if dst != game.en_passant_target:
                return False
            # the passed pawn stands next to the capturing pawn, behind the target square
            en_passant_capture = Square.at(dst.file, src.rank)
        elif target.color == color:
            return False
    else:
        return False

    if simulate:
        return True

    piece = Piece(PieceType.PAWN, color)
    if dst.rank == LAST_RANK[color]:
        if game.pending_promotion is None:
            raise MissingPromotionError("Don't know what to promote to")
        piece = Piece(game.pending_promotion, color)

    if en_passant_capture is not None:
        game.board.remove_piece(en_passant_capture)
    _relocate(src, dst, piece, game)
    game.en_passant_target = new_en_passant_target
    return True


def move_knight(
    src: Square, dst: Square, color: Color, game: GameState, simulate: bool
) -> bool:
    """Knights never stay on their file or rank and always move such that |delta_rank| + |delta_file| = 3"""
    df = abs(dst.file - src.file)
    dr = abs(dst.rank - src.rank)
    if df == 0 or dr == 0 or df + dr != 3:
        return False
    if not _can_land_on(dst, color, game.board):
        return False

    if not simulate:
        _relocate(src, dst, Piece(PieceType.KNIGHT, color), game)
    return True


def _slide(
    src: Square,
    dst: Square,
    color: Color,
    game: GameState,
    straight: bool,
    diagonal: bool,
) -> bool:
    """Shared rule of the sliding pieces (rook, bishop, queen)."""
    df = dst.file - src.file
    dr = dst.rank - src.rank
    is_straight = (df == 0) != (dr == 0)
    is_diagonal = df != 0 and abs(df) == abs(dr)
    if not ((straight and is_straight) or (diagonal and is_diagonal)):
        return False
    if not _is_path_clear(src, dst, game.board):
        return False
    return _can_land_on(dst, color, game.board)


def move_bishop(
    src: Square, dst: Square, color: Color, game: GameState, simulate: bool
) -> bool:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    if not _slide(src, dst, color, game, straight=False, diagonal=True):
        return False
    if not simulate:
        _relocate(src, dst, Piece(PieceType.BISHOP, color), game)
    return True


def move_rook(
    src: Square, dst: Square, color: Color, game: GameState, simulate: bool
) -> bool:
    """Rooks move either horizontally or vertically. Leaving the corner costs the castling right on that side."""
    if not _slide(src, dst, color, game, straight=True, diagonal=False):
        return False
    if not simulate:
        _relocate(src, dst, Piece(PieceType.ROOK, color), game)
        side = castling_side_of_rook_square(src, color)
        if side is not None:
            game.castle_rights[color].revoke(side)
    return True


def move_queen(
    src: Square, dst: Square, color: Color, game: GameState, simulate: bool
) -> bool:
    """The Queen combines the rook moves and the bishop moves"""
    if not _slide(src, dst, color, game, straight=True, diagonal=True):
        return False
    if not simulate:
        _relocate(src, dst, Piece(PieceType.QUEEN, color), game)
    return True


def move_king(
    src: Square, dst: Square, color: Color, game: GameState, simulate: bool
) -> bool:
    """
    The king moves by a single square at the time, or castles by moving two files towards a rook.

    **castling is allowed if**

    * the right on that side has not been revoked, and the rook still stands on its corner.
    * every square between king and rook is empty.
    * the king is not in check, and the square it passes through is not attacked.

    NOTE: the square the king lands on is not tested here. Ending up in check is rejected like any other move
    that leaves the king in check.
    """
    board = game.board
    df = dst.file - src.file
    dr = dst.rank - src.rank
    if abs(dr) > 1 or abs(df) > 2 or (df == 0 and dr == 0):
        return False
    if not _can_land_on(dst, color, board):
        return False

    if abs(df) == 2:
        if not _may_castle(src, dst, color, game):
            return False
        if not simulate:
            side = CastlingSide.KINGSIDE if df > 0 else CastlingSide.QUEENSIDE
            rule = CASTLING_RULES[(color, side)]
            _relocate(rule.rook_from, rule.rook_to, Piece(PieceType.ROOK, color), game)

    if not simulate:
        _relocate(src, dst, Piece(PieceType.KING, color), game)
        game.castle_rights[color].revoke_all()
    return True


def _may_castle(src: Square, dst: Square, color: Color, game: GameState) -> bool:
    board = game.board
    if dst.rank != src.rank:
        return False
    side = CastlingSide.KINGSIDE if dst.file > src.file else CastlingSide.QUEENSIDE
    rule = CASTLING_RULES[(color, side)]
    if src != rule.king_from or dst != rule.king_to:
        return False
    if not game.castle_rights[color].holds(side):
        return False
    if board.piece(rule.rook_from) != Piece(PieceType.ROOK, color):
        return False
    # NOTE: the landing square must be empty before asking for attacks, so the attack test
    # (which only targets occupied squares) can never end up back here.
    if not (board.is_empty(dst) and _is_path_clear(rule.king_from, rule.rook_from, board)):
        return False
    if is_attacked(src, game):
        return False
    return not _is_passing_square_attacked(src, dst, color, game)


def _is_passing_square_attacked(
    src: Square, dst: Square, color: Color, game: GameState
) -> bool:
    """Put the king on the square it passes through, on a copy of the game, and test that square."""
    passing = Square.at((src.file + dst.file) // 2, src.rank)
    probe = deepcopy(game)
    probe.board.remove_piece(src)
    probe.board.place_piece(Piece(PieceType.KING, color), passing)
    return is_attacked(passing, probe)


# --- STRATEGY PATTERN: MOVEMENT RULES ---
MOVEMENT_RULES: dict[PieceType, MoveFn] = {
    PieceType.PAWN: move_pawn,
    PieceType.KNIGHT: move_knight,
    PieceType.BISHOP: move_bishop,
    PieceType.ROOK: move_rook,
    PieceType.QUEEN: move_queen,
    PieceType.KING: move_king,
}


def attempt_move(
    piece: Piece, src: Square, dst: Square, game: GameState, simulate: bool = False
) -> bool:
    """
    Test (simulate=True) or perform (simulate=False) a pseudo-legal move of the piece standing on src.
    Returns False, without touching the game, when the move breaks the rules of the piece.
    """
    if not (src.is_valid() and dst.is_valid()):
        return False
    movement_rule = MOVEMENT_RULES[piece.type]
    return movement_rule(src, dst, piece.color, game, simulate)


# --- ATTACKS / CHECK ---
def is_attacked(square: Square, game: GameState) -> bool:
    """
    Could any enemy of the piece standing on square capture it right now?
    An empty square is never considered attacked.
    """
    target = game.board.piece(square)
    if target is None:
        return False
    for other_square in all_squares():
        piece = game.board.piece(other_square)
        if piece is None or piece.color == target.color:
            continue
        if attempt_move(piece, other_square, square, game, simulate=True):
            return True
    return False


def checked_king_square(game: GameState) -> Optional[Square]:
    """The square of the side to move's king, if that king is in check"""
    for square in game.board.locate_pieces(PieceType.KING, game.side_to_move):
        if is_attacked(square, game):
            return square
    return None


def is_in_check(game: GameState, color: Color) -> bool:
    """Is the king of the given color attacked (regardless of who is to move)?"""
    return any(
        is_attacked(square, game)
        for square in game.board.locate_pieces(PieceType.KING, color)
    )
