"""Unit tests for /src/chess/moves.py"""

from copy import deepcopy

import pytest

from src.chess.board import STARTING_POSITION
from src.chess.castling import CastlingSide
from src.chess.game import Game
from src.chess.moves import (
    attempt_move,
    checked_king_square,
    is_attacked,
    is_in_check,
)
from src.chess.pieces import Piece
from src.chess.square import Square, all_squares
from src.core.exceptions import MissingPromotionError
from src.core.shared_types import Color, PieceType
from tests.helpers import EMPTY_FEN, game_from_fen

CASTLING_POSITION = "r3k2r/8/8/8/8/8/8/R3K2R"


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def can_move(game: Game, src: str, dst: str) -> bool:
    """Pseudo-legality of moving whatever stands on src"""
    piece = game.board.piece(sq(src))
    assert piece is not None
    return attempt_move(piece, sq(src), sq(dst), game, simulate=True)


def apply(game: Game, src: str, dst: str) -> bool:
    piece = game.board.piece(sq(src))
    assert piece is not None
    return attempt_move(piece, sq(src), sq(dst), game)


def with_piece(fen_char: str, square: str) -> Game:
    game = game_from_fen(EMPTY_FEN)
    game.board.place_piece(Piece.from_fen(fen_char), sq(square))
    return game


# -- PAWN ---
@pytest.mark.parametrize(
    "src, dst, expected",
    [
        ("e2", "e3", True),
        ("e2", "e4", True),
        ("e2", "e5", False),
        ("e2", "d3", False),  # diagonal onto an empty square
        ("e2", "e1", False),  # backwards
        ("e7", "e5", True),
        ("e7", "e6", True),
        ("e7", "e8", False),
    ],
)
def test_pawn_moves_from_starting_position(src: str, dst: str, expected: bool) -> None:
    game = game_from_fen(STARTING_POSITION)
    assert can_move(game, src, dst) == expected


def test_pawn_double_step_only_from_starting_rank() -> None:
    game = with_piece("P", "e3")
    assert can_move(game, "e3", "e4")
    assert not can_move(game, "e3", "e5")


@pytest.mark.parametrize("blocker", ["e3", "e4"])
def test_pawn_double_step_needs_both_squares_empty(blocker: str) -> None:
    game = with_piece("P", "e2")
    game.board.place_piece(Piece.from_fen("n"), sq(blocker))
    assert not can_move(game, "e2", "e4")


def test_pawn_cannot_capture_straight_ahead() -> None:
    game = with_piece("P", "e4")
    game.board.place_piece(Piece.from_fen("p"), sq("e5"))
    assert not can_move(game, "e4", "e5")


def test_pawn_captures_diagonally() -> None:
    game = with_piece("P", "e4")
    game.board.place_piece(Piece.from_fen("p"), sq("d5"))
    game.board.place_piece(Piece.from_fen("N"), sq("f5"))
    assert can_move(game, "e4", "d5")
    assert not can_move(game, "e4", "f5")  # own piece

    assert apply(game, "e4", "d5")
    assert game.board.piece(sq("d5")) == Piece(PieceType.PAWN, Color.WHITE)
    assert game.board.is_empty(sq("e4"))


def test_double_step_sets_en_passant_target_single_step_clears_it() -> None:
    game = game_from_fen(STARTING_POSITION)
    assert apply(game, "e2", "e4")
    assert game.en_passant_target == sq("e3")

    assert apply(game, "d7", "d6")
    assert game.en_passant_target is None


def test_en_passant_capture_removes_passed_pawn() -> None:
    game = game_from_fen("8/8/8/3pP3/8/8/8/8")
    game.en_passant_target = sq("d6")
    assert can_move(game, "e5", "d6")

    assert apply(game, "e5", "d6")
    assert game.board.piece(sq("d6")) == Piece(PieceType.PAWN, Color.WHITE)
    assert game.board.is_empty(sq("d5"))
    assert game.board.is_empty(sq("e5"))
    assert game.en_passant_target is None


def test_no_en_passant_without_target() -> None:
    game = game_from_fen("8/8/8/3pP3/8/8/8/8")
    assert not can_move(game, "e5", "d6")


def test_promotion_needs_pending_piece() -> None:
    game = with_piece("P", "a7")
    assert can_move(game, "a7", "a8")
    with pytest.raises(MissingPromotionError):
        apply(game, "a7", "a8")


@pytest.mark.parametrize(
    "promotion", [PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT]
)
def test_promotion_substitutes_piece(promotion: PieceType) -> None:
    game = with_piece("p", "h2")
    game.pending_promotion = promotion
    assert apply(game, "h2", "h1")
    assert game.board.piece(sq("h1")) == Piece(promotion, Color.BLACK)


# -- KNIGHT ---
def test_knight_moves_on_empty_board() -> None:
    """Exactly the 8 L-shaped jumps from d4"""
    game = with_piece("N", "d4")
    reachable = {
        dst.to_algebraic()
        for dst in all_squares()
        if dst != sq("d4") and can_move(game, "d4", dst.to_algebraic())
    }
    assert reachable == {"b3", "b5", "c2", "c6", "e2", "e6", "f3", "f5"}


def test_knight_jumps_over_pieces() -> None:
    game = game_from_fen(STARTING_POSITION)
    assert can_move(game, "g1", "f3")
    assert not can_move(game, "g1", "e2")  # own pawn


# -- SLIDING PIECES ---
def test_bishop_moves_diagonally_until_blocked() -> None:
    game = with_piece("B", "c1")
    game.board.place_piece(Piece.from_fen("p"), sq("f4"))
    assert can_move(game, "c1", "e3")
    assert can_move(game, "c1", "f4")  # capture
    assert not can_move(game, "c1", "g5")  # behind the pawn
    assert not can_move(game, "c1", "c3")


def test_rook_moves_straight_until_blocked() -> None:
    game = with_piece("R", "a1")
    game.board.place_piece(Piece.from_fen("P"), sq("a4"))
    assert can_move(game, "a1", "a3")
    assert not can_move(game, "a1", "a4")  # own piece
    assert not can_move(game, "a1", "a8")
    assert can_move(game, "a1", "h1")
    assert not can_move(game, "a1", "b2")


def test_queen_combines_rook_and_bishop() -> None:
    game = with_piece("q", "d4")
    assert can_move(game, "d4", "d8")
    assert can_move(game, "d4", "h8")
    assert can_move(game, "d4", "a4")
    assert can_move(game, "d4", "a1")
    assert not can_move(game, "d4", "e6")


def test_rook_leaving_corner_revokes_castling_right() -> None:
    game = game_from_fen(CASTLING_POSITION)
    assert apply(game, "h1", "h5")
    assert not game.castle_rights[Color.WHITE].holds(CastlingSide.KINGSIDE)
    assert game.castle_rights[Color.WHITE].holds(CastlingSide.QUEENSIDE)


def test_capturing_rook_on_corner_revokes_opponents_right() -> None:
    game = game_from_fen(CASTLING_POSITION)
    assert apply(game, "a1", "a8")
    assert not game.castle_rights[Color.BLACK].holds(CastlingSide.QUEENSIDE)
    assert game.castle_rights[Color.BLACK].holds(CastlingSide.KINGSIDE)
    # the capturing rook left its own corner as well
    assert not game.castle_rights[Color.WHITE].holds(CastlingSide.QUEENSIDE)


# -- KING / CASTLING ---
def test_king_single_steps() -> None:
    game = with_piece("K", "e4")
    for dst in ["d3", "d4", "d5", "e3", "e5", "f3", "f4", "f5"]:
        assert can_move(game, "e4", dst)
    assert not can_move(game, "e4", "e6")
    assert not can_move(game, "e4", "c4")  # not on the castling square


@pytest.mark.parametrize(
    "king_from, king_to, rook_from, rook_to",
    [
        ("e1", "g1", "h1", "f1"),
        ("e1", "c1", "a1", "d1"),
    ],
)
def test_castling_relocates_king_and_rook(
    king_from: str, king_to: str, rook_from: str, rook_to: str
) -> None:
    game = game_from_fen(CASTLING_POSITION)
    assert apply(game, king_from, king_to)
    assert game.board.piece(sq(king_to)) == Piece(PieceType.KING, Color.WHITE)
    assert game.board.piece(sq(rook_to)) == Piece(PieceType.ROOK, Color.WHITE)
    assert game.board.is_empty(sq(king_from))
    assert game.board.is_empty(sq(rook_from))
    assert not game.castle_rights[Color.WHITE].holds(CastlingSide.KINGSIDE)
    assert not game.castle_rights[Color.WHITE].holds(CastlingSide.QUEENSIDE)


def test_black_castles_kingside() -> None:
    game = game_from_fen(CASTLING_POSITION, Color.BLACK)
    assert apply(game, "e8", "g8")
    assert game.board.piece(sq("f8")) == Piece(PieceType.ROOK, Color.BLACK)


def test_no_castling_without_right() -> None:
    game = game_from_fen(CASTLING_POSITION)
    game.castle_rights[Color.WHITE].revoke(CastlingSide.KINGSIDE)
    assert not can_move(game, "e1", "g1")
    assert can_move(game, "e1", "c1")


def test_no_castling_when_rook_is_gone() -> None:
    """The right alone is not enough, the rook has to stand on its corner"""
    game = game_from_fen("r3k2r/8/8/8/8/8/8/R3K3")
    assert game.castle_rights[Color.WHITE].holds(CastlingSide.KINGSIDE)
    assert not can_move(game, "e1", "g1")


def test_no_castling_through_pieces() -> None:
    game = game_from_fen("r3k2r/8/8/8/8/8/8/RN2K2R")
    assert not can_move(game, "e1", "c1")
    assert can_move(game, "e1", "g1")


def test_no_castling_out_of_check() -> None:
    game = game_from_fen("r3k2r/8/8/8/8/8/4r3/R3K2R")
    assert not can_move(game, "e1", "g1")
    assert not can_move(game, "e1", "c1")


def test_no_castling_through_attacked_square() -> None:
    """f1 is attacked by the rook on f8"""
    game = game_from_fen("r3kr2/8/8/8/8/8/8/R3K2R")
    assert not can_move(game, "e1", "g1")
    assert can_move(game, "e1", "c1")


def test_castling_engine_does_not_look_at_landing_square() -> None:
    """g1 is attacked, but the move engine leaves that to the check test after the move"""
    game = game_from_fen("r3k1r1/8/8/8/8/8/8/R3K2R")
    assert can_move(game, "e1", "g1")


def test_king_move_revokes_both_rights() -> None:
    game = game_from_fen(CASTLING_POSITION)
    assert apply(game, "e1", "e2")
    assert not game.castle_rights[Color.WHITE].holds(CastlingSide.KINGSIDE)
    assert not game.castle_rights[Color.WHITE].holds(CastlingSide.QUEENSIDE)


# -- SIMULATE ---
def test_simulate_never_mutates() -> None:
    game = game_from_fen(CASTLING_POSITION)
    before = deepcopy(game)
    for src in all_squares():
        piece = game.board.piece(src)
        if piece is None:
            continue
        for dst in all_squares():
            attempt_move(piece, src, dst, game, simulate=True)
    assert game == before


def test_invalid_squares_are_rejected() -> None:
    game = with_piece("R", "a1")
    rook = Piece(PieceType.ROOK, Color.WHITE)
    assert not attempt_move(rook, sq("a1"), Square.INVALID, game, simulate=True)


# -- ATTACKS / CHECK ---
def test_empty_square_is_never_attacked() -> None:
    game = with_piece("Q", "d1")
    assert not is_attacked(sq("d8"), game)


def test_pawns_attack_diagonally_only() -> None:
    game = with_piece("p", "e5")
    game.board.place_piece(Piece.from_fen("N"), sq("d4"))
    game.board.place_piece(Piece.from_fen("B"), sq("e4"))
    assert is_attacked(sq("d4"), game)
    assert not is_attacked(sq("e4"), game)


def test_check_detection() -> None:
    game = game_from_fen("4k3/8/8/8/8/8/8/4K2r")
    assert checked_king_square(game) == sq("e1")
    assert is_in_check(game, Color.WHITE)
    assert not is_in_check(game, Color.BLACK)

    game.side_to_move = Color.BLACK
    assert checked_king_square(game) is None
