"""Shared helpers for setting up positions in tests."""

from src.chess.board import Board
from src.chess.game import Game
from src.core.shared_types import Color

WHITE_PLAYER = "alice"
BLACK_PLAYER = "bob"
EMPTY_FEN = "/".join(["8"] * 8)


def game_from_fen(placement: str, side_to_move: Color = Color.WHITE) -> Game:
    """A game in an arbitrary position (piece placement part of FEN only). All castling rights are held."""
    return Game(
        white_player=WHITE_PLAYER,
        black_player=BLACK_PLAYER,
        board=Board.from_fen(placement),
        side_to_move=side_to_move,
    )


def play(game: Game, *moves: str) -> None:
    """Alternate the moves between the players, starting with whoever is to move."""
    for notation in moves:
        game.make_move(game.player_to_move, notation)
