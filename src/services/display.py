"""
Build what the display collaborator needs to render a board image.

Nothing gets fetched or rendered here: the result is the board's FEN placement, the orientation, the squares to
highlight, and the image URL combining them.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from src.chess.game import Game
from src.chess.group_state import DisplayOptions


@dataclass(frozen=True)
class BoardView:
    fen: str
    orientation: Optional[str]
    last_move: Optional[str]
    check: Optional[str]
    url: str


def build_board_view(
    game: Game, viewer: str, options: DisplayOptions, base_url: str
) -> BoardView:
    """
    * orientation: only when the viewer wants the board flipped towards them (their own color at the bottom).
    * last_move: from and to square, ex. "e2e4"
    * check: the square of the king that is in check, if any
    """
    fen = game.board.to_fen()
    orientation = (
        game.player_color(viewer).value
        if options.flip_board and game.has_player(viewer)
        else None
    )
    last_move = (
        f"{game.last_move[0].to_algebraic()}{game.last_move[1].to_algebraic()}"
        if game.last_move
        else None
    )
    checked_king = game.checked_king_square()
    check = checked_king.to_algebraic() if checked_king else None

    params: dict[str, str] = {"fen": fen}
    if orientation:
        params["orientation"] = orientation
    if last_move:
        params["last_move"] = last_move
    if check:
        params["check"] = check
    url = f"{base_url}?{urlencode(params, safe='/')}"
    return BoardView(fen, orientation, last_move, check, url)
