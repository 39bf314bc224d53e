"""
Boundary layer data model(s).

The persisted document of a group. The domain layer converts to/from these models, the db layer stores them as JSON.
(Decouples the storage format from the domain objects, so e.g. the transient promotion choice never gets stored.)
"""

from typing import Optional

from pydantic import BaseModel, Field

from src.core.shared_types import Color

PlayerId = str
SquareName = str


class CastleRightsModel(BaseModel):
    kingside: bool = True
    queenside: bool = True


class GameModel(BaseModel):
    """Transport-safe representation of a single running game."""

    white_player: PlayerId
    black_player: PlayerId
    side_to_move: Color = Color.WHITE
    castle_rights: dict[Color, CastleRightsModel] = Field(
        default_factory=lambda: {color: CastleRightsModel() for color in Color}
    )
    en_passant_target: Optional[SquareName] = None
    board: str
    last_move: Optional[tuple[SquareName, SquareName]] = None


class DisplayOptionsModel(BaseModel):
    flip_board: bool = True


class GroupStateModel(BaseModel):
    """Everything stored for one group: its running games and the players' display options."""

    games: list[GameModel] = Field(default_factory=list)
    options: dict[PlayerId, DisplayOptionsModel] = Field(default_factory=dict)
