"""Requests and Response models of the command surface (`chess start`, `move`, `resign`, `board`, `option`)"""

from typing import Optional

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, WinState

GroupId = str
PlayerId = str

MAX_NOTATION_LENGTH = 16


# --- REQUEST MODELS ---
class StartGameRequest(BaseModel):
    group_id: GroupId
    player: PlayerId
    opponent: PlayerId


class MoveRequest(BaseModel):
    group_id: GroupId
    player: PlayerId
    notation: str

    @field_validator("notation")
    @classmethod
    def validate_notation(cls, value: str) -> str:
        """Untrusted text: a single, short, printable ASCII line. The grammar itself is checked by the parser."""
        if not value.strip():
            raise InvalidRequestError("No move given.")
        if len(value) > MAX_NOTATION_LENGTH:
            raise InvalidRequestError("Move text is too long.")
        if not (value.isascii() and value.isprintable()):
            raise InvalidRequestError("Move text must be a single line of plain characters.")
        return value


class ResignRequest(BaseModel):
    group_id: GroupId
    player: PlayerId


class BoardRequest(BaseModel):
    group_id: GroupId
    player: PlayerId


class SetOptionRequest(BaseModel):
    group_id: GroupId
    player: PlayerId
    name: str
    value: str


# --- RESPONSE MODELS ---
class BoardResponse(BaseModel):
    fen: str
    orientation: Optional[Color]
    last_move: Optional[str]
    check: Optional[str]
    url: str
    white_player: PlayerId
    black_player: PlayerId
    side_to_move: Color
    message: Optional[str] = None


class StartGameResponse(BaseModel):
    white_player: PlayerId
    black_player: PlayerId
    board: BoardResponse
    message: str


class MoveResponse(BaseModel):
    move: str
    win_state: WinState
    winner: Optional[PlayerId]
    next_player: Optional[PlayerId]
    board: BoardResponse
    message: str


class ResignResponse(BaseModel):
    resigned_player: PlayerId
    winner: PlayerId
    message: str


class OptionsResponse(BaseModel):
    player: PlayerId
    flip_board: bool
    message: Optional[str] = None


class GameSummary(BaseModel):
    white_player: PlayerId
    black_player: PlayerId
    side_to_move: Color
