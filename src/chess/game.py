"""
The Game class is the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn:
parse -> resolve -> apply on a scratch copy -> reject if the own king is left in check -> adopt the copy -> classify.
"""

from copy import deepcopy
from dataclasses import dataclass, field, fields
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, CastleRights, CastlingSide
from src.chess.moves import attempt_move, checked_king_square, is_in_check
from src.chess.notation import parse_move
from src.chess.outcome import classify
from src.chess.pieces import Piece
from src.chess.resolver import ResolvedMove, resolve_move
from src.chess.square import Square
from src.core.exceptions import (
    IllegalMoveError,
    InvalidMoveError,
    NotInGameError,
    NotYourTurnError,
)
from src.core.models import CastleRightsModel, GameModel
from src.core.shared_types import Color, PieceType, WinState


def _fresh_castle_rights() -> dict[Color, CastleRights]:
    return {color: CastleRights() for color in Color}


def _castle_rights_from_model(
    rights: dict[Color, CastleRightsModel],
) -> dict[Color, CastleRights]:
    """Both colors always get an entry, a color missing from the document keeps the default rights."""
    models = {color: rights.get(color, CastleRightsModel()) for color in Color}
    return {
        color: CastleRights(model.kingside, model.queenside)
        for color, model in models.items()
    }


@dataclass(frozen=True)
class MoveOutcome:
    """What happened after a move was accepted"""

    move: ResolvedMove
    mover: Color
    win_state: WinState


@dataclass
class Game:
    white_player: str
    black_player: str
    board: Board = field(default_factory=Board.starting_position)
    side_to_move: Color = Color.WHITE
    castle_rights: dict[Color, CastleRights] = field(default_factory=_fresh_castle_rights)
    en_passant_target: Optional[Square] = None
    last_move: Optional[tuple[Square, Square]] = None
    # only set while a single move gets applied, never persisted
    pending_promotion: Optional[PieceType] = None

    @classmethod
    def new_game(cls, white_player: str, black_player: str) -> Self:
        """Standard starting position, white to move, all castling rights."""
        return cls(white_player=white_player, black_player=black_player)

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the persistence layer actually has"""
        last_move = (
            (
                Square.from_algebraic(model.last_move[0]),
                Square.from_algebraic(model.last_move[1]),
            )
            if model.last_move
            else None
        )
        return cls(
            white_player=model.white_player,
            black_player=model.black_player,
            board=Board.from_fen(model.board),
            side_to_move=model.side_to_move,
            castle_rights=_castle_rights_from_model(model.castle_rights),
            en_passant_target=(
                Square.from_algebraic(model.en_passant_target)
                if model.en_passant_target
                else None
            ),
            last_move=last_move,
        )

    def to_model(self) -> GameModel:
        """Encode back into the format the persistence layer uses"""
        return GameModel(
            white_player=self.white_player,
            black_player=self.black_player,
            side_to_move=self.side_to_move,
            castle_rights={
                color: CastleRightsModel(
                    kingside=rights.kingside, queenside=rights.queenside
                )
                for color, rights in self.castle_rights.items()
            },
            en_passant_target=(
                self.en_passant_target.to_algebraic() if self.en_passant_target else None
            ),
            board=self.board.to_fen(),
            last_move=(
                (self.last_move[0].to_algebraic(), self.last_move[1].to_algebraic())
                if self.last_move
                else None
            ),
        )

    # --- PLAYERS ---
    @property
    def players(self) -> dict[Color, str]:
        return {Color.WHITE: self.white_player, Color.BLACK: self.black_player}

    def has_player(self, player: str) -> bool:
        return player in (self.white_player, self.black_player)

    def player_color(self, player: str) -> Color:
        if player == self.white_player:
            return Color.WHITE
        if player == self.black_player:
            return Color.BLACK
        raise NotInGameError("You aren't in a game")

    def opponent_of(self, player: str) -> str:
        return self.players[self.player_color(player).opponent]

    @property
    def player_to_move(self) -> str:
        return self.players[self.side_to_move]

    # --- PLAYING ---
    def make_move(self, player: str, notation: str) -> MoveOutcome:
        """
        Attempt to make a move
        -----

        1. make sure it is your turn
        2. parse the notation and find the squares it refers to
        3. play the move on a scratch copy, refuse it if it leaves your own king in check
        4. adopt the scratch copy: record the last move, pass the turn
        5. classify the position for the opponent

        Nothing changes on this Game when an exception is raised.
        """
        color = self.player_color(player)
        if color != self.side_to_move:
            raise NotYourTurnError("It's not your turn")

        resolved = resolve_move(parse_move(notation), self)
        piece = self.board.piece(resolved.source)
        if piece is None or piece.color != color:
            raise InvalidMoveError("Invalid piece")

        scratch = deepcopy(self)
        scratch.pending_promotion = resolved.promotion
        if not attempt_move(piece, resolved.source, resolved.destination, scratch):
            if self._is_castling_attempt(resolved, piece):
                raise IllegalMoveError("Illegal move")
            raise InvalidMoveError("Invalid move")

        if is_in_check(scratch, color):
            raise IllegalMoveError("Illegal move")

        scratch.pending_promotion = None
        scratch.last_move = (resolved.source, resolved.destination)
        scratch.side_to_move = color.opponent
        self._adopt(scratch)

        return MoveOutcome(move=resolved, mover=color, win_state=self.classify())

    def classify(self) -> WinState:
        return classify(self)

    def checked_king_square(self) -> Optional[Square]:
        return checked_king_square(self)

    # -- PRIVATE HELPERS ---
    def _adopt(self, other: "Game") -> None:
        """Take over the complete state of another game (the scratch copy a move was played on)."""
        for attribute in fields(self):
            setattr(self, attribute.name, getattr(other, attribute.name))

    @staticmethod
    def _is_castling_attempt(move: ResolvedMove, piece: Piece) -> bool:
        """The king going from its starting square to one of its castling squares"""
        return piece.type == PieceType.KING and any(
            CASTLING_RULES[(piece.color, side)].king_from == move.source
            and CASTLING_RULES[(piece.color, side)].king_to == move.destination
            for side in CastlingSide
        )
