"""
Orchestration of communication from the command surface to business logic and persistence layers (and the reverse
direction).

Per group and player the only transitions are: no game -> in game (start) -> no game (resignation, checkmate or
stalemate). Every mutation runs inside an exclusive StateGuard and is either committed or discarded.
"""

import random
from typing import Optional, Protocol

from src.api.models import (
    BoardRequest,
    BoardResponse,
    GameSummary,
    MoveRequest,
    MoveResponse,
    OptionsResponse,
    ResignRequest,
    ResignResponse,
    SetOptionRequest,
    StartGameRequest,
    StartGameResponse,
)
from src.chess.game import Game
from src.chess.group_state import DisplayOptions
from src.core.config import get_settings
from src.core.exceptions import (
    AlreadyInGameError,
    GameError,
    InvalidOptionError,
    NotInGameError,
    UnknownOpponentError,
)
from src.core.logger import get_logger
from src.core.shared_types import Color, WinState
from src.services.display import build_board_view
from src.services.storage import GroupStateStore

logger = get_logger(__name__)

UNKNOWN_NAME = "<unknown>"
OPTION_VALUES: dict[str, bool] = {"true": True, "false": False}


class NameResolver(Protocol):
    """Identity collaborator: turns a player id into a human readable name."""

    def display_name(self, group_id: str, player: str) -> str: ...


class ChessService:
    """Session manager for the chess games of all groups."""

    def __init__(
        self,
        store: GroupStateStore,
        names: Optional[NameResolver] = None,
        board_image_url: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.names = names
        self.board_image_url = board_image_url or get_settings().board_image_url
        self._rng = rng or random.Random()

    # -- Command logic ---
    def start_game(self, request: StartGameRequest) -> StartGameResponse:
        """Start a game between two players that are both not in a game yet. Colors are assigned by a coin flip."""
        group_id = request.group_id
        if request.player == request.opponent:
            raise UnknownOpponentError("You cannot play yourself!")

        busy_player: Optional[str] = None
        with self.store.write(group_id) as guard:
            state = guard.state
            busy_player = next(
                (p for p in (request.player, request.opponent) if state.is_in_game(p)),
                None,
            )
            if busy_player is not None:
                guard.discard()
            else:
                white, black = (
                    (request.player, request.opponent)
                    if self._rng.getrandbits(1)
                    else (request.opponent, request.player)
                )
                game = Game.new_game(white, black)
                state.add_game(game)
                board = self._board_response(game, white, state.options_for(white))
                guard.commit()

        if busy_player is not None:
            raise AlreadyInGameError(f"{self._name(group_id, busy_player)} is already in a game")

        logger.info("Group %s: new game, %s (white) vs %s (black)", group_id, white, black)
        return StartGameResponse(
            white_player=white,
            black_player=black,
            board=board,
            message=self._to_move_message(group_id, Color.WHITE, white),
        )

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """
        Make a move attempt.
        ----

        1. find the player's game
        2. let the Game parse, resolve, validate and apply the move
        3. remove the game when it ended (checkmate / stalemate)
        4. commit (only then the move counts)
        """
        group_id, player = request.group_id, request.player
        with self.store.write(group_id) as guard:
            state = guard.state
            game = state.game_of(player)
            if game is None:
                guard.discard()
                raise NotInGameError("You aren't in a game")

            try:
                outcome = game.make_move(player, request.notation)
            except GameError as exc:
                guard.discard()
                logger.debug("Group %s: rejected move %r by %s: %s", group_id, request.notation, player, exc)
                raise

            opponent = game.opponent_of(player)
            board = self._board_response(game, opponent, state.options_for(player))
            if outcome.win_state != WinState.ONGOING:
                state.remove_game_of(player)
            guard.commit()

        player_name = self._name(group_id, player)
        opponent_name = self._name(group_id, opponent)
        match outcome.win_state:
            case WinState.CHECKMATE:
                logger.info("Group %s: %s checkmated %s", group_id, player, opponent)
                winner, next_player = player, None
                message = f"Checkmate! {player_name} wins! {opponent_name} lost."
            case WinState.STALEMATE:
                logger.info("Group %s: stalemate between %s and %s", group_id, player, opponent)
                winner, next_player = None, None
                message = f"Stalemate. Draw between {player_name} and {opponent_name}."
            case _:
                winner, next_player = None, opponent
                message = self._to_move_message(group_id, outcome.mover.opponent, opponent)

        return MoveResponse(
            move=outcome.move.to_uci(),
            win_state=outcome.win_state,
            winner=winner,
            next_player=next_player,
            board=board,
            message=message,
        )

    def resign(self, request: ResignRequest) -> ResignResponse:
        """The player's game ends immediately, the opponent wins."""
        group_id, player = request.group_id, request.player
        with self.store.write(group_id) as guard:
            game = guard.state.remove_game_of(player)
            if game is None:
                guard.discard()
                raise NotInGameError("You aren't in a game")
            guard.commit()

        opponent = game.opponent_of(player)
        logger.info("Group %s: %s resigned against %s", group_id, player, opponent)
        return ResignResponse(
            resigned_player=player,
            winner=opponent,
            message=f"{self._name(group_id, player)} resigned, {self._name(group_id, opponent)} wins!",
        )

    def get_board(self, request: BoardRequest) -> BoardResponse:
        """Current board of the player's game, oriented towards that player, and whose turn it is."""
        with self.store.read(request.group_id) as state:
            game = state.game_of(request.player)
            if game is None:
                raise NotInGameError("You aren't in a game")
            options = state.options.get(request.player, DisplayOptions())
            board = self._board_response(game, request.player, options)
            player_to_move = game.player_to_move

        message = self._to_move_message(request.group_id, board.side_to_move, player_to_move)
        return board.model_copy(update={"message": message})

    def list_games(self, group_id: str) -> list[GameSummary]:
        """Show all running games of the group."""
        with self.store.read(group_id) as state:
            return [
                GameSummary(
                    white_player=game.white_player,
                    black_player=game.black_player,
                    side_to_move=game.side_to_move,
                )
                for game in state.games
            ]

    def set_display_option(self, request: SetOptionRequest) -> OptionsResponse:
        """Only `flip` exists: whether the board is shown from the point of view of the player it is addressed to."""
        if request.name != "flip":
            raise InvalidOptionError("Invalid option name. Type chess help for a list of options.")
        if request.value not in OPTION_VALUES:
            raise InvalidOptionError('Invalid option value for "flip"')

        with self.store.write(request.group_id) as guard:
            options = guard.state.options_for(request.player)
            options.flip_board = OPTION_VALUES[request.value]
            flip_board = options.flip_board
            guard.commit()

        return OptionsResponse(
            player=request.player,
            flip_board=flip_board,
            message=(
                f'Option "{request.name}" set to {request.value} '
                f"for {self._name(request.group_id, request.player)}"
            ),
        )

    def get_display_options(self, group_id: str, player: str) -> OptionsResponse:
        with self.store.read(group_id) as state:
            options = state.options.get(player, DisplayOptions())
            return OptionsResponse(player=player, flip_board=options.flip_board)

    # -- Internal helpers --
    def _board_response(
        self, game: Game, viewer: str, options: DisplayOptions
    ) -> BoardResponse:
        view = build_board_view(game, viewer, options, self.board_image_url)
        return BoardResponse(
            fen=view.fen,
            orientation=Color(view.orientation) if view.orientation else None,
            last_move=view.last_move,
            check=view.check,
            url=view.url,
            white_player=game.white_player,
            black_player=game.black_player,
            side_to_move=game.side_to_move,
        )

    def _to_move_message(self, group_id: str, color: Color, player: str) -> str:
        """ex. "Black to move Bob" """
        return f"{color.value.capitalize()} to move {self._name(group_id, player)}"

    def _name(self, group_id: str, player: str) -> str:
        """Human readable name. Lookup failures degrade to a placeholder."""
        if self.names is None:
            return player
        try:
            return self.names.display_name(group_id, player)
        except Exception:
            logger.debug("Could not resolve name of %s in group %s", player, group_id, exc_info=True)
            return UNKNOWN_NAME
