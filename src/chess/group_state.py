"""
All chess related state of one group: the running games and the players' display options.

Invariant: a player takes part in at most one of the games.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.game import Game
from src.core.models import DisplayOptionsModel, GroupStateModel


@dataclass
class DisplayOptions:
    """Per player, independent of any game. Survives the end of a game."""

    flip_board: bool = True


@dataclass
class GroupGameState:
    games: list[Game] = field(default_factory=list)
    options: dict[str, DisplayOptions] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: GroupStateModel) -> Self:
        return cls(
            games=[Game.from_model(game) for game in model.games],
            options={
                player: DisplayOptions(flip_board=options.flip_board)
                for player, options in model.options.items()
            },
        )

    def to_model(self) -> GroupStateModel:
        return GroupStateModel(
            games=[game.to_model() for game in self.games],
            options={
                player: DisplayOptionsModel(flip_board=options.flip_board)
                for player, options in self.options.items()
            },
        )

    def game_of(self, player: str) -> Optional[Game]:
        return next((game for game in self.games if game.has_player(player)), None)

    def is_in_game(self, player: str) -> bool:
        return self.game_of(player) is not None

    def add_game(self, game: Game) -> None:
        self.games.append(game)

    def remove_game_of(self, player: str) -> Optional[Game]:
        game = self.game_of(player)
        if game is not None:
            self.games = [other for other in self.games if other is not game]
        return game

    def options_for(self, player: str) -> DisplayOptions:
        """Options get created on first use"""
        return self.options.setdefault(player, DisplayOptions())
