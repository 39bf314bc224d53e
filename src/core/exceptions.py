"""
Exceptions raised across the layers.

Everything deriving from GameError is caused by user input: the message is meant to be shown to the player as-is,
and the state of the group is never changed when one is raised.
RepositoryError (and PersistenceError) are system level failures.
"""


class GameError(Exception):
    """Base class for all errors caused by a player's request."""


# --- NOTATION / RESOLUTION ---
class MoveSyntaxError(GameError):
    """The move text could not be parsed."""


class AmbiguousMoveError(GameError):
    """More than one piece matches a move written in standard notation."""


class InvalidMoveError(GameError):
    """No piece can make the requested move."""


class UnexpectedPromotionError(GameError):
    """A promotion piece was given for a move that does not promote."""


class MissingPromotionError(GameError):
    """A pawn reaches the last rank, but no promotion piece was given."""


class IllegalMoveError(GameError):
    """The move leaves the own king in check or violates castling preconditions."""


# --- SESSION ---
class NotYourTurnError(GameError):
    pass


class NotInGameError(GameError):
    pass


class AlreadyInGameError(GameError):
    pass


class UnknownOpponentError(GameError):
    """Raised when a player tries to start a game against themselves."""


class InvalidOptionError(GameError):
    pass


# --- ENCODING / REQUESTS ---
class InvalidFENError(GameError):
    pass


class InvalidRequestError(GameError, ValueError):
    """ValueError as well, so pydantic validators turn it into a ValidationError."""


# --- SYSTEM ---
class RepositoryError(Exception):
    """Reading from or writing to the persistence layer failed."""


class PersistenceError(RepositoryError):
    """Committing a mutation failed. The mutation has been discarded."""


class GuardDisciplineError(RuntimeError):
    """
    An exclusive state guard went out of scope without being committed or discarded, or was resolved twice.
    This is a programming error, never a runtime condition to recover from.
    """
