"""
Parsing of move text typed by players.

Two forms are accepted, tried in this order:

1. Standard (algebraic) notation
    * castling: "0-0-0" / "0-0" (also written with the letter O). Queenside is tried first, so it never gets read as
      kingside.
    * pawn push: "e4"
    * pawn capture: "exd5" (the source file). An uppercase "B" is always a bishop, never the b-file.
    * piece moves: "Nf3", "Nxf3", and with a source file or rank to tell two pieces apart: "Nbd2", "R1e2".
      Piece letters may be lower case as well.
2. Simple notation: source square, an optional separator (space, "-", "x"), destination square: "e2e4", "g1-f3".

Both may end in a promotion suffix ("=Q") followed by a check/mate marker ("+", "++", "#"), which is ignored.

The parser does not look at the board. Turning the parsed intent into concrete squares is done by resolver.py
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from src.chess.pieces import FEN_TO_PIECE
from src.chess.square import Square
from src.core.exceptions import MoveSyntaxError
from src.core.logger import get_logger
from src.core.shared_types import PieceType

logger = get_logger(__name__)


@dataclass(frozen=True)
class CastleIntent:
    kingside: bool


@dataclass(frozen=True)
class PieceIntent:
    """A piece type moving to a square. The source file/rank (zero based) only narrow down the candidates."""

    piece_type: PieceType
    destination: Square
    source_file: Optional[int] = None
    source_rank: Optional[int] = None


@dataclass(frozen=True)
class SquaresIntent:
    source: Square
    destination: Square


MoveIntent = Union[CastleIntent, PieceIntent, SquaresIntent]


@dataclass(frozen=True)
class ParsedMove:
    intent: MoveIntent
    promotion: Optional[PieceType] = None


# --- GRAMMAR ---
_FILE = "[a-hA-H]"
_RANK = "[1-8]"
_SQUARE = f"{_FILE}{_RANK}"
_SUFFIX = r"(?:=(?P<promotion>[qQrRbBnN]))?(?:\+\+|\+|#)?"

_CASTLE = re.compile(rf"(?P<castle>0-0-0|O-O-O|0-0|O-O){_SUFFIX}")
_PAWN_PUSH = re.compile(rf"(?P<destination>{_SQUARE}){_SUFFIX}")
_PAWN_CAPTURE = re.compile(
    rf"(?!B)(?P<source_file>{_FILE})[xX](?P<destination>{_SQUARE}){_SUFFIX}"
)
# A lowercase "b" followed by two squares ("b2b4", "b2xc3") is a pawn move in simple notation, not a bishop.
_PIECE_MOVE = re.compile(
    rf"(?!b{_RANK}[xX]?{_SQUARE})(?P<piece>[pPnNbBrRqQkK])"
    rf"(?:(?P<source_file>{_FILE})|(?P<source_rank>{_RANK}))?"
    rf"[xX]?(?P<destination>{_SQUARE}){_SUFFIX}"
)
_SIMPLE_MOVE = re.compile(
    rf"(?P<source>{_SQUARE})[ \-xX]?(?P<destination>{_SQUARE}){_SUFFIX}"
)


def _file_index(character: str) -> int:
    return ord(character.lower()) - ord("a")


def _promotion(match: re.Match[str]) -> Optional[PieceType]:
    letter = match.group("promotion")
    return FEN_TO_PIECE[letter.lower()] if letter else None


def _parse_standard(text: str) -> Optional[ParsedMove]:
    if match := _CASTLE.fullmatch(text):
        kingside = match.group("castle") in ("0-0", "O-O")
        return ParsedMove(CastleIntent(kingside=kingside), _promotion(match))

    if match := _PAWN_PUSH.fullmatch(text):
        destination = Square.from_algebraic(match.group("destination"))
        return ParsedMove(PieceIntent(PieceType.PAWN, destination), _promotion(match))

    if match := _PAWN_CAPTURE.fullmatch(text):
        destination = Square.from_algebraic(match.group("destination"))
        intent = PieceIntent(
            PieceType.PAWN,
            destination,
            source_file=_file_index(match.group("source_file")),
        )
        return ParsedMove(intent, _promotion(match))

    if match := _PIECE_MOVE.fullmatch(text):
        source_file = match.group("source_file")
        source_rank = match.group("source_rank")
        intent = PieceIntent(
            FEN_TO_PIECE[match.group("piece").lower()],
            Square.from_algebraic(match.group("destination")),
            source_file=_file_index(source_file) if source_file else None,
            source_rank=int(source_rank) - 1 if source_rank else None,
        )
        return ParsedMove(intent, _promotion(match))

    return None


def _parse_simple(text: str) -> Optional[ParsedMove]:
    match = _SIMPLE_MOVE.fullmatch(text)
    if match is None:
        return None
    intent = SquaresIntent(
        Square.from_algebraic(match.group("source")),
        Square.from_algebraic(match.group("destination")),
    )
    return ParsedMove(intent, _promotion(match))


def parse_move(text: str) -> ParsedMove:
    """Parse a single move. Raises MoveSyntaxError when neither notation matches (never returns partial results)."""
    stripped = text.strip()
    parsed = _parse_standard(stripped) or _parse_simple(stripped)
    if parsed is None:
        logger.debug("Could not parse move text %r", text)
        raise MoveSyntaxError("Invalid syntax")
    return parsed
