"""Enumerations of the chess domain: sides, pieces, move kinds, results."""

from __future__ import annotations

from enum import IntEnum, IntFlag, auto


class Color(IntEnum):
    WHITE = 0
    BLACK = 1

    @property
    def opposite(self) -> Color:
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Square-index step of this side's pawn push."""
        return 8 if self is Color.WHITE else -8

    @property
    def fen_letter(self) -> str:
        return "w" if self is Color.WHITE else "b"

    @classmethod
    def from_fen_letter(cls, letter: str) -> Color:
        for color in cls:
            if color.fen_letter == letter:
                return color
        raise ValueError(f"Invalid FEN side-to-move field: {letter!r}")

    def __str__(self) -> str:
        return self.name.lower()


class PieceType(IntEnum):
    """Piece kinds; the value doubles as an index into glyph strings (1-based)."""

    PAWN = 1
    KNIGHT = 2
    BISHOP = 3
    ROOK = 4
    QUEEN = 5
    KING = 6

    @property
    def letter(self) -> str:
        """Lowercase FEN letter, also the promotion suffix in long algebraic text."""
        return "pnbrqk"[self - 1]

    @classmethod
    def from_letter(cls, letter: str) -> PieceType | None:
        """Case-insensitive inverse of :attr:`letter`; ``None`` when unknown."""
        index = "pnbrqk".find(letter.lower()) if len(letter) == 1 else -1
        return cls(index + 1) if index >= 0 else None


class MoveFlag(IntEnum):
    NORMAL = 0
    DOUBLE_PAWN = 1
    EN_PASSANT = 2
    CASTLE_KINGSIDE = 3
    CASTLE_QUEENSIDE = 4
    PROMOTION = 5

    @property
    def is_castle(self) -> bool:
        return self in (MoveFlag.CASTLE_KINGSIDE, MoveFlag.CASTLE_QUEENSIDE)


class CastlingRights(IntFlag):
    """Which castling moves remain available, one bit per side and wing."""

    NONE = 0
    WHITE_KINGSIDE = auto()
    WHITE_QUEENSIDE = auto()
    BLACK_KINGSIDE = auto()
    BLACK_QUEENSIDE = auto()

    WHITE_BOTH = WHITE_KINGSIDE | WHITE_QUEENSIDE
    BLACK_BOTH = BLACK_KINGSIDE | BLACK_QUEENSIDE
    ALL = WHITE_BOTH | BLACK_BOTH

    @classmethod
    def for_color(cls, color: Color) -> CastlingRights:
        return cls.WHITE_BOTH if color is Color.WHITE else cls.BLACK_BOTH


class GameResult(IntEnum):
    """Who scored. See :class:`OutcomeKind` for why."""

    IN_PROGRESS = 0
    WHITE_WINS = 1
    BLACK_WINS = 2
    DRAW = 3

    @property
    def score(self) -> str:
        """Result token as written at the end of a game record, e.g. ``1-0``."""
        return ("*", "1-0", "0-1", "1/2-1/2")[self]


class OutcomeKind(IntEnum):
    ONGOING = 0
    CHECKMATE = auto()
    STALEMATE = auto()
    DRAW_BY_REPETITION = auto()
    DRAW_BY_FIFTY_MOVE = auto()
    DRAW_BY_INSUFFICIENT_MATERIAL = auto()
    RESIGNED = auto()
