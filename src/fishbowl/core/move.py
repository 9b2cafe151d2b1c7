"""Move value object (long algebraic representation)."""

from __future__ import annotations

from dataclasses import dataclass

from fishbowl.core.enums import MoveFlag, PieceType
from fishbowl.core.types import Square, square_name


@dataclass(frozen=True, slots=True)
class Move:
    """Immutable move. The flag is filled in by the move generator."""

    from_sq: Square
    to_sq: Square
    flag: MoveFlag = MoveFlag.NORMAL
    promotion: PieceType | None = None

    def __str__(self) -> str:
        text = square_name(self.from_sq) + square_name(self.to_sq)
        if self.promotion is not None:
            text += self.promotion.letter
        return text

    @property
    def uci(self) -> str:
        """Long algebraic text as spoken on the engine wire, e.g. ``e7e8q``."""
        return str(self)

    @property
    def is_castle(self) -> bool:
        return self.flag.is_castle

    @property
    def is_en_passant(self) -> bool:
        return self.flag == MoveFlag.EN_PASSANT

    @property
    def is_promotion(self) -> bool:
        return self.promotion is not None
