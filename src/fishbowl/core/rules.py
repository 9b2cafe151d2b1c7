"""High-level chess rules: legality, checkmate, stalemate and draw detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fishbowl.core.enums import Color, GameResult, OutcomeKind, PieceType
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.types import is_light_square

if TYPE_CHECKING:
    from fishbowl.core.move import Move
    from fishbowl.core.position import Position

_DESCRIPTIONS: dict[OutcomeKind, str] = {
    OutcomeKind.ONGOING: "Game in progress",
    OutcomeKind.CHECKMATE: "Checkmate",
    OutcomeKind.STALEMATE: "Draw by stalemate",
    OutcomeKind.DRAW_BY_REPETITION: "Draw by threefold repetition",
    OutcomeKind.DRAW_BY_FIFTY_MOVE: "Draw by the fifty-move rule",
    OutcomeKind.DRAW_BY_INSUFFICIENT_MATERIAL: "Draw by insufficient material",
    OutcomeKind.RESIGNED: "Resignation",
}


@dataclass(frozen=True, slots=True)
class GameOutcome:
    """Why the game ended (or that it has not), plus the winner if any."""

    kind: OutcomeKind = OutcomeKind.ONGOING
    winner: Color | None = None

    @property
    def is_over(self) -> bool:
        return self.kind != OutcomeKind.ONGOING

    @property
    def game_result(self) -> GameResult:
        if self.kind == OutcomeKind.ONGOING:
            return GameResult.IN_PROGRESS
        if self.winner == Color.WHITE:
            return GameResult.WHITE_WINS
        if self.winner == Color.BLACK:
            return GameResult.BLACK_WINS
        return GameResult.DRAW

    @property
    def description(self) -> str:
        text = _DESCRIPTIONS[self.kind]
        if self.winner is not None:
            text += f": {str(self.winner).capitalize()} wins"
        return text

    def __str__(self) -> str:
        return self.description


ONGOING = GameOutcome()


class Rules:
    """Static rule-checker that operates on a :class:`Position`.

    Draws by threefold repetition and the fifty-move rule are applied
    automatically; there is no separate claim step.
    """

    @staticmethod
    def legal_moves(position: Position) -> frozenset[Move]:
        """The set of legal moves. Never touches *position* itself."""
        return frozenset(MoveGenerator(position.copy()).generate_legal_moves())

    @staticmethod
    def is_in_check(position: Position) -> bool:
        return MoveGenerator(position).is_in_check(position.side_to_move)

    @staticmethod
    def has_legal_moves(position: Position) -> bool:
        return bool(MoveGenerator(position.copy()).generate_legal_moves())

    @staticmethod
    def is_checkmate(position: Position) -> bool:
        return Rules.is_in_check(position) and not Rules.has_legal_moves(position)

    @staticmethod
    def is_stalemate(position: Position) -> bool:
        return not Rules.is_in_check(position) and not Rules.has_legal_moves(position)

    @staticmethod
    def is_insufficient_material(position: Position) -> bool:
        """K vs K, K+minor vs K, or only bishops left, all on one square color."""
        board = position.board
        for color in Color:
            for pt in (PieceType.PAWN, PieceType.ROOK, PieceType.QUEEN):
                if board.has_piece(color, pt):
                    return False

        knights = sum(board.count(color, PieceType.KNIGHT) for color in Color)
        bishops = [sq for color in Color for sq in board.pieces(color, PieceType.BISHOP)]
        if knights + len(bishops) <= 1:
            return True
        if knights:
            return False
        return len({is_light_square(sq) for sq in bishops}) == 1

    @staticmethod
    def is_fifty_move_rule(position: Position) -> bool:
        return position.halfmove_clock >= 100  # 100 half-moves = 50 full moves

    @staticmethod
    def outcome(position: Position, repetitions: int = 1) -> GameOutcome:
        """Classify *position*; *repetitions* is how often it has occurred so far."""
        if not Rules.has_legal_moves(position):
            if Rules.is_in_check(position):
                return GameOutcome(OutcomeKind.CHECKMATE, position.side_to_move.opposite)
            return GameOutcome(OutcomeKind.STALEMATE)
        if Rules.is_insufficient_material(position):
            return GameOutcome(OutcomeKind.DRAW_BY_INSUFFICIENT_MATERIAL)
        if repetitions >= 3:
            return GameOutcome(OutcomeKind.DRAW_BY_REPETITION)
        if Rules.is_fifty_move_rule(position):
            return GameOutcome(OutcomeKind.DRAW_BY_FIFTY_MOVE)
        return ONGOING

    @staticmethod
    def game_result(position: Position) -> GameResult:
        return Rules.outcome(position).game_result
