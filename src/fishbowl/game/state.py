"""Game state: an immutable record of one game, extended move by move."""

from __future__ import annotations

from dataclasses import dataclass, field

from fishbowl.core.enums import Color, GameResult, OutcomeKind
from fishbowl.core.move import Move
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.notation import (
    STARTING_FEN,
    move_to_san,
    parse_uci_move,
    position_from_fen,
    position_to_fen,
)
from fishbowl.core.position import Position
from fishbowl.core.rules import ONGOING, GameOutcome, Rules
from fishbowl.core.types import Square
from fishbowl.engine.protocol import SetPosition, encode


class IllegalMoveError(ValueError):
    """The move is not legal in the current position."""


class GameOverError(IllegalMoveError):
    """The game is already decided; no further moves or resignations."""


@dataclass(frozen=True, slots=True)
class MoveRecord:
    """A single entry in the move history."""

    move: Move
    uci: str
    san: str
    fen_after: str
    was_check: bool = False
    was_capture: bool = False


@dataclass(frozen=True, slots=True)
class GameState:
    """One game: start position, every position reached, history, outcome.

    Instances never change. :meth:`apply_move` and :meth:`resign` return a
    new state; a rejected move leaves the receiver untouched. Positions held
    here must not be mutated; :meth:`position_at` hands out copies.
    """

    start_fen: str
    positions: tuple[Position, ...]
    history: tuple[MoveRecord, ...] = ()
    outcome: GameOutcome = ONGOING
    legal: tuple[Move, ...] = field(default=(), repr=False, compare=False)

    # ── Construction ─────────────────────────────────────────────────────

    @classmethod
    def new(cls, fen: str | None = None) -> GameState:
        """Fresh game from *fen* (standard start when omitted).

        Raises ``ValueError`` for malformed FEN or an impossible position.
        """
        position = position_from_fen(fen or STARTING_FEN)
        if not position.board.kings_present():
            raise ValueError("Position needs exactly one king per side")
        if MoveGenerator(position).is_in_check(position.side_to_move.opposite):
            raise ValueError("Side not to move is in check")
        return cls._build(position_to_fen(position), (position,), ())

    @classmethod
    def _build(
        cls,
        start_fen: str,
        positions: tuple[Position, ...],
        history: tuple[MoveRecord, ...],
    ) -> GameState:
        current = positions[-1]
        legal = tuple(MoveGenerator(current.copy()).generate_legal_moves())
        key = current.zobrist_hash
        repetitions = sum(1 for p in positions if p.zobrist_hash == key)
        outcome = Rules.outcome(current, repetitions)
        return cls(start_fen, positions, history, outcome, legal)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def position(self) -> Position:
        """Current position. Treat as read-only."""
        return self.positions[-1]

    @property
    def side_to_move(self) -> Color:
        return self.position.side_to_move

    @property
    def fen(self) -> str:
        return position_to_fen(self.position)

    @property
    def is_check(self) -> bool:
        return Rules.is_in_check(self.position)

    @property
    def is_over(self) -> bool:
        return self.outcome.is_over

    @property
    def result(self) -> GameResult:
        return self.outcome.game_result

    @property
    def ply_count(self) -> int:
        """Number of half-moves played."""
        return len(self.history)

    @property
    def last_move(self) -> Move | None:
        return self.history[-1].move if self.history else None

    @property
    def repetition_count(self) -> int:
        """How many times the current position has occurred."""
        key = self.position.zobrist_hash
        return sum(1 for p in self.positions if p.zobrist_hash == key)

    def position_at(self, ply: int) -> Position:
        """Copy of the position after *ply* half-moves (0 = start)."""
        if not 0 <= ply < len(self.positions):
            raise IndexError(f"No position at ply {ply}")
        return self.positions[ply].copy()

    def legal_moves(self) -> list[Move]:
        """Legal moves in a stable order; empty once the game is over."""
        if self.is_over:
            return []
        return list(self.legal)

    def legal_moves_from(self, square: Square) -> list[Move]:
        """Legal moves of the piece on *square* (for selection highlights)."""
        return [m for m in self.legal_moves() if m.from_sq == square]

    def find_move(self, text: str) -> Move:
        """Resolve long algebraic *text* to a legal move or raise ``IllegalMoveError``.

        Raises the ``GameOverError`` subclass once the game is decided.
        """
        if self.is_over:
            raise GameOverError(f"Game is over: {self.outcome}")
        try:
            return parse_uci_move(text, self.legal_moves())
        except ValueError as exc:
            raise IllegalMoveError(str(exc)) from None

    # ── Transitions ──────────────────────────────────────────────────────

    def apply_move(self, move: Move) -> GameState:
        """Play *move* and return the successor state."""
        if self.is_over:
            raise GameOverError(f"Game is over: {self.outcome}")
        legal_move = self.find_move(move.uci)

        scratch = self.position.copy()
        board = scratch.board
        was_capture = board[legal_move.to_sq] is not None or legal_move.is_en_passant
        san = move_to_san(scratch, legal_move, self.legal)
        scratch.make_move(legal_move)
        after = scratch.copy()

        record = MoveRecord(
            move=legal_move,
            uci=legal_move.uci,
            san=san,
            fen_after=position_to_fen(after),
            was_check=san.endswith(("+", "#")),
            was_capture=was_capture,
        )
        return GameState._build(
            self.start_fen, self.positions + (after,), self.history + (record,)
        )

    def apply_uci(self, text: str) -> GameState:
        return self.apply_move(self.find_move(text))

    def resign(self, color: Color) -> GameState:
        """*color* gives up; the opponent wins."""
        if self.is_over:
            raise GameOverError(f"Game is over: {self.outcome}")
        outcome = GameOutcome(OutcomeKind.RESIGNED, color.opposite)
        return GameState(self.start_fen, self.positions, self.history, outcome, self.legal)

    # ── Engine hand-off ──────────────────────────────────────────────────

    def engine_position(self) -> SetPosition:
        """The ``position`` command describing this game."""
        fen = None if self.start_fen == STARTING_FEN else self.start_fen
        return SetPosition(fen=fen, moves=tuple(r.uci for r in self.history))

    def to_engine_position_string(self) -> str:
        return encode(self.engine_position())
