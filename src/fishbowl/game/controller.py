"""GameController: sequences the human's and the engine's turns.

Owns the :class:`GameState` and the engine client. Emits events via simple
callbacks so the UI / tests can subscribe. Every method is meant to be
called from one thread (the UI thread); engine results are picked up by
:meth:`GameController.pump`, which never blocks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from fishbowl.core.enums import Color
from fishbowl.core.move import Move
from fishbowl.core.rules import GameOutcome
from fishbowl.engine.actor import (
    BestMoveReply,
    EngineFailed,
    EngineReady,
    RequestDiscarded,
    SearchProgress,
)
from fishbowl.engine.difficulty import DifficultyLevel
from fishbowl.engine.errors import (
    BusyError,
    EngineError,
    EngineFatalError,
    EngineNotReadyError,
)
from fishbowl.engine.protocol import SearchInfo
from fishbowl.engine.settings import EngineSettings
from fishbowl.game.interfaces import GamePhase, IEngineClient
from fishbowl.game.state import GameState, IllegalMoveError, MoveRecord

_LOGGER = logging.getLogger(__name__)

# ── Event definitions ────────────────────────────────────────────────────────

MoveCallback = Callable[[MoveRecord, GameState], None]
GameOverCallback = Callable[[GameOutcome], None]
PhaseCallback = Callable[[GamePhase], None]
EngineInfoCallback = Callable[[SearchInfo], None]
EngineFailedCallback = Callable[[EngineError], None]
EngineReadyCallback = Callable[[str | None], None]


@dataclass
class GameEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_move: list[MoveCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)
    on_phase_changed: list[PhaseCallback] = field(default_factory=list)
    on_engine_info: list[EngineInfoCallback] = field(default_factory=list)
    on_engine_failed: list[EngineFailedCallback] = field(default_factory=list)
    on_engine_ready: list[EngineReadyCallback] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _PendingSearch:
    request_id: int
    state: GameState  # the exact state the engine was asked about


# ── Controller ───────────────────────────────────────────────────────────────


class GameController:
    """Plays one human against one engine session.

    Without an engine (or after it failed) the controller runs in
    local-only mode and the human moves for both sides.
    """

    __slots__ = (
        "_state",
        "_phase",
        "_human_color",
        "_engine",
        "_settings",
        "_pending",
        "_search_deferred",
        "_local_only",
        "events",
    )

    def __init__(
        self,
        engine: IEngineClient | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self._state = GameState.new()
        self._phase = GamePhase.NOT_STARTED
        self._human_color = Color.WHITE
        self._engine = engine
        self._settings = settings if settings is not None else EngineSettings()
        self._pending: _PendingSearch | None = None
        self._search_deferred = False
        self._local_only = engine is None
        self.events = GameEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def human_color(self) -> Color:
        return self._human_color

    @property
    def engine(self) -> IEngineClient | None:
        return self._engine

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def is_local_only(self) -> bool:
        return self._local_only

    @property
    def pending_request_id(self) -> int | None:
        return self._pending.request_id if self._pending else None

    @property
    def is_engine_turn(self) -> bool:
        return not self._local_only and self._state.side_to_move != self._human_color

    # ── Game lifecycle ───────────────────────────────────────────────────

    def new_game(self, human_color: Color = Color.WHITE, fen: str | None = None) -> None:
        """Start over. Raises ``ValueError`` for a bad *fen* (nothing changes then)."""
        state = GameState.new(fen)
        self._cancel_pending()
        self._state = state
        self._human_color = human_color
        if self._engine is not None and not self._local_only:
            try:
                self._engine.new_game()
            except EngineNotReadyError:
                pass  # nothing to reset yet
            except EngineError as exc:
                _LOGGER.warning("Engine could not start a new game: %s", exc)
        self._set_phase(GamePhase.AWAITING_MOVE)
        self._prompt()

    def flip_sides(self) -> None:
        """Swap colors with the engine; it moves next if it is now its turn."""
        self._cancel_pending()
        self._human_color = self._human_color.opposite
        if self._phase not in (GamePhase.NOT_STARTED, GamePhase.GAME_OVER):
            self._prompt()

    def resign(self) -> bool:
        """The human resigns."""
        if self._phase == GamePhase.NOT_STARTED or self._state.is_over:
            return False
        self._cancel_pending()
        self._state = self._state.resign(self._human_color)
        self._finish()
        return True

    def set_difficulty(self, level: DifficultyLevel) -> None:
        self._settings.difficulty = level
        if self._engine is not None and not self._local_only:
            self._engine.configure(level)

    def attach_engine(self, engine: IEngineClient) -> None:
        """Use *engine* from now on (e.g. a restart after a failure)."""
        if self._engine is not None and self._engine is not engine:
            self._cancel_pending()
            self._engine.shutdown()
        self._engine = engine
        self._local_only = False
        self._search_deferred = False
        engine.configure(self._settings.difficulty)
        engine.initialize()
        if self._phase == GamePhase.AWAITING_MOVE and not self._state.is_over:
            self._prompt()

    def shutdown(self) -> None:
        self._cancel_pending()
        if self._engine is not None:
            self._engine.shutdown()

    # ── Human input ──────────────────────────────────────────────────────

    def submit_move(self, move: Move) -> bool:
        """Apply a human move. Returns True if it was legal and applied."""
        if self._phase in (GamePhase.NOT_STARTED, GamePhase.GAME_OVER):
            return False
        if self._pending is not None or self.is_engine_turn:
            return False
        try:
            state = self._state.apply_move(move)
        except IllegalMoveError:
            return False
        self._advance(state)
        return True

    def submit_uci(self, text: str) -> bool:
        try:
            move = self._state.find_move(text)
        except IllegalMoveError:
            return False
        return self.submit_move(move)

    # ── Engine notifications ─────────────────────────────────────────────

    def pump(self) -> int:
        """Handle pending engine notifications. Returns how many were seen."""
        if self._engine is None:
            return 0
        notifications = self._engine.drain_notifications()
        for note in notifications:
            if isinstance(note, BestMoveReply):
                self._on_best_move(note)
            elif isinstance(note, SearchProgress):
                if self._pending is not None and note.request_id == self._pending.request_id:
                    for cb in self.events.on_engine_info:
                        cb(note.info)
            elif isinstance(note, RequestDiscarded):
                self._on_discarded()
            elif isinstance(note, EngineReady):
                self._on_ready(note)
            elif isinstance(note, EngineFailed):
                self._engine_failed(note.error)
        return len(notifications)

    def _on_best_move(self, reply: BestMoveReply) -> None:
        pending = self._pending
        if (
            pending is None
            or reply.request_id != pending.request_id
            or pending.state is not self._state
        ):
            _LOGGER.debug("Dropping stale reply for request %d", reply.request_id)
            return
        self._pending = None
        if reply.move is None:
            self._engine_failed(EngineFatalError("Engine returned no move in an ongoing game"))
            return
        try:
            state = self._state.apply_uci(reply.move)
        except IllegalMoveError:
            self._engine_failed(EngineFatalError(f"Engine played an illegal move: {reply.move}"))
            return
        self._advance(state)

    def _on_discarded(self) -> None:
        if not self._search_deferred:
            return
        self._search_deferred = False
        if self._phase == GamePhase.THINKING and self.is_engine_turn:
            self._request_engine_move()

    def _on_ready(self, note: EngineReady) -> None:
        for cb in self.events.on_engine_ready:
            cb(note.engine_name)
        if (
            self._phase == GamePhase.THINKING
            and self._pending is None
            and self.is_engine_turn
        ):
            self._request_engine_move()

    def _engine_failed(self, error: EngineError) -> None:
        if self._local_only:
            return
        _LOGGER.warning("Engine failed, continuing without it: %s", error)
        self._local_only = True
        self._pending = None
        self._search_deferred = False
        if self._engine is not None:
            self._engine.shutdown()
        for cb in self.events.on_engine_failed:
            cb(error)
        if not self._state.is_over and self._phase != GamePhase.NOT_STARTED:
            self._set_phase(GamePhase.AWAITING_MOVE)

    # ── Internal helpers ─────────────────────────────────────────────────

    def _advance(self, state: GameState) -> None:
        self._state = state
        record = state.history[-1]
        for cb in self.events.on_move:
            cb(record, state)
        if state.is_over:
            self._finish()
        else:
            self._prompt()

    def _prompt(self) -> None:
        """Hand the turn to whoever is to move."""
        if self._state.is_over:
            self._finish()
        elif self.is_engine_turn:
            self._set_phase(GamePhase.THINKING)
            self._request_engine_move()
        else:
            self._set_phase(GamePhase.AWAITING_MOVE)

    def _request_engine_move(self) -> None:
        assert self._engine is not None
        if self._pending is not None:
            return
        try:
            request_id = self._engine.request_best_move(
                self._state.engine_position(), self._settings.search_budget()
            )
        except BusyError:
            # A cancelled search is still draining; retry on RequestDiscarded.
            self._search_deferred = True
            return
        except EngineNotReadyError:
            return  # retried on EngineReady
        except EngineError as exc:
            self._engine_failed(exc)
            return
        self._pending = _PendingSearch(request_id, self._state)

    def _cancel_pending(self) -> None:
        pending = self._pending
        self._pending = None
        if pending is not None and self._engine is not None:
            self._engine.cancel(pending.request_id)

    def _finish(self) -> None:
        self._set_phase(GamePhase.GAME_OVER)
        for cb in self.events.on_game_over:
            cb(self._state.outcome)

    def _set_phase(self, phase: GamePhase) -> None:
        if phase == self._phase:
            return
        self._phase = phase
        for cb in self.events.on_phase_changed:
            cb(phase)
