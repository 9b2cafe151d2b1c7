"""Qt binding: pumps engine notifications into the controller on the UI thread."""

from __future__ import annotations

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from fishbowl.core.enums import Color
from fishbowl.core.rules import GameOutcome
from fishbowl.engine.errors import EngineError
from fishbowl.engine.protocol import SearchInfo
from fishbowl.game.controller import GameController
from fishbowl.game.interfaces import GamePhase
from fishbowl.game.state import GameState, MoveRecord

# Centipawn value shown for a forced mate.
MATE_CP = 10_000

_PHASE_STATUS: dict[GamePhase, str] = {
    GamePhase.NOT_STARTED: "Press New Game to start",
    GamePhase.AWAITING_MOVE: "Your move",
    GamePhase.THINKING: "Engine is thinking...",
    GamePhase.GAME_OVER: "Game over",
}


def white_centric_cp(info: SearchInfo, side_to_move: Color) -> int | None:
    """Engine scores are from the mover's side; the eval bar wants White's."""
    if info.score_mate is not None:
        cp = MATE_CP if info.score_mate > 0 else -MATE_CP
    elif info.score_cp is not None:
        cp = info.score_cp
    else:
        return None
    return cp if side_to_move == Color.WHITE else -cp


class EnginePump(QObject):
    """Drives :meth:`GameController.pump` from a ``QTimer``.

    Widgets connect to the signals below and never talk to the engine.
    """

    move_applied = pyqtSignal(str)  # SAN
    game_over = pyqtSignal(str)  # outcome description
    engine_failed = pyqtSignal(str)
    evaluation_changed = pyqtSignal(int)  # centipawns, White's point of view
    status_changed = pyqtSignal(str)

    DEFAULT_INTERVAL_MS = 30

    def __init__(
        self,
        controller: GameController,
        parent: QObject | None = None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._controller = controller
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.pump_once)

        events = controller.events
        events.on_move.append(self._on_move)
        events.on_game_over.append(self._on_game_over)
        events.on_phase_changed.append(self._on_phase_changed)
        events.on_engine_info.append(self._on_engine_info)
        events.on_engine_failed.append(self._on_engine_failed)
        events.on_engine_ready.append(self._on_engine_ready)

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self) -> None:
        if not self._timer.isActive():
            self._timer.start()

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()

    def pump_once(self) -> int:
        return self._controller.pump()

    # ── Controller callbacks ─────────────────────────────────────────────

    def _on_move(self, record: MoveRecord, _state: GameState) -> None:
        self.move_applied.emit(record.san)

    def _on_game_over(self, outcome: GameOutcome) -> None:
        self.game_over.emit(outcome.description)
        self.status_changed.emit(outcome.description)

    def _on_phase_changed(self, phase: GamePhase) -> None:
        if phase != GamePhase.GAME_OVER:
            self.status_changed.emit(_PHASE_STATUS[phase])

    def _on_engine_info(self, info: SearchInfo) -> None:
        cp = white_centric_cp(info, self._controller.state.side_to_move)
        if cp is not None:
            self.evaluation_changed.emit(cp)

    def _on_engine_failed(self, error: EngineError) -> None:
        message = f"Engine error: {error}. Playing without the engine."
        self.engine_failed.emit(str(error))
        self.status_changed.emit(message)

    def _on_engine_ready(self, name: str | None) -> None:
        self.status_changed.emit(f"{name or 'Engine'} ready")
