"""Abstract interfaces for the game layer.

The controller depends on :class:`IEngineClient`, not on
:class:`~fishbowl.engine.actor.EngineActor`, so tests can drive it with a
scripted stand-in.
"""

from __future__ import annotations

from enum import IntEnum, auto
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from concurrent.futures import Future

    from fishbowl.engine.actor import Notification, SessionState
    from fishbowl.engine.difficulty import DifficultyLevel
    from fishbowl.engine.protocol import SearchBudget, SetPosition


# ── Game phase FSM states ────────────────────────────────────────────────────


class GamePhase(IntEnum):
    """Finite-state-machine states for a game against the engine."""

    NOT_STARTED = auto()
    AWAITING_MOVE = auto()  # human to move
    THINKING = auto()  # engine is computing
    GAME_OVER = auto()


# ── Engine client protocol ───────────────────────────────────────────────────


class IEngineClient(Protocol):
    """What the controller needs from an engine session."""

    @property
    def state(self) -> SessionState: ...

    def initialize(self) -> Future[None]: ...

    def configure(self, difficulty: DifficultyLevel) -> None: ...

    def new_game(self) -> Future[None]: ...

    def request_best_move(
        self, position: SetPosition, budget: SearchBudget | None = None
    ) -> int: ...

    def poll_or_await(self, request_id: int, timeout: float | None = 0.0) -> object: ...

    def cancel(self, request_id: int) -> bool: ...

    def drain_notifications(self) -> list[Notification]: ...

    def shutdown(self, timeout: float = 5.0) -> None: ...
