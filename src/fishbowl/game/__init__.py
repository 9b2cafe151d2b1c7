"""Game management layer: immutable game state and the turn coordinator.

Quick start::

    from fishbowl.engine import EngineActor, EngineSettings
    from fishbowl.game import GameController

    settings = EngineSettings()
    actor = EngineActor(settings)
    actor.initialize()
    ctrl = GameController(actor, settings)
    ctrl.new_game(human_color=Color.WHITE)
    ctrl.submit_uci("e2e4")
    ...
    ctrl.pump()  # from a UI timer
"""

from fishbowl.game.controller import GameController, GameEvents
from fishbowl.game.interfaces import GamePhase, IEngineClient
from fishbowl.game.state import GameOverError, GameState, IllegalMoveError, MoveRecord

__all__ = [
    # Interfaces
    "GamePhase",
    "IEngineClient",
    # Concrete
    "GameController",
    "GameEvents",
    "GameOverError",
    "GameState",
    "IllegalMoveError",
    "MoveRecord",
]
