"""Engine communication: UCI codec, process handle and the session actor."""

from fishbowl.engine.actor import (
    STILL_SEARCHING,
    BestMoveReply,
    EngineActor,
    EngineFailed,
    EngineReady,
    EngineRequest,
    Notification,
    RequestDiscarded,
    SearchProgress,
    SessionState,
)
from fishbowl.engine.difficulty import DifficultyLevel
from fishbowl.engine.errors import (
    BusyError,
    EngineClosedError,
    EngineError,
    EngineFatalError,
    EngineInitError,
    EngineNotFoundError,
    EngineNotReadyError,
    EngineTimeoutError,
    PipeClosedError,
    ProcessExitedError,
    ProcessSpawnError,
    RequestCancelledError,
)
from fishbowl.engine.locate import DEFAULT_CANDIDATES, find_engine_binary
from fishbowl.engine.process import EngineProcess
from fishbowl.engine.protocol import SearchBudget, SearchInfo, SetPosition
from fishbowl.engine.settings import EngineSettings

__all__ = [
    "STILL_SEARCHING",
    "BestMoveReply",
    "BusyError",
    "DEFAULT_CANDIDATES",
    "DifficultyLevel",
    "EngineActor",
    "EngineClosedError",
    "EngineError",
    "EngineFailed",
    "EngineFatalError",
    "EngineInitError",
    "EngineNotFoundError",
    "EngineNotReadyError",
    "EngineProcess",
    "EngineReady",
    "EngineRequest",
    "EngineSettings",
    "EngineTimeoutError",
    "Notification",
    "PipeClosedError",
    "ProcessExitedError",
    "ProcessSpawnError",
    "RequestCancelledError",
    "RequestDiscarded",
    "SearchBudget",
    "SearchInfo",
    "SearchProgress",
    "SessionState",
    "SetPosition",
    "find_engine_binary",
]
