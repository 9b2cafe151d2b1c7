"""Exception hierarchy for the engine communication subsystem."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every failure raised by :mod:`fishbowl.engine`."""


class ProcessSpawnError(EngineError):
    """The engine binary could not be started."""


class EngineNotFoundError(ProcessSpawnError):
    """No candidate path resolved to an executable engine binary."""

    def __init__(self, tried: list[str]) -> None:
        self.tried = tried
        listing = ", ".join(tried) if tried else "(nothing)"
        super().__init__(
            f"No chess engine found; tried {listing}. "
            "Install Stockfish or pass an explicit engine path."
        )


class PipeClosedError(EngineError):
    """The engine's stdin is gone; nothing more can be sent."""


class ProcessExitedError(EngineError):
    """The engine process exited or closed its stdout."""


class EngineTimeoutError(EngineError):
    """The engine did not answer within its wall-clock ceiling."""


class EngineInitError(EngineError):
    """The UCI handshake failed for a reason other than a timeout."""


class EngineFatalError(EngineError):
    """The engine reported an error it cannot recover from."""


class EngineClosedError(EngineError):
    """The session is closed; restart the engine to continue."""


class EngineNotReadyError(EngineError):
    """A search was requested before the handshake completed."""


class BusyError(EngineError):
    """A search is already outstanding; cancel it first."""


class RequestCancelledError(EngineError):
    """The awaited request was cancelled by the caller."""
