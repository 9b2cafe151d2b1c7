"""Engine binary resolution."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Sequence

from fishbowl.engine.errors import EngineNotFoundError

_LOGGER = logging.getLogger(__name__)

DEFAULT_CANDIDATES: tuple[str, ...] = (
    "./stockfish",
    "~/bin/stockfish",
    "/usr/local/bin/stockfish",
    "/opt/homebrew/bin/stockfish",
    "/usr/bin/stockfish",
    "/usr/games/stockfish",
)


def is_executable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def find_engine_binary(
    candidates: Sequence[str] = DEFAULT_CANDIDATES,
    name: str = "stockfish",
    explicit: str | None = None,
) -> str:
    """Return the first existing executable engine binary.

    Order: *explicit*, then *candidates* (``~`` expanded), then a ``PATH``
    lookup of *name*. Raises :class:`EngineNotFoundError` listing every
    location tried.
    """
    tried: list[str] = []
    ordered = [explicit] if explicit else []
    ordered.extend(candidates)
    for raw in ordered:
        path = os.path.expanduser(raw)
        tried.append(path)
        if is_executable_file(path):
            _LOGGER.info("Using engine binary %s", path)
            return os.path.abspath(path)

    found = shutil.which(name)
    tried.append(f"PATH:{name}")
    if found is not None:
        _LOGGER.info("Using engine binary %s (from PATH)", found)
        return found
    raise EngineNotFoundError(tried)
