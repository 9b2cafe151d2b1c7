"""Engine configuration passed explicitly to the actor and controller."""

from __future__ import annotations

from dataclasses import dataclass, field

from fishbowl.engine.difficulty import DifficultyLevel
from fishbowl.engine.protocol import SearchBudget

MIN_MOVETIME_MS = 10
MAX_MOVETIME_MS = 600_000


@dataclass
class EngineSettings:
    """All user-configurable engine settings."""

    # Explicit binary; when unset the usual install locations are searched.
    engine_path: str | None = None
    engine_args: tuple[str, ...] = field(default_factory=tuple)

    # Strength
    difficulty: DifficultyLevel = DifficultyLevel.CASUAL
    movetime_ms: int = 1000
    depth: int | None = None  # overrides movetime when set

    # Timeouts (seconds)
    init_timeout_s: float = 10.0
    stop_grace_s: float = 2.0
    search_timeout_margin_s: float = 5.0
    search_timeout_s: float | None = None  # ceiling for depth searches
    poll_interval_s: float = 0.02

    def validate(self) -> None:
        """Raise ``ValueError`` if any value is outside its supported range."""
        if not MIN_MOVETIME_MS <= self.movetime_ms <= MAX_MOVETIME_MS:
            raise ValueError(
                f"movetime_ms must be within {MIN_MOVETIME_MS}..{MAX_MOVETIME_MS}, "
                f"got {self.movetime_ms}"
            )
        if self.depth is not None and not 1 <= self.depth <= 100:
            raise ValueError(f"depth must be within 1..100, got {self.depth}")
        for name in ("init_timeout_s", "stop_grace_s", "search_timeout_margin_s", "poll_interval_s"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.search_timeout_s is not None and self.search_timeout_s <= 0:
            raise ValueError("search_timeout_s must be positive")
        if not isinstance(self.difficulty, DifficultyLevel):
            raise ValueError(f"Unknown difficulty: {self.difficulty!r}")

    def search_budget(self) -> SearchBudget:
        if self.depth is not None:
            return SearchBudget.fixed_depth(self.depth)
        return SearchBudget.movetime(self.movetime_ms)

    def search_ceiling_s(self, budget: SearchBudget) -> float | None:
        """Wall-clock limit for one search under *budget*; ``None`` for no limit."""
        if budget.movetime_ms is not None:
            return budget.movetime_ms / 1000 + self.search_timeout_margin_s
        return self.search_timeout_s
