"""Engine strength presets."""

from __future__ import annotations

from enum import StrEnum

from fishbowl.engine.protocol import SetOption


class DifficultyLevel(StrEnum):
    """Closed set of playing strengths offered to the human."""

    NOVICE = "novice"
    BEGINNER = "beginner"
    CASUAL = "casual"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
    MAXIMUM = "maximum"

    @property
    def label(self) -> str:
        if self is DifficultyLevel.MAXIMUM:
            return "Maximum Strength"
        return f"{self.name.capitalize()} (~{self.approximate_elo})"

    @property
    def approximate_elo(self) -> int:
        return _LEVEL_ELO[self]

    def engine_options(self) -> tuple[SetOption, ...]:
        """The ``setoption`` commands that put the engine at this strength."""
        if self is DifficultyLevel.NOVICE:
            # UCI_Elo bottoms out around 1320; go below it with Skill Level.
            return (
                SetOption("UCI_LimitStrength", False),
                SetOption("Skill Level", 0),
            )
        # Every other level restores full skill, which NOVICE may have lowered.
        if self is DifficultyLevel.MAXIMUM:
            return (
                SetOption("UCI_LimitStrength", False),
                SetOption("Skill Level", 20),
            )
        return (
            SetOption("UCI_LimitStrength", True),
            SetOption("UCI_Elo", self.approximate_elo),
            SetOption("Skill Level", 20),
        )

    @classmethod
    def default(cls) -> DifficultyLevel:
        return cls.CASUAL

    @classmethod
    def from_elo(cls, elo: int) -> DifficultyLevel:
        """Level whose approximate rating is closest to *elo* (weaker on ties)."""
        return min(cls, key=lambda level: (abs(level.approximate_elo - elo), level.approximate_elo))


_LEVEL_ELO: dict[DifficultyLevel, int] = {
    DifficultyLevel.NOVICE: 1100,
    DifficultyLevel.BEGINNER: 1350,
    DifficultyLevel.CASUAL: 1500,
    DifficultyLevel.INTERMEDIATE: 1800,
    DifficultyLevel.ADVANCED: 2100,
    DifficultyLevel.EXPERT: 2500,
    DifficultyLevel.MAXIMUM: 3500,
}
