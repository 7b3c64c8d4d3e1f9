# Static difficulty table: timing, scoring and number ranges per tier.
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Operation(str, Enum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    MIXED = "mixed"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


@dataclass(frozen=True)
class DifficultyProfile:
    time_limit_seconds: int
    score_multiplier: float
    # ceiling for any number that appears in a problem
    max_value: int
    steps: str
    complexity: str
    constraints: str
    # fallback generator operand bounds
    max_a: int
    max_b: int
    max_factor: int
    operands: int
    decimals: bool


PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.BEGINNER: DifficultyProfile(
        time_limit_seconds=120,
        score_multiplier=1.0,
        max_value=50,
        steps="1-2",
        complexity="very simple",
        constraints="Use numbers up to 50. Keep operations simple with 1-2 steps.",
        max_a=50,
        max_b=20,
        max_factor=10,
        operands=2,
        decimals=False,
    ),
    Difficulty.INTERMEDIATE: DifficultyProfile(
        time_limit_seconds=90,
        score_multiplier=1.5,
        max_value=100,
        steps="2-3",
        complexity="moderately challenging",
        constraints="Use numbers up to 100. Include 2-3 step problems with multiple operations.",
        max_a=100,
        max_b=50,
        max_factor=15,
        operands=3,
        decimals=False,
    ),
    Difficulty.ADVANCED: DifficultyProfile(
        time_limit_seconds=60,
        score_multiplier=2.0,
        max_value=500,
        steps="3-4",
        complexity="challenging",
        constraints=(
            "Use numbers up to 500. Include 3-4 step problems with multiple operations "
            "and fractions or decimals."
        ),
        max_a=300,
        max_b=100,
        max_factor=20,
        operands=4,
        decimals=True,
    ),
    Difficulty.EXPERT: DifficultyProfile(
        time_limit_seconds=45,
        score_multiplier=2.5,
        max_value=1000,
        steps="multi",
        complexity="very challenging",
        constraints=(
            "Use larger numbers up to 1000. Include complex multi-step problems with "
            "fractions, decimals, and percentages."
        ),
        max_a=500,
        max_b=200,
        max_factor=25,
        operands=4,
        decimals=True,
    ),
}

ORDER = list(Difficulty)


def profile_for(difficulty: Difficulty | str) -> DifficultyProfile:
    return PROFILES[Difficulty(difficulty)]


def hardest(difficulties) -> Difficulty | None:
    """Highest tier among the given names; unknown names are ignored."""
    known = [Difficulty(d) for d in difficulties if d in Difficulty._value2member_map_]
    if not known:
        return None
    return max(known, key=ORDER.index)
