from __future__ import annotations

from dataclasses import dataclass, replace

from difficulty import Difficulty, profile_for


@dataclass(frozen=True)
class Tally:
    """Running totals for one practice run. Derived; submissions are the record."""

    correct_count: int = 0
    attempted_count: int = 0
    total_score: float = 0.0

    @property
    def accuracy(self) -> int:
        return accuracy(self.correct_count, self.attempted_count)


def score_delta(difficulty: Difficulty | str, is_correct: bool) -> float:
    if not is_correct:
        return 0.0
    return profile_for(difficulty).score_multiplier


def accumulate(tally: Tally, delta: float, is_correct: bool) -> Tally:
    if not is_correct:
        return replace(tally, attempted_count=tally.attempted_count + 1)
    return Tally(
        correct_count=tally.correct_count + 1,
        attempted_count=tally.attempted_count + 1,
        total_score=tally.total_score + delta,
    )


def accuracy(correct_count: int, attempted_count: int) -> int:
    if attempted_count <= 0:
        return 0
    # round-half-up, matching what the client shows
    return int(100 * correct_count / attempted_count + 0.5)
