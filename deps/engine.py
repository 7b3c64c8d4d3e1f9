from __future__ import annotations

from functools import lru_cache

from session_engine import QuizEngine


@lru_cache(maxsize=1)
def get_engine() -> QuizEngine:
    """One engine (and countdown registry) per worker process."""
    return QuizEngine()
