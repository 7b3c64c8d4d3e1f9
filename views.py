# Read-only projections for the history and leaderboard screens.
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from difficulty import hardest
from models import ProblemSession, RunScore
from schemas.history import HistoryItem, LeaderboardEntry

MAX_LIMIT = 100


def clamp_limit(limit: int, default: int) -> int:
    if limit is None:
        return default
    return max(1, min(limit, MAX_LIMIT))


def _date(ts: Optional[datetime]) -> str:
    return ts.strftime("%Y-%m-%d") if ts else ""


def _time(ts: Optional[datetime]) -> str:
    return ts.strftime("%H:%M") if ts else ""


def history_items(rows: Iterable[ProblemSession]) -> List[HistoryItem]:
    items = []
    for s in rows:
        sub = s.submission
        if sub is None:
            continue
        items.append(
            HistoryItem(
                session_id=s.id,
                problem_text=s.problem_text,
                correct_answer=s.correct_answer,
                difficulty=s.difficulty,
                operation=s.operation,
                hint=s.hint or "",
                user_answer=sub.user_answer,
                is_correct=sub.is_correct,
                feedback_text=sub.feedback_text,
                time_used_seconds=sub.time_used_seconds,
                score_delta=sub.score_delta,
                created_at=s.created_at,
                submitted_at=sub.created_at,
                date=_date(s.created_at),
                time=_time(s.created_at),
            )
        )
    return items


def leaderboard_entries(rows: Iterable[RunScore]) -> List[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=i,
            score=r.total_score,
            difficulty=hardest(r.difficulties_played or []),
            date=_date(r.created_at),
            player_name=r.player_name,
            accuracy_percentage=r.accuracy_percentage,
            total_problems=r.total_problems,
            correct_answers=r.correct_answers,
        )
        for i, r in enumerate(rows, 1)
    ]
