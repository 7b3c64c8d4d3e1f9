from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from deps.engine import get_engine
from difficulty import PROFILES
from errors import InvalidRequest
from schemas.history import HighScoreRequest, HighScoreResponse, HistoryItem, LeaderboardEntry
from schemas.problems import DifficultyOut
from scoring import accuracy
from session_engine import QuizEngine
from views import clamp_limit, history_items, leaderboard_entries

router = APIRouter(tags=["history"])


@router.get("/history", response_model=List[HistoryItem])
def get_history(limit: int = Query(default=20), engine: QuizEngine = Depends(get_engine)):
    rows = engine.store.list_recent_sessions_with_submissions(clamp_limit(limit, 20))
    return history_items(rows)


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
def get_leaderboard(limit: int = Query(default=10), engine: QuizEngine = Depends(get_engine)):
    rows = engine.store.top_scores(clamp_limit(limit, 10))
    return leaderboard_entries(rows)


@router.post("/high-scores", response_model=HighScoreResponse)
def save_high_score(req: HighScoreRequest, engine: QuizEngine = Depends(get_engine)):
    if req.correct_answers > req.total_problems:
        raise InvalidRequest("correct_answers cannot exceed total_problems")
    pct = accuracy(req.correct_answers, req.total_problems)
    row = engine.store.save_run_score(
        player_name=(req.player_name or "").strip() or "Anonymous",
        total_score=req.total_score,
        total_problems=req.total_problems,
        correct_answers=req.correct_answers,
        accuracy_percentage=pct,
        difficulties_played=[d.value for d in req.difficulties_played],
    )
    return HighScoreResponse(score_id=row.id, accuracy_percentage=pct)


@router.get("/difficulties", response_model=List[DifficultyOut])
def list_difficulties():
    return [
        DifficultyOut(
            difficulty=d,
            time_limit_seconds=p.time_limit_seconds,
            score_multiplier=p.score_multiplier,
            max_value=p.max_value,
        )
        for d, p in PROFILES.items()
    ]
