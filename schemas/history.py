from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from difficulty import Difficulty


class HistoryItem(BaseModel):
    session_id: str
    problem_text: str
    correct_answer: float
    difficulty: Difficulty
    operation: str
    hint: str
    user_answer: Optional[float] = None  # None: time ran out
    is_correct: bool
    feedback_text: str
    time_used_seconds: int
    score_delta: float
    created_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    date: str
    time: str


class LeaderboardEntry(BaseModel):
    rank: int
    score: float
    difficulty: Optional[Difficulty] = None
    date: str
    player_name: str
    accuracy_percentage: int
    total_problems: int
    correct_answers: int


class HighScoreRequest(BaseModel):
    player_name: Optional[str] = None
    total_score: float = Field(gt=0)
    total_problems: int = Field(ge=1)
    correct_answers: int = Field(ge=0)
    difficulties_played: List[Difficulty] = Field(default_factory=list)


class HighScoreResponse(BaseModel):
    ok: bool = True
    score_id: int
    accuracy_percentage: int
