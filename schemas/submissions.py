from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt


class TallyIn(BaseModel):
    correct_count: int = Field(default=0, ge=0)
    attempted_count: int = Field(default=0, ge=0)
    total_score: float = Field(default=0.0, ge=0)


class TallyOut(TallyIn):
    accuracy: int = 0


class SubmitRequest(BaseModel):
    # numbers or numeric strings ("12", "3.5", "3/4"); strict so JSON true is not 1
    user_answer: Union[StrictInt, StrictFloat, str]
    time_used_seconds: int = 0
    user_id: Optional[int] = None
    tally: Optional[TallyIn] = None


class ExpireRequest(BaseModel):
    tally: Optional[TallyIn] = None


class OutcomeResponse(BaseModel):
    ok: bool = True
    session_id: str
    is_correct: bool
    feedback_text: str
    score_delta: float
    correct_answer: float
    time_used_seconds: int
    tally: Optional[TallyOut] = None
