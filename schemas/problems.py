from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from difficulty import Difficulty, Operation


class Problem(BaseModel):
    """A generated word problem. The answer stays server-side until scored."""

    model_config = ConfigDict(frozen=True)

    problem_text: str
    correct_answer: float
    operation: Operation
    difficulty: Difficulty
    hint: str
    source: str = "fallback"  # "ai" | "fallback"


class StartSessionRequest(BaseModel):
    operation: Operation = Operation.MIXED
    difficulty: Difficulty = Difficulty.BEGINNER
    # active session on the same screen; its countdown is torn down
    replaces_session_id: str | None = None


class StartSessionResponse(BaseModel):
    ok: bool = True
    session_id: str
    problem_text: str
    hint: str
    operation: Operation
    difficulty: Difficulty
    time_limit_seconds: int
    score_multiplier: float


class SessionView(BaseModel):
    ok: bool = True
    session_id: str
    status: str
    problem_text: str
    hint: str
    operation: Operation
    difficulty: Difficulty
    time_limit_seconds: int
    # only filled once the session is terminal
    correct_answer: float | None = None


class DifficultyOut(BaseModel):
    difficulty: Difficulty
    time_limit_seconds: int
    score_multiplier: float = Field(gt=0)
    max_value: int
