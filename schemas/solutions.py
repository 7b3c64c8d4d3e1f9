from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SolutionStep(BaseModel):
    step_number: int
    description: str
    calculation: Optional[str] = None
    explanation: str


class Solution(BaseModel):
    steps: List[SolutionStep]
    final_answer: float
    summary: str
    source: str = "fallback"


class SolutionResponse(Solution):
    ok: bool = True
    session_id: str
