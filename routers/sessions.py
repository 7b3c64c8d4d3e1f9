from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from deps.engine import get_engine
from schemas.problems import SessionView, StartSessionRequest, StartSessionResponse
from schemas.solutions import SolutionResponse
from schemas.submissions import ExpireRequest, OutcomeResponse, SubmitRequest, TallyIn, TallyOut
from scoring import Tally
from session_engine import Outcome, QuizEngine, SessionState, state_of

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _tally_in(t: Optional[TallyIn]) -> Optional[Tally]:
    if t is None:
        return None
    return Tally(
        correct_count=t.correct_count,
        attempted_count=t.attempted_count,
        total_score=t.total_score,
    )


def _outcome_out(o: Outcome) -> OutcomeResponse:
    tally = None
    if o.tally is not None:
        tally = TallyOut(
            correct_count=o.tally.correct_count,
            attempted_count=o.tally.attempted_count,
            total_score=o.tally.total_score,
            accuracy=o.tally.accuracy,
        )
    return OutcomeResponse(
        session_id=o.session_id,
        is_correct=o.is_correct,
        feedback_text=o.feedback_text,
        score_delta=o.score_delta,
        correct_answer=o.correct_answer,
        time_used_seconds=o.time_used_seconds,
        tally=tally,
    )


@router.post("", response_model=StartSessionResponse)
def start_session(req: StartSessionRequest, engine: QuizEngine = Depends(get_engine)):
    started = engine.start_session(req.operation, req.difficulty, req.replaces_session_id)
    # the answer never leaves the server while the session is active
    return StartSessionResponse(
        session_id=started.session_id,
        problem_text=started.problem.problem_text,
        hint=started.problem.hint,
        operation=started.problem.operation,
        difficulty=started.problem.difficulty,
        time_limit_seconds=started.profile.time_limit_seconds,
        score_multiplier=started.profile.score_multiplier,
    )


@router.get("/{session_id}", response_model=SessionView)
def get_session(session_id: str, engine: QuizEngine = Depends(get_engine)):
    s = engine.get_session(session_id)
    terminal = state_of(s) is not SessionState.ACTIVE
    return SessionView(
        session_id=s.id,
        status=s.status,
        problem_text=s.problem_text,
        hint=s.hint or "",
        operation=s.operation,
        difficulty=s.difficulty,
        time_limit_seconds=s.time_limit_seconds,
        correct_answer=s.correct_answer if terminal else None,
    )


@router.post("/{session_id}/submit", response_model=OutcomeResponse)
def submit_answer(
    session_id: str, req: SubmitRequest, engine: QuizEngine = Depends(get_engine)
):
    outcome = engine.submit_answer(
        session_id,
        req.user_answer,
        time_used_seconds=req.time_used_seconds,
        user_id=req.user_id,
        tally=_tally_in(req.tally),
    )
    return _outcome_out(outcome)


@router.post("/{session_id}/expire", response_model=OutcomeResponse)
def expire_session(
    session_id: str,
    req: Optional[ExpireRequest] = None,
    engine: QuizEngine = Depends(get_engine),
):
    outcome = engine.expire_session(session_id, tally=_tally_in(req.tally if req else None))
    return _outcome_out(outcome)


@router.post("/{session_id}/abandon")
def abandon_session(session_id: str, engine: QuizEngine = Depends(get_engine)):
    engine.get_session(session_id)  # 404 for unknown ids
    return {"ok": True, "countdown_stopped": engine.abandon_session(session_id)}


@router.get("/{session_id}/solution", response_model=SolutionResponse)
def get_solution(session_id: str, engine: QuizEngine = Depends(get_engine)):
    solution = engine.get_solution(session_id)
    return SolutionResponse(session_id=session_id, **solution.model_dump())
