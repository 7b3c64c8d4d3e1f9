"""
Quiz session engine.

A session moves Idle -> Generating -> Active -> (Submitted | Expired) ->
Scored -> Archived. Only the Active -> terminal step is contended (a client
submit can race the countdown); it is decided by the store's conditional
update, so whichever caller commits first wins and the other sees
AlreadyTerminal. Generation and feedback always produce content: AI failures
are absorbed by the fallback paths.
"""

from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from ai_client import TextGenerator, default_client
from countdown import CountdownRegistry
from difficulty import Difficulty, DifficultyProfile, Operation, profile_for
from errors import AlreadyTerminal, InvalidRequest, TimeLimitExceeded
from evaluator import evaluate, parse_answer
from feedback import feedback_text, solution_for
from generation import generate_problem
from models import SESSION_ACTIVE, SESSION_EXPIRED, SESSION_SUBMITTED, ProblemSession
from schemas.problems import Problem
from schemas.solutions import Solution
from scoring import Tally, accumulate, score_delta
from store import SessionStore

logger = logging.getLogger("sumrise-practice.engine")

# allowance for network delay between the client clock hitting zero and the request landing
DEFAULT_GRACE_SECONDS = 2.0


class SessionState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    ACTIVE = "active"
    SUBMITTED = "submitted"
    EXPIRED = "expired"
    SCORED = "scored"
    ARCHIVED = "archived"


TRANSITIONS = {
    SessionState.IDLE: {SessionState.GENERATING},
    SessionState.GENERATING: {SessionState.ACTIVE},
    SessionState.ACTIVE: {SessionState.SUBMITTED, SessionState.EXPIRED, SessionState.IDLE},
    SessionState.SUBMITTED: {SessionState.SCORED},
    SessionState.EXPIRED: {SessionState.SCORED},
    SessionState.SCORED: {SessionState.ARCHIVED},
    SessionState.ARCHIVED: set(),
}


def _aware(ts: datetime) -> datetime:
    # sqlite hands DateTime(timezone=True) columns back naive; they are stored as UTC
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target in TRANSITIONS[current]


def state_of(row: ProblemSession) -> SessionState:
    """Persisted sessions are either still active or archived with their submission."""
    if row.status == SESSION_ACTIVE:
        return SessionState.ACTIVE
    return SessionState.ARCHIVED


@dataclass(frozen=True)
class Started:
    session_id: str
    problem: Problem
    profile: DifficultyProfile


@dataclass(frozen=True)
class Outcome:
    session_id: str
    is_correct: bool
    feedback_text: str
    score_delta: float
    correct_answer: float
    time_used_seconds: int
    user_answer: Optional[float]
    tally: Optional[Tally] = None


class QuizEngine:
    def __init__(
        self,
        store: Optional[SessionStore] = None,
        ai_client: Optional[TextGenerator] = None,
        countdowns: Optional[CountdownRegistry] = None,
        server_countdown: Optional[bool] = None,
        rng: Optional[random.Random] = None,
        grace_seconds: Optional[float] = None,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.store = store or SessionStore()
        self.ai_client = ai_client or default_client()
        self.countdowns = countdowns or CountdownRegistry(
            tick_seconds=float(os.getenv("COUNTDOWN_TICK_SECONDS", "1"))
        )
        if server_countdown is None:
            server_countdown = os.getenv("SERVER_COUNTDOWN", "1") == "1"
        self.server_countdown = server_countdown
        self.rng = rng
        if grace_seconds is None:
            grace_seconds = float(os.getenv("SUBMIT_GRACE_SECONDS", DEFAULT_GRACE_SECONDS))
        self.grace_seconds = grace_seconds
        self._now = now

    # ---------- Idle -> Generating -> Active ----------

    def start_session(
        self,
        operation: Operation | str,
        difficulty: Difficulty | str,
        replaces_session_id: Optional[str] = None,
    ) -> Started:
        try:
            op, diff = Operation(operation), Difficulty(difficulty)
        except ValueError as e:
            raise InvalidRequest(str(e)) from e

        if replaces_session_id:
            self.abandon_session(replaces_session_id)

        problem = generate_problem(op, diff, client=self.ai_client, rng=self.rng)
        profile = profile_for(diff)
        session_id = self.store.create_session(problem, profile.time_limit_seconds)

        if self.server_countdown:
            self.countdowns.start(session_id, profile.time_limit_seconds, self._expire_on_timer)
        logger.info(
            "session %s started (%s/%s, %s, %ss)",
            session_id,
            op.value,
            diff.value,
            problem.source,
            profile.time_limit_seconds,
        )
        return Started(session_id=session_id, problem=problem, profile=profile)

    # ---------- Active -> Submitted -> Scored ----------

    def submit_answer(
        self,
        session_id: str,
        user_answer: Any,
        time_used_seconds: int = 0,
        user_id: Optional[int] = None,
        tally: Optional[Tally] = None,
    ) -> Outcome:
        answer = parse_answer(user_answer)
        if time_used_seconds is None or time_used_seconds < 0:
            raise InvalidRequest("time_used_seconds must be >= 0")

        row = self._active_session(session_id, SessionState.SUBMITTED)
        allowed = timedelta(seconds=row.time_limit_seconds + self.grace_seconds)
        if self._now() > _aware(row.created_at) + allowed:
            self._expire_late(session_id)
        is_correct = evaluate(row.correct_answer, answer)
        delta = score_delta(row.difficulty, is_correct)
        text = feedback_text(
            row.problem_text, row.correct_answer, answer, is_correct, client=self.ai_client
        )
        time_used = min(int(time_used_seconds), row.time_limit_seconds)

        try:
            self.store.create_submission(
                session_id,
                SESSION_SUBMITTED,
                user_answer=answer,
                is_correct=is_correct,
                feedback_text=text,
                difficulty=row.difficulty,
                time_used_seconds=time_used,
                score_delta=delta,
                user_id=user_id,
                # re-checked by the store: feedback generation can outlast the deadline
                started_after=self._now() - allowed,
            )
        except TimeLimitExceeded:
            self._expire_late(session_id)
        self.countdowns.cancel(session_id)
        logger.info("session %s submitted (correct=%s)", session_id, is_correct)
        return self._outcome(row, answer, is_correct, text, delta, time_used, tally)

    # ---------- Active -> Expired -> Scored ----------

    def expire_session(self, session_id: str, tally: Optional[Tally] = None) -> Outcome:
        row = self._active_session(session_id, SessionState.EXPIRED)
        text = feedback_text(
            row.problem_text, row.correct_answer, None, False, client=self.ai_client
        )
        self.store.create_submission(
            session_id,
            SESSION_EXPIRED,
            user_answer=None,
            is_correct=False,
            feedback_text=text,
            difficulty=row.difficulty,
            time_used_seconds=row.time_limit_seconds,
            score_delta=0.0,
        )
        self.countdowns.cancel(session_id)
        logger.info("session %s expired", session_id)
        return self._outcome(row, None, False, text, 0.0, row.time_limit_seconds, tally)

    def _expire_late(self, session_id: str) -> None:
        """Record the expiry a missing countdown should have written, then refuse the answer."""
        try:
            self.expire_session(session_id)
        except AlreadyTerminal:
            pass  # the countdown (or another request) expired it first
        logger.info("late answer for session %s refused", session_id)
        raise TimeLimitExceeded(f"session {session_id} is past its time limit")

    def _expire_on_timer(self, session_id: str) -> None:
        try:
            self.expire_session(session_id)
        except AlreadyTerminal:
            logger.info("countdown for %s lost to a submission", session_id)

    # ---------- Active -> Idle (abandoned) ----------

    def abandon_session(self, session_id: str) -> bool:
        """Stop the countdown; the session keeps zero submissions."""
        stopped = self.countdowns.cancel(session_id)
        if stopped:
            logger.info("session %s abandoned", session_id)
        return stopped

    # ---------- reads ----------

    def get_session(self, session_id: str) -> ProblemSession:
        return self.store.get_session(session_id)

    def get_solution(self, session_id: str) -> Solution:
        row = self.store.get_session(session_id)
        if state_of(row) is SessionState.ACTIVE:
            logger.warning("solution requested for active session %s", session_id)
        return solution_for(
            row.problem_text, row.correct_answer, row.difficulty, client=self.ai_client
        )

    # ---------- helpers ----------

    def _active_session(self, session_id: str, target: SessionState) -> ProblemSession:
        row = self.store.get_session(session_id)
        if not can_transition(state_of(row), target):
            raise AlreadyTerminal(f"session {session_id} is already {row.status}")
        return row

    @staticmethod
    def _outcome(
        row: ProblemSession,
        answer: Optional[float],
        is_correct: bool,
        text: str,
        delta: float,
        time_used: int,
        tally: Optional[Tally],
    ) -> Outcome:
        return Outcome(
            session_id=row.id,
            is_correct=is_correct,
            feedback_text=text,
            score_delta=delta,
            correct_answer=row.correct_answer,
            time_used_seconds=time_used,
            user_answer=answer,
            tally=accumulate(tally, delta, is_correct) if tally is not None else None,
        )
