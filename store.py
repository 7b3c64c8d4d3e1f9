# Persistence boundary: the only module that talks to the database.
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from db import SessionLocal
from errors import (
    AlreadyTerminal,
    InvalidRequest,
    PersistenceError,
    SessionNotFound,
    TimeLimitExceeded,
)
from models import SESSION_ACTIVE, ProblemSession, RunScore, Submission, User
from schemas.problems import Problem

logger = logging.getLogger("sumrise-practice.store")

MIN_NAME_LEN = 2


class SessionStore:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    # ---------- sessions ----------

    def create_session(self, problem: Problem, time_limit_seconds: int) -> str:
        try:
            with self._session_factory() as db:
                row = ProblemSession(
                    problem_text=problem.problem_text,
                    correct_answer=problem.correct_answer,
                    operation=problem.operation.value,
                    difficulty=problem.difficulty.value,
                    hint=problem.hint,
                    time_limit_seconds=time_limit_seconds,
                    status=SESSION_ACTIVE,
                )
                db.add(row)
                db.commit()
                db.refresh(row)
                return row.id
        except SQLAlchemyError as e:
            logger.error("create_session failed: %s", e)
            raise PersistenceError("could not save the new session") from e

    def get_session(self, session_id: str) -> ProblemSession:
        if not session_id:
            raise InvalidRequest("session id required")
        try:
            with self._session_factory() as db:
                row = db.get(
                    ProblemSession, session_id, options=[selectinload(ProblemSession.submission)]
                )
        except SQLAlchemyError as e:
            logger.error("get_session failed: %s", e)
            raise PersistenceError("could not read the session") from e
        if row is None:
            raise SessionNotFound(f"unknown session {session_id}")
        return row

    # ---------- submissions ----------

    def create_submission(
        self,
        session_id: str,
        terminal_status: str,
        user_answer: Optional[float],
        is_correct: bool,
        feedback_text: str,
        difficulty: str,
        time_used_seconds: int,
        score_delta: float,
        user_id: Optional[int] = None,
        started_after: Optional[datetime] = None,
    ) -> Submission:
        """
        Move the session out of `active` and record its one submission, atomically.

        The UPDATE only matches while the session is still active, so of two
        racing callers exactly one commits; the other gets AlreadyTerminal. With
        `started_after` it also only matches sessions created after that instant,
        so an answer past the deadline is refused here even if no countdown ran.
        """
        with self._session_factory() as db:
            try:
                if user_id is not None and db.get(User, user_id) is None:
                    raise InvalidRequest(f"unknown user id {user_id}")
                conditions = [
                    ProblemSession.id == session_id,
                    ProblemSession.status == SESSION_ACTIVE,
                ]
                if started_after is not None:
                    conditions.append(ProblemSession.created_at >= started_after)
                claimed = db.execute(
                    update(ProblemSession).where(*conditions).values(status=terminal_status)
                ).rowcount
                if claimed != 1:
                    db.rollback()
                    row = db.get(ProblemSession, session_id)
                    if row is None:
                        raise SessionNotFound(f"unknown session {session_id}")
                    if row.status == SESSION_ACTIVE:
                        raise TimeLimitExceeded(f"session {session_id} is past its time limit")
                    raise AlreadyTerminal(f"session {session_id} is already terminal")

                sub = Submission(
                    session_id=session_id,
                    user_id=user_id,
                    user_answer=user_answer,
                    is_correct=is_correct,
                    feedback_text=feedback_text,
                    difficulty=difficulty,
                    time_used_seconds=time_used_seconds,
                    score_delta=score_delta,
                )
                db.add(sub)
                db.commit()
                db.refresh(sub)
                return sub
            except IntegrityError as e:
                db.rollback()
                raise AlreadyTerminal(f"session {session_id} already has a submission") from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("create_submission failed for %s: %s", session_id, e)
                raise PersistenceError("could not save the submission") from e

    def count_submissions(self, session_id: str) -> int:
        with self._session_factory() as db:
            return len(
                db.scalars(select(Submission.id).where(Submission.session_id == session_id)).all()
            )

    # ---------- read views ----------

    def list_recent_sessions_with_submissions(self, limit: int) -> List[ProblemSession]:
        try:
            with self._session_factory() as db:
                stmt = (
                    select(ProblemSession)
                    .join(Submission, Submission.session_id == ProblemSession.id)
                    .options(selectinload(ProblemSession.submission))
                    .order_by(ProblemSession.created_at.desc())
                    .limit(limit)
                )
                return list(db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error("history query failed: %s", e)
            raise PersistenceError("could not read history") from e

    def top_scores(self, limit: int) -> List[RunScore]:
        try:
            with self._session_factory() as db:
                stmt = (
                    select(RunScore)
                    .where(RunScore.total_score > 0)
                    .order_by(RunScore.total_score.desc(), RunScore.created_at.asc())
                    .limit(limit)
                )
                return list(db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error("leaderboard query failed: %s", e)
            raise PersistenceError("could not read high scores") from e

    def save_run_score(
        self,
        player_name: str,
        total_score: float,
        total_problems: int,
        correct_answers: int,
        accuracy_percentage: int,
        difficulties_played: Sequence[str],
    ) -> RunScore:
        try:
            with self._session_factory() as db:
                row = RunScore(
                    player_name=player_name,
                    total_score=total_score,
                    total_problems=total_problems,
                    correct_answers=correct_answers,
                    accuracy_percentage=accuracy_percentage,
                    difficulties_played=list(difficulties_played),
                )
                db.add(row)
                db.commit()
                db.refresh(row)
                return row
        except SQLAlchemyError as e:
            logger.error("save_run_score failed: %s", e)
            raise PersistenceError("could not save the score") from e

    # ---------- identity ----------

    def find_or_create_user(self, name: str) -> User:
        if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LEN:
            raise InvalidRequest("Valid name is required (at least 2 characters).")
        name = name.strip()
        try:
            with self._session_factory() as db:
                user = db.scalars(select(User).where(User.name == name)).first()
                if user:
                    return user
                user = User(name=name)
                db.add(user)
                try:
                    db.commit()
                except IntegrityError:
                    # created by a concurrent login
                    db.rollback()
                    return db.scalars(select(User).where(User.name == name)).one()
                db.refresh(user)
                return user
        except SQLAlchemyError as e:
            logger.error("find_or_create_user failed: %s", e)
            raise PersistenceError("could not look up the user") from e
