from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db import Base

SESSION_ACTIVE = "active"
SESSION_SUBMITTED = "submitted"
SESSION_EXPIRED = "expired"


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class ProblemSession(Base):
    __tablename__ = "problem_sessions"
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, index=True
    )
    problem_text: Mapped[str] = mapped_column(Text)
    correct_answer: Mapped[float] = mapped_column(Float)
    operation: Mapped[str] = mapped_column(String(20))
    difficulty: Mapped[str] = mapped_column(String(20))
    hint: Mapped[str] = mapped_column(Text, default="")
    time_limit_seconds: Mapped[int] = mapped_column(Integer)
    # active -> submitted | expired, only ever moved by a conditional UPDATE
    status: Mapped[str] = mapped_column(String(16), default=SESSION_ACTIVE)

    submission: Mapped["Submission | None"] = relationship(
        back_populates="session", uselist=False
    )


class Submission(Base):
    __tablename__ = "submissions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("problem_sessions.id", ondelete="CASCADE"), unique=True
    )
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    user_answer: Mapped[float | None] = mapped_column(Float, nullable=True)  # NULL: no answer
    is_correct: Mapped[bool] = mapped_column(sa.Boolean)
    feedback_text: Mapped[str] = mapped_column(Text)
    difficulty: Mapped[str] = mapped_column(String(20))
    time_used_seconds: Mapped[int] = mapped_column(Integer, default=0)
    score_delta: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    session: Mapped[ProblemSession] = relationship(back_populates="submission")


class RunScore(Base):
    __tablename__ = "run_scores"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_name: Mapped[str] = mapped_column(String(100), default="Anonymous")
    total_score: Mapped[float] = mapped_column(Float)
    total_problems: Mapped[int] = mapped_column(Integer)
    correct_answers: Mapped[int] = mapped_column(Integer)
    accuracy_percentage: Mapped[int] = mapped_column(Integer)
    difficulties_played: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, index=True
    )
