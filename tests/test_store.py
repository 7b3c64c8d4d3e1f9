from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from db import engine
from difficulty import Difficulty, Operation
from errors import (
    AlreadyTerminal,
    InvalidRequest,
    PersistenceError,
    SessionNotFound,
    TimeLimitExceeded,
)
from schemas.problems import Problem
from store import SessionStore

store = SessionStore()

PROBLEM = Problem(
    problem_text="A shop receives 4 boxes. Each box holds 6 pencils. How many pencils are there in total?",
    correct_answer=24,
    operation=Operation.MULTIPLICATION,
    difficulty=Difficulty.BEGINNER,
    hint="Think about equal groups.",
)


def _submit(sid, status="submitted", **kw):
    args = dict(
        user_answer=24.0,
        is_correct=True,
        feedback_text="ok",
        difficulty="Beginner",
        time_used_seconds=10,
        score_delta=1.0,
    )
    args.update(kw)
    return store.create_submission(sid, status, **args)


def test_create_and_get_session():
    sid = store.create_session(PROBLEM, 120)
    row = store.get_session(sid)
    assert row.problem_text == PROBLEM.problem_text
    assert row.correct_answer == 24
    assert row.status == "active"
    assert row.submission is None


def test_only_one_submission_per_session():
    sid = store.create_session(PROBLEM, 120)
    sub = _submit(sid)
    assert sub.session_id == sid
    with pytest.raises(AlreadyTerminal):
        _submit(sid, status="expired", user_answer=None, is_correct=False, score_delta=0.0)
    assert store.count_submissions(sid) == 1
    assert store.get_session(sid).status == "submitted"


def test_unknown_session():
    with pytest.raises(SessionNotFound):
        store.get_session("nope")
    with pytest.raises(SessionNotFound):
        _submit("nope")
    with pytest.raises(InvalidRequest):
        store.get_session("")


def test_unknown_user_leaves_session_active():
    sid = store.create_session(PROBLEM, 120)
    with pytest.raises(InvalidRequest):
        _submit(sid, user_id=987654)
    assert store.get_session(sid).status == "active"
    assert store.count_submissions(sid) == 0


def test_find_or_create_user_is_exact_match():
    a = store.find_or_create_user("  Priya ")
    b = store.find_or_create_user("Priya")
    c = store.find_or_create_user("priya")
    assert a.id == b.id
    assert a.name == "Priya"
    assert c.id != a.id
    with pytest.raises(InvalidRequest):
        store.find_or_create_user("P")


def test_submission_for_session_started_before_cutoff_is_refused():
    sid = store.create_session(PROBLEM, 120)
    cutoff = datetime.now(UTC) + timedelta(minutes=1)
    with pytest.raises(TimeLimitExceeded):
        _submit(sid, started_after=cutoff)
    assert store.get_session(sid).status == "active"
    assert store.count_submissions(sid) == 0

    # expiring the same session is still allowed
    _submit(sid, status="expired", user_answer=None, is_correct=False, score_delta=0.0)
    assert store.get_session(sid).status == "expired"


def test_submission_inside_cutoff_is_recorded():
    sid = store.create_session(PROBLEM, 120)
    _submit(sid, started_after=datetime.now(UTC) - timedelta(minutes=1))
    assert store.get_session(sid).status == "submitted"


class _CommitFails(Session):
    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


def test_failed_write_is_retryable_and_leaves_session_active():
    sid = store.create_session(PROBLEM, 120)
    broken = SessionStore(sessionmaker(bind=engine, class_=_CommitFails, autoflush=False))
    with pytest.raises(PersistenceError):
        broken.create_submission(
            sid,
            "submitted",
            user_answer=24.0,
            is_correct=True,
            feedback_text="ok",
            difficulty="Beginner",
            time_used_seconds=10,
            score_delta=1.0,
        )
    assert store.get_session(sid).status == "active"
    assert store.count_submissions(sid) == 0

    # the retry goes through
    _submit(sid)
    assert store.count_submissions(sid) == 1
