import threading
import time
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import update

from countdown import Countdown, CountdownRegistry
from db import SessionLocal
from errors import TimeLimitExceeded
from models import ProblemSession
from session_engine import QuizEngine
from store import SessionStore
from tests.fakes import FakeAI


def test_countdown_fires_once_after_limit():
    fired = []
    c = Countdown("s1", 0.05, fired.append, tick_seconds=0.01).start()
    c.join(timeout=2)
    assert fired == ["s1"]
    assert c.expired is True
    assert c.remaining() == 0


def test_cancelled_countdown_never_fires():
    fired = []
    c = Countdown("s2", 0.2, fired.append, tick_seconds=0.01).start()
    c.cancel()
    c.join(timeout=2)
    time.sleep(0.25)
    assert fired == []
    assert c.cancelled and not c.expired


def test_registry_replaces_and_forgets():
    fired = []
    reg = CountdownRegistry(tick_seconds=0.01)
    first = reg.start("s3", 5, fired.append)
    second = reg.start("s3", 0.05, fired.append)
    assert first.cancelled
    second.join(timeout=2)
    assert fired == ["s3"]
    assert reg.get("s3") is None
    assert reg.cancel("s3") is False


def _engine(**kwargs):
    return QuizEngine(
        store=SessionStore(),
        ai_client=FakeAI(),
        countdowns=CountdownRegistry(tick_seconds=0.01),
        server_countdown=False,
        **kwargs,
    )


def test_timer_expiry_writes_one_submission():
    engine = _engine()
    started = engine.start_session("addition", "Beginner")
    sid = started.session_id
    engine.countdowns.start(sid, 0.05, engine._expire_on_timer).join(timeout=5)

    row = engine.get_session(sid)
    assert row.status == "expired"
    assert row.submission.is_correct is False
    assert row.submission.score_delta == 0
    assert row.submission.time_used_seconds == started.profile.time_limit_seconds
    assert engine.store.count_submissions(sid) == 1


def test_timer_loses_to_earlier_submission():
    engine = _engine()
    started = engine.start_session("multiplication", "Intermediate")
    sid = started.session_id
    engine.submit_answer(sid, started.problem.correct_answer, time_used_seconds=3)

    # countdown that fires after the submit: must be a no-op
    engine.countdowns.start(sid, 0.01, engine._expire_on_timer).join(timeout=5)
    row = engine.get_session(sid)
    assert row.status == "submitted"
    assert row.submission.is_correct is True
    assert engine.store.count_submissions(sid) == 1


def test_submit_and_expire_race_has_one_winner():
    from errors import AlreadyTerminal

    engine = _engine()
    started = engine.start_session("division", "Beginner")
    sid = started.session_id
    barrier = threading.Barrier(2)
    results = []

    def submit():
        barrier.wait()
        try:
            engine.submit_answer(sid, started.problem.correct_answer)
            results.append("submitted")
        except AlreadyTerminal:
            results.append("lost")

    def expire():
        barrier.wait()
        try:
            engine.expire_session(sid)
            results.append("expired")
        except AlreadyTerminal:
            results.append("lost")

    threads = [threading.Thread(target=submit), threading.Thread(target=expire)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(results) in (["lost", "submitted"], ["expired", "lost"])
    assert engine.store.count_submissions(sid) == 1


def test_late_answer_without_countdown_is_expired_not_scored():
    engine = _engine()
    started = engine.start_session("addition", "Beginner")
    sid = started.session_id
    with SessionLocal() as db:
        db.execute(
            update(ProblemSession)
            .where(ProblemSession.id == sid)
            .values(created_at=datetime.now(UTC) - timedelta(days=2))
        )
        db.commit()

    with pytest.raises(TimeLimitExceeded):
        engine.submit_answer(sid, started.problem.correct_answer, time_used_seconds=5)

    row = engine.get_session(sid)
    assert row.status == "expired"
    assert row.submission.user_answer is None
    assert row.submission.score_delta == 0
    assert engine.store.count_submissions(sid) == 1


def test_deadline_passing_during_feedback_is_caught_by_store():
    real_now = datetime.now(UTC)
    # first reading: before the deadline; every later one: a day on
    readings = iter([real_now])
    engine = _engine(now=lambda: next(readings, real_now + timedelta(days=1)))
    started = engine.start_session("subtraction", "Intermediate")
    sid = started.session_id

    with pytest.raises(TimeLimitExceeded):
        engine.submit_answer(sid, started.problem.correct_answer)

    row = engine.get_session(sid)
    assert row.status == "expired"
    assert row.submission.is_correct is False
