from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger("sumrise-practice.countdown")


class Countdown:
    """
    Ticks once per `tick_seconds` until the time limit passes or it is cancelled.

    On expiry `on_expire(session_id)` runs once on the countdown thread. A
    cancelled countdown never calls it.
    """

    def __init__(
        self,
        session_id: str,
        time_limit_seconds: float,
        on_expire: Callable[[str], object],
        tick_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.time_limit_seconds = time_limit_seconds
        self.tick_seconds = tick_seconds
        self._on_expire = on_expire
        self._clock = clock
        self._cancelled = threading.Event()
        self._started_at: Optional[float] = None
        self._thread = threading.Thread(
            target=self._run, name=f"countdown-{session_id}", daemon=True
        )
        self.expired = False

    def start(self) -> "Countdown":
        self._started_at = self._clock()
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def remaining(self) -> float:
        return max(0.0, self.time_limit_seconds - self.elapsed())

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        while not self._cancelled.wait(min(self.tick_seconds, self.remaining())):
            if self.remaining() > 0:
                continue
            if self._cancelled.is_set():
                return
            self.expired = True
            try:
                self._on_expire(self.session_id)
            except Exception:
                logger.exception("expiry handler failed for session %s", self.session_id)
            return


class CountdownRegistry:
    """Countdowns of this worker, keyed by session id."""

    def __init__(self, tick_seconds: float = 1.0):
        self.tick_seconds = tick_seconds
        self._lock = threading.Lock()
        self._countdowns: Dict[str, Countdown] = {}

    def start(
        self, session_id: str, time_limit_seconds: float, on_expire: Callable[[str], object]
    ) -> Countdown:
        def _expire_and_forget(sid: str) -> object:
            try:
                return on_expire(sid)
            finally:
                self._forget(sid)

        countdown = Countdown(
            session_id, time_limit_seconds, _expire_and_forget, tick_seconds=self.tick_seconds
        )
        with self._lock:
            previous = self._countdowns.pop(session_id, None)
            self._countdowns[session_id] = countdown
        if previous:
            previous.cancel()
        return countdown.start()

    def cancel(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with self._lock:
            countdown = self._countdowns.pop(session_id, None)
        if countdown is None:
            return False
        countdown.cancel()
        return True

    def get(self, session_id: str) -> Optional[Countdown]:
        with self._lock:
            return self._countdowns.get(session_id)

    def active_count(self) -> int:
        with self._lock:
            return len(self._countdowns)

    def _forget(self, session_id: str) -> None:
        with self._lock:
            self._countdowns.pop(session_id, None)
