"""Errors raised by the practice engine and mapped to HTTP responses in main.py."""


class QuizError(Exception):
    status_code = 400
    code = "quiz_error"


class InvalidRequest(QuizError):
    """Malformed input: non-numeric answer, short name, bad session id."""

    status_code = 422
    code = "invalid_request"


class SessionNotFound(QuizError):
    status_code = 404
    code = "session_not_found"


class AlreadyTerminal(QuizError):
    """The session was already submitted or expired; the caller lost the race."""

    status_code = 409
    code = "already_terminal"


class PersistenceError(QuizError):
    """The store did not acknowledge a write. Safe to retry."""

    status_code = 503
    code = "persistence_error"


class TimeLimitExceeded(AlreadyTerminal):
    """The answer arrived after the session's time limit; the session is expired instead."""

    code = "time_limit_exceeded"
