from __future__ import annotations

import math
import re
from typing import Any

from sympy import Rational

from errors import InvalidRequest

LEN_LIMIT = 32
_INVALID_MSG = "Answer must be a number, e.g. 42, 3.5 or 3/4."
_NON_FINITE_MSG = "Answer is not finite."
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d+)?|\.\d+)$")
_FRACTION_RE = re.compile(r"^([+-]?\d+)\s*/\s*(\d+)$")
_NUMBER_IN_TEXT_RE = re.compile(r"(?<![\d.])\d[\d,]*(?:\.\d+)?")


def _validate_answer_text(s: Any) -> str | None:
    if s is None or not isinstance(s, str) or not s.strip():
        return "Answer required."
    if len(s) > LEN_LIMIT:
        return f"Answer too long (> {LEN_LIMIT})."
    return None


def to_rational(value: Any) -> Rational:
    """Exact value of a number or numeric string. Floats go through their repr."""
    if isinstance(value, bool):
        raise InvalidRequest(_INVALID_MSG)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidRequest(_NON_FINITE_MSG)
        return Rational(repr(value))
    if isinstance(value, int):
        return Rational(value)

    msg = _validate_answer_text(value)
    if msg:
        raise InvalidRequest(msg)
    s = value.strip()
    if _NUMBER_RE.fullmatch(s):
        return Rational(s)
    m = _FRACTION_RE.fullmatch(s)
    if m:
        den = int(m.group(2))
        if den == 0:
            raise InvalidRequest(_NON_FINITE_MSG)
        return Rational(int(m.group(1)), den)
    raise InvalidRequest(_INVALID_MSG)


def parse_answer(value: Any) -> float:
    """Coerce a user-supplied answer to a number or raise InvalidRequest."""
    return float(to_rational(value))


def evaluate(correct_answer: float, user_answer: float) -> bool:
    # exact equality, no tolerance band
    return to_rational(correct_answer) == to_rational(user_answer)


def format_number(x: float) -> str:
    if math.isfinite(x) and x == int(x):
        return str(int(x))
    return repr(float(x))


def mentions_number(text: str, value: float) -> bool:
    """True when `value` appears as a standalone number in `text`."""
    target = to_rational(value)
    for token in _NUMBER_IN_TEXT_RE.findall(text or ""):
        try:
            if Rational(token.replace(",", "")) == target:
                return True
        except (TypeError, ValueError):
            continue
    return False
