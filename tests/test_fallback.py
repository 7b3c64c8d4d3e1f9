import random
import re

import pytest

from difficulty import Difficulty, Operation, profile_for
from evaluator import mentions_number
from fallback import HINTS, fallback_problem

ALL_TIERS = list(Difficulty)
ALL_OPS = list(Operation)


def _numbers(text):
    return [float(n) for n in re.findall(r"\d+(?:\.\d+)?", text)]


@pytest.mark.parametrize("difficulty", ALL_TIERS)
def test_division_has_exact_integer_quotient(difficulty):
    rng = random.Random(7)
    for _ in range(200):
        p = fallback_problem("division", difficulty, rng=rng)
        nums = _numbers(p.problem_text)
        dividend, divisors = nums[0], nums[1:]
        product = 1
        for d in divisors:
            product *= d
        assert p.correct_answer == int(p.correct_answer)
        assert dividend % product == 0
        assert dividend / product == p.correct_answer
        assert dividend <= profile_for(difficulty).max_value


@pytest.mark.parametrize("operation", ALL_OPS)
@pytest.mark.parametrize("difficulty", ALL_TIERS)
def test_answer_never_in_text_or_hint(operation, difficulty):
    rng = random.Random(11)
    for _ in range(100):
        p = fallback_problem(operation, difficulty, rng=rng)
        assert not mentions_number(p.problem_text, p.correct_answer)
        assert not mentions_number(p.hint, p.correct_answer)
        assert p.hint
        assert p.correct_answer > 0


def test_beginner_addition_ranges_and_sum():
    rng = random.Random(3)
    for _ in range(200):
        p = fallback_problem("addition", "Beginner", rng=rng)
        a, b = _numbers(p.problem_text)
        assert 1 <= a <= 50 and 1 <= b <= 20
        assert p.correct_answer == a + b
        assert p.hint == HINTS[Operation.ADDITION]


def test_subtraction_never_goes_negative():
    rng = random.Random(5)
    for tier in ALL_TIERS:
        for _ in range(100):
            p = fallback_problem("subtraction", tier, rng=rng)
            start, *used = _numbers(p.problem_text)
            assert p.correct_answer == pytest.approx(start - sum(used))
            assert p.correct_answer > 0


def test_multiplication_matches_product():
    rng = random.Random(9)
    for tier in ALL_TIERS:
        p = fallback_problem("multiplication", tier, rng=rng)
        nums = _numbers(p.problem_text)
        product = 1
        for n in nums:
            product *= n
        assert len(nums) == profile_for(tier).operands
        assert p.correct_answer == pytest.approx(product)


@pytest.mark.parametrize("difficulty", [Difficulty.ADVANCED, Difficulty.EXPERT])
def test_harder_multiplication_uses_decimal_price(difficulty):
    rng = random.Random(4)
    for _ in range(50):
        p = fallback_problem("multiplication", difficulty, rng=rng)
        price = re.search(r"costs \$(\d+)\.(\d)0\b", p.problem_text)
        assert price is not None
        assert price.group(2) != "0"
        assert p.correct_answer > 0


def test_beginner_multiplication_stays_whole():
    rng = random.Random(4)
    for _ in range(50):
        p = fallback_problem("multiplication", "Beginner", rng=rng)
        assert "$" not in p.problem_text
        assert p.correct_answer == int(p.correct_answer)


def test_steps_scale_with_difficulty():
    counts = {}
    for tier in ALL_TIERS:
        p = fallback_problem("addition", tier, rng=random.Random(1))
        counts[tier] = len(_numbers(p.problem_text))
    assert counts[Difficulty.BEGINNER] == 2
    assert counts[Difficulty.INTERMEDIATE] == 3
    assert counts[Difficulty.ADVANCED] == 4


def test_same_seed_same_problem():
    a = fallback_problem("mixed", "Advanced", rng=random.Random(42))
    b = fallback_problem("mixed", "Advanced", rng=random.Random(42))
    assert a == b


def test_mixed_draws_all_four_operators():
    rng = random.Random(0)
    hints = {fallback_problem("mixed", "Beginner", rng=rng).hint for _ in range(200)}
    assert hints == set(HINTS.values())


def test_mixed_keeps_requested_operation():
    p = fallback_problem("mixed", "Expert", rng=random.Random(2))
    assert p.operation is Operation.MIXED
    assert p.source == "fallback"
