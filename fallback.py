"""
Deterministic-given-seed word problems for when the AI backend is unavailable.

One template per operation. Harder tiers add operands of the same operation
(more steps). Advanced and Expert use one-decimal quantities everywhere except
division. Division is
built from quotient x divisors so it never leaves a remainder.
"""

from __future__ import annotations

import random
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from difficulty import Difficulty, DifficultyProfile, Operation, profile_for
from evaluator import format_number, mentions_number
from schemas.problems import Problem

HINTS = {
    Operation.ADDITION: (
        "When you're combining groups of items, think about which operation "
        "helps you find the total."
    ),
    Operation.SUBTRACTION: (
        "When items are taken away or used up, think about which operation "
        "helps you find what remains."
    ),
    Operation.MULTIPLICATION: (
        "When you have equal groups of items, think about which operation helps "
        "you find the total quickly."
    ),
    Operation.DIVISION: (
        "When you're sharing items equally among groups, think about which "
        "operation tells you how many each group gets."
    ),
}

CONCRETE_OPERATIONS = [
    Operation.ADDITION,
    Operation.SUBTRACTION,
    Operation.MULTIPLICATION,
    Operation.DIVISION,
]

_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday"]
_USES = ["the garden", "washing the car", "cooking", "cleaning"]
_CHAIN = [("crate", "crates"), ("box", "boxes"), ("pack", "packs"), ("pencil", "pencils")]
_GROUPS = [("class", "classes"), ("group", "groups")]

Built = Tuple[str, Decimal]


def _join(parts: List[str]) -> str:
    if len(parts) == 1:
        return parts[0]
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def _fmt(d: Decimal) -> str:
    return format_number(float(d))


def _quantity(rng: random.Random, hi: int, decimals: bool) -> Decimal:
    if decimals:
        return Decimal(rng.randint(10, hi * 10)) / Decimal(10)
    return Decimal(rng.randint(1, hi))


def _addition(rng: random.Random, p: DifficultyProfile) -> Built:
    qs = [_quantity(rng, p.max_a, False)]
    qs += [_quantity(rng, p.max_b, p.decimals) for _ in range(p.operands - 1)]
    parts = [f"{_fmt(qs[0])} kg of flour on {_DAYS[0]}"]
    parts += [f"{_fmt(q)} kg on {day}" for q, day in zip(qs[1:], _DAYS[1:])]
    text = (
        f"A baker uses {_join(parts)}. "
        "How many kilograms of flour does the baker use altogether?"
    )
    return text, sum(qs, Decimal(0))


def _subtraction(rng: random.Random, p: DifficultyProfile) -> Built:
    per_use = max(1, p.max_b // (p.operands - 1))
    used = [_quantity(rng, per_use, p.decimals) for _ in range(p.operands - 1)]
    total_used = sum(used, Decimal(0))
    start = Decimal(rng.randint(int(total_used) + 1, max(int(total_used) + 1, p.max_a)))
    parts = [f"{_fmt(used[0])} litres are used for {_USES[0]}"]
    parts += [f"{_fmt(q)} litres for {use}" for q, use in zip(used[1:], _USES[1:])]
    text = (
        f"A water tank holds {_fmt(start)} litres of water. {_join(parts)}. "
        "How many litres of water are left in the tank?"
    )
    return text, start - total_used


def _multiplication(rng: random.Random, p: DifficultyProfile) -> Built:
    # decimal tiers spend the last operand on a one-decimal unit price
    n = p.operands - 1 if p.decimals else p.operands
    units = _CHAIN[-n:]
    per_unit_max = 12 if n == 2 else 6
    factors = [Decimal(rng.randint(2, p.max_factor))]
    factors += [Decimal(rng.randint(2, per_unit_max)) for _ in range(n - 1)]
    holds = _join(
        [f"each {units[i - 1][0]} holds {factors[i]} {units[i][1]}" for i in range(1, n)]
    )
    text = f"A shop receives {factors[0]} {units[0][1]}. {holds[0].upper()}{holds[1:]}. "
    if p.decimals:
        price = Decimal(rng.choice([k for k in range(5, 100) if k % 10])) / Decimal(10)
        factors.append(price)
        text += (
            f"Each {units[-1][0]} costs ${price:.2f}. "
            f"How many dollars do all the {units[-1][1]} cost?"
        )
    else:
        text += f"How many {units[-1][1]} are there in total?"
    answer = Decimal(1)
    for f in factors:
        answer *= f
    return text, answer


def _division(rng: random.Random, p: DifficultyProfile) -> Built:
    n_divisors = min(p.operands - 1, 2)
    d1 = rng.randint(2, 9)
    divisors = [d1]
    if n_divisors == 2:
        divisors.append(rng.randint(2, max(2, min(9, p.max_value // (2 * d1)))))
    product = 1
    for d in divisors:
        product *= d
    quotient = rng.randint(2, max(2, min(p.max_factor, p.max_value // product)))
    dividend = quotient * product

    if n_divisors == 1:
        text = (
            f"A teacher has {dividend} stickers. She shares them equally among "
            f"{divisors[0]} students. How many stickers does each student get?"
        )
    else:
        text = (
            f"A teacher has {dividend} stickers. She shares them equally among "
            f"{divisors[0]} {_GROUPS[0][1]}, and each {_GROUPS[0][0]} shares its "
            f"stickers equally among {divisors[1]} {_GROUPS[1][1]}. "
            f"How many stickers does each {_GROUPS[1][0]} get?"
        )
    return text, Decimal(quotient)


_BUILDERS: dict[Operation, Callable[[random.Random, DifficultyProfile], Built]] = {
    Operation.ADDITION: _addition,
    Operation.SUBTRACTION: _subtraction,
    Operation.MULTIPLICATION: _multiplication,
    Operation.DIVISION: _division,
}


def fallback_problem(
    operation: Operation | str,
    difficulty: Difficulty | str,
    rng: Optional[random.Random] = None,
) -> Problem:
    rng = rng or random.Random()
    requested = Operation(operation)
    diff = Difficulty(difficulty)
    op = rng.choice(CONCRETE_OPERATIONS) if requested is Operation.MIXED else requested
    profile = profile_for(diff)

    # resample until the answer does not show up among the numbers in the text
    while True:
        text, answer = _BUILDERS[op](rng, profile)
        if not mentions_number(text, float(answer)):
            break

    return Problem(
        problem_text=text,
        correct_answer=float(answer),
        operation=requested,
        difficulty=diff,
        hint=HINTS[op],
        source="fallback",
    )
