from __future__ import annotations

import logging
import math
import random
from typing import Optional, Union

from pydantic import BaseModel, StrictFloat, StrictInt

from ai_client import AIUnavailable, TextGenerator, default_client, generate_json
from difficulty import Difficulty, Operation, profile_for
from errors import InvalidRequest
from evaluator import mentions_number, parse_answer
from fallback import fallback_problem
from schemas.problems import Problem

logger = logging.getLogger("sumrise-practice.generation")

_OPERATION_RULES = {
    Operation.ADDITION: "The problem should involve ONLY addition operations.",
    Operation.SUBTRACTION: "The problem should involve ONLY subtraction operations.",
    Operation.MULTIPLICATION: "The problem should involve ONLY multiplication operations.",
    Operation.DIVISION: "The problem should involve ONLY division operations.",
    Operation.MIXED: (
        "The problem can involve any mix of addition, subtraction, multiplication, "
        "or division operations."
    ),
}


class ProblemReply(BaseModel):
    problem_text: str
    final_answer: Union[StrictInt, StrictFloat, str]
    hint: str


def build_problem_prompt(operation: Operation, difficulty: Difficulty) -> str:
    profile = profile_for(difficulty)
    return (
        "You are an assistant that ONLY returns JSON.\n"
        f"Return a single {profile.complexity} Primary 5 level math word problem as a "
        "JSON object with exactly three fields:\n"
        '- "problem_text": a short word problem appropriate for Primary 5 (age 10-11). '
        "Do NOT include the answer in the text. "
        f"{_OPERATION_RULES[operation]} {profile.constraints}\n"
        '- "final_answer": the final numerical answer (an integer or decimal).\n'
        '- "hint": a single helpful hint that guides the student toward the solution '
        "without giving away the answer. The hint should explain what mathematical "
        "concept or operation to consider.\n\n"
        "Return only the JSON and nothing else. Example: "
        '{"problem_text": "A bakery sold 45 cupcakes...", "final_answer": 15, '
        '"hint": "Think about what operation you need to find the total when '
        "you're combining groups of items.\"}"
    )


def _problem_from_reply(
    reply: ProblemReply, operation: Operation, difficulty: Difficulty
) -> Problem:
    text = reply.problem_text.strip()
    hint = reply.hint.strip()
    if not text or not hint:
        raise AIUnavailable("malformed", "empty problem_text or hint")
    try:
        answer = parse_answer(reply.final_answer)
    except InvalidRequest as e:
        raise AIUnavailable("malformed", f"final_answer not numeric: {e}") from e
    if not math.isfinite(answer):
        raise AIUnavailable("malformed", "final_answer not finite")
    if mentions_number(text, answer) or mentions_number(hint, answer):
        raise AIUnavailable("leaked_answer", "answer appears in problem text or hint")
    return Problem(
        problem_text=text,
        correct_answer=answer,
        operation=operation,
        difficulty=difficulty,
        hint=hint,
        source="ai",
    )


def generate_problem(
    operation: Operation | str,
    difficulty: Difficulty | str,
    client: Optional[TextGenerator] = None,
    rng: Optional[random.Random] = None,
) -> Problem:
    """Never fails: any AI failure is logged and answered by the fallback generator."""
    op = Operation(operation)
    diff = Difficulty(difficulty)
    client = client or default_client()
    try:
        reply = generate_json(client, build_problem_prompt(op, diff), ProblemReply)
        return _problem_from_reply(reply, op, diff)
    except AIUnavailable as e:
        logger.warning("problem generation via AI failed (%s); using fallback", e.kind)
    return fallback_problem(op, diff, rng=rng)
