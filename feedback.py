from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ai_client import AIUnavailable, TextGenerator, default_client, generate_json, generate_plain
from difficulty import Difficulty
from evaluator import format_number
from schemas.solutions import Solution, SolutionStep

logger = logging.getLogger("sumrise-practice.feedback")

DEFAULT_SUMMARY = "Follow these steps to solve similar problems."


class _SolutionReply(BaseModel):
    steps: List[Any] = Field(default_factory=list)
    summary: Optional[str] = None


# ---------- Feedback ----------


def build_feedback_prompt(
    problem_text: str, correct_answer: float, user_answer: Optional[float], is_correct: bool
) -> str:
    if user_answer is None:
        given = "The student ran out of time and did not give an answer."
    else:
        given = f"Student answer: {format_number(user_answer)}"
    return (
        "You are a friendly tutor. Given the problem:\n"
        f"{problem_text}\n"
        f"Correct answer: {format_number(correct_answer)}\n"
        f"{given}\n"
        f"The student was {'correct' if is_correct else 'incorrect'}. Provide brief, "
        "encouraging, and actionable feedback appropriate for a Primary 5 student. "
        "Keep it to 2-4 sentences."
    )


def fallback_feedback(
    correct_answer: float, is_correct: bool, timed_out: bool = False
) -> str:
    if is_correct:
        return (
            "Well done! You answered correctly. "
            "Keep practising similar questions to stay sharp."
        )
    opener = "Time's up!" if timed_out else "Nice try!"
    return (
        f"{opener} The correct answer is {format_number(correct_answer)}. "
        "Reread the question and try to work step by step - "
        "draw or list what you know first."
    )


def feedback_text(
    problem_text: str,
    correct_answer: float,
    user_answer: Optional[float],
    is_correct: bool,
    client: Optional[TextGenerator] = None,
) -> str:
    client = client or default_client()
    prompt = build_feedback_prompt(problem_text, correct_answer, user_answer, is_correct)
    try:
        return generate_plain(client, prompt)
    except AIUnavailable as e:
        logger.warning("feedback via AI failed (%s); using template", e.kind)
    return fallback_feedback(correct_answer, is_correct, timed_out=user_answer is None)


# ---------- Solution ----------


def build_solution_prompt(
    problem_text: str, correct_answer: float, difficulty: Difficulty | str
) -> str:
    answer = format_number(correct_answer)
    level = Difficulty(difficulty).value
    return f"""
You are a helpful math teacher explaining solutions to Primary 5 students (age 10-11).

Problem: {problem_text}
Correct Answer: {answer}
Difficulty Level: {level}

Please provide a clear, step-by-step solution explanation that:
1. Breaks down the problem into simple, logical steps
2. Explains the reasoning behind each step
3. Uses language appropriate for Primary 5 students
4. Shows the mathematical operations clearly
5. Explains why this approach works

Format your response as a JSON object with this structure:
{{
  "steps": [
    {{
      "stepNumber": 1,
      "description": "First, identify what the problem is asking...",
      "calculation": "No calculation needed for this step",
      "explanation": "We need to understand what we're looking for before we start solving."
    }}
  ],
  "finalAnswer": {answer},
  "summary": "A brief summary of the solution approach and key learning points"
}}

Only return the JSON object, nothing else."""


def _step_number(value: Any) -> Optional[int]:
    """Positive integral step number from 2, 2.0 or "2"; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    return None


def _valid_steps(raw_steps: List[Any]) -> List[SolutionStep]:
    steps: List[SolutionStep] = []
    for raw in raw_steps:
        if not isinstance(raw, dict):
            continue
        number = _step_number(raw.get("stepNumber"))
        description = raw.get("description")
        explanation = raw.get("explanation")
        calculation = raw.get("calculation")
        if number is None:
            continue
        if not isinstance(description, str) or not description.strip():
            continue
        if not isinstance(explanation, str) or not explanation.strip():
            continue
        steps.append(
            SolutionStep(
                step_number=number,
                description=description.strip(),
                calculation=calculation if isinstance(calculation, str) else None,
                explanation=explanation.strip(),
            )
        )
    return steps


def fallback_solution(correct_answer: float) -> Solution:
    answer = format_number(correct_answer)
    steps = [
        SolutionStep(
            step_number=1,
            description="Read the problem carefully and identify what you need to find.",
            calculation="No calculation needed",
            explanation="Understanding the problem is the first step to solving it correctly.",
        ),
        SolutionStep(
            step_number=2,
            description="Identify the numbers and operation needed.",
            calculation="Look for key words that tell you what to do",
            explanation=(
                "Words like 'total', 'altogether' suggest addition. "
                "Words like 'left', 'remaining' suggest subtraction."
            ),
        ),
        SolutionStep(
            step_number=3,
            description="Perform the calculation step by step.",
            calculation="Work through the math carefully",
            explanation="Take your time and double-check each step to avoid mistakes.",
        ),
        SolutionStep(
            step_number=4,
            description=f"Check that your answer makes sense. The final answer is {answer}.",
            calculation=f"Final answer: {answer}",
            explanation="Always ask yourself: 'Does this answer seem reasonable for this problem?'",
        ),
    ]
    return Solution(
        steps=steps,
        final_answer=correct_answer,
        summary=(
            "Remember to read carefully, identify the operation, calculate step by step, "
            "and check your work!"
        ),
        source="fallback",
    )


def solution_for(
    problem_text: str,
    correct_answer: float,
    difficulty: Difficulty | str,
    client: Optional[TextGenerator] = None,
) -> Solution:
    client = client or default_client()
    prompt = build_solution_prompt(problem_text, correct_answer, difficulty)
    try:
        reply = generate_json(client, prompt, _SolutionReply)
        steps = _valid_steps(reply.steps)
        if not steps:
            raise AIUnavailable("malformed", "no well-formed steps")
        summary = (reply.summary or "").strip() or DEFAULT_SUMMARY
        # the stored answer wins over whatever the reply claims
        return Solution(
            steps=steps, final_answer=correct_answer, summary=summary, source="ai"
        )
    except AIUnavailable as e:
        logger.warning("solution via AI failed (%s); using generic steps", e.kind)
    return fallback_solution(correct_answer)
