import json
import random

import httpx

from ai_client import AIUnavailable, GeminiClient, extract_json
from difficulty import Difficulty, Operation
from generation import build_problem_prompt, generate_problem
from tests.fakes import FakeAI

GOOD = {
    "problem_text": "A bakery baked 45 cupcakes and sold 30 of them. How many are left?",
    "final_answer": 15,
    "hint": "Think about what happens when some items are taken away.",
}


def test_ai_reply_wrapped_in_fences_is_used():
    ai = FakeAI("Sure! Here it is:\n```json\n" + json.dumps(GOOD) + "\n```\nEnjoy!")
    p = generate_problem("subtraction", "Beginner", client=ai)
    assert p.source == "ai"
    assert p.correct_answer == 15
    assert p.problem_text == GOOD["problem_text"]
    assert p.hint == GOOD["hint"]
    assert p.operation is Operation.SUBTRACTION


def test_numeric_string_answer_is_coerced():
    ai = FakeAI(json.dumps({**GOOD, "final_answer": "15"}))
    assert generate_problem("subtraction", "Beginner", client=ai).correct_answer == 15.0


def test_bad_replies_fall_back():
    bad_replies = [
        "no json here",
        "{not valid json}",
        json.dumps({**GOOD, "final_answer": "fifteen"}),
        json.dumps({**GOOD, "final_answer": True}),
        json.dumps({"problem_text": GOOD["problem_text"], "final_answer": 15}),
        json.dumps({**GOOD, "problem_text": 42}),
        json.dumps({**GOOD, "hint": "The answer is 15."}),
        AIUnavailable("auth", "status 403"),
        AIUnavailable("timeout"),
    ]
    for reply in bad_replies:
        p = generate_problem("addition", "Beginner", client=FakeAI(reply), rng=random.Random(1))
        assert p.source == "fallback", reply
        assert p.correct_answer > 0


def test_disabled_client_falls_back():
    p = generate_problem("division", "Expert", client=GeminiClient(api_key=""))
    assert p.source == "fallback"
    assert p.difficulty is Difficulty.EXPERT


def test_prompt_carries_operation_and_tier_constraints():
    prompt = build_problem_prompt(Operation.MULTIPLICATION, Difficulty.ADVANCED)
    assert "ONLY multiplication" in prompt
    assert "numbers up to 500" in prompt
    assert "Primary 5" in prompt
    assert '"hint"' in prompt


def test_extract_json_ignores_surrounding_text():
    assert extract_json('prefix {"a": 1} suffix') == {"a": 1}


def _client_with(handler):
    return GeminiClient(api_key="k", model="m", timeout=1, transport=httpx.MockTransport(handler))


def test_gemini_client_reads_candidate_text():
    def handler(request):
        assert request.url.params["key"] == "k"
        assert "/models/m:generateContent" in request.url.path
        body = {"candidates": [{"content": {"parts": [{"text": " hello "}]}}]}
        return httpx.Response(200, json=body)

    assert _client_with(handler).generate_text("hi") == "hello"


def test_gemini_client_error_kinds():
    for status, kind in ((401, "auth"), (403, "auth"), (404, "not_found"), (500, "upstream")):
        client = _client_with(lambda request, s=status: httpx.Response(s, text="nope"))
        try:
            client.generate_text("hi")
        except AIUnavailable as e:
            assert e.kind == kind
        else:
            raise AssertionError("expected AIUnavailable")


def test_gemini_client_timeout_is_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    try:
        _client_with(handler).generate_text("hi")
    except AIUnavailable as e:
        assert e.kind == "timeout"
    else:
        raise AssertionError("expected AIUnavailable")
