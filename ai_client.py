"""
Boundary around the generative-AI backend.

Everything the rest of the service gets back from here is either a validated
pydantic model or an AIUnavailable error. Raw reply text (code fences, prose
around the JSON) never leaves this module.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger("sumrise-practice.ai")

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.5-flash"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

M = TypeVar("M", bound=BaseModel)


class AIUnavailable(Exception):
    """Transport, auth, timeout or reply-shape failure. Callers fall back."""

    def __init__(self, kind: str, detail: str = ""):
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind = kind


class TextGenerator(Protocol):
    def generate_text(self, prompt: str) -> str: ...


class GeminiClient:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("GOOGLE_API_KEY", "")
        self.model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self.timeout = timeout or float(os.getenv("AI_TIMEOUT_SECONDS", "20"))
        self._transport = transport

    def generate_text(self, prompt: str) -> str:
        if not self.api_key:
            raise AIUnavailable("disabled", "GOOGLE_API_KEY not configured")

        url = GEMINI_URL.format(model=self.model)
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(url, params={"key": self.api_key}, json=body)
        except httpx.TimeoutException as e:
            raise AIUnavailable("timeout", str(e)) from e
        except httpx.HTTPError as e:
            raise AIUnavailable("transport", str(e)) from e

        if resp.status_code in (401, 403):
            raise AIUnavailable("auth", f"status {resp.status_code}")
        if resp.status_code == 404:
            raise AIUnavailable("not_found", f"model {self.model}")
        if resp.status_code >= 400:
            raise AIUnavailable("upstream", f"status {resp.status_code}")

        try:
            data = resp.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIUnavailable("malformed", "no candidate text") from e
        if not isinstance(text, str) or not text.strip():
            raise AIUnavailable("malformed", "empty candidate text")
        return text.strip()


def default_client() -> GeminiClient:
    return GeminiClient()


def extract_json(text: str) -> dict:
    """Pull the first {...} object out of a reply, ignoring fences and prose."""
    s = _FENCE_RE.sub("", (text or "").strip())
    m = _OBJECT_RE.search(s)
    if not m:
        raise AIUnavailable("malformed", "no JSON object in reply")
    try:
        obj = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise AIUnavailable("malformed", f"bad JSON: {e.msg}") from e
    if not isinstance(obj, dict):
        raise AIUnavailable("malformed", "reply JSON is not an object")
    return obj


def generate_json(client: TextGenerator, prompt: str, shape: Type[M]) -> M:
    text = client.generate_text(prompt)
    try:
        return shape.model_validate(extract_json(text))
    except ValidationError as e:
        raise AIUnavailable("malformed", f"{e.error_count()} field error(s)") from e


def generate_plain(client: TextGenerator, prompt: str) -> str:
    text = client.generate_text(prompt)
    if not isinstance(text, str) or not text.strip():
        raise AIUnavailable("malformed", "empty reply")
    return text.strip()
