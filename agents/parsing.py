# =============================================================================
# agents/parsing.py - Model Reply Parsing
# =============================================================================
# Pulls the JSON payload out of a chat completion reply. Models sometimes
# wrap JSON in prose or markdown fences, so the outermost {...} or [...]
# block is located first and only that is decoded.
# =============================================================================

from __future__ import annotations

import json
import re
from typing import Any, Literal

from lib.utils import ApplicationError


class AIServiceError(ApplicationError):
    """Error raised by the proposal analyst (provider or parsing failure)."""

    def __init__(
        self,
        message: str,
        code: str = "AI_SERVICE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)


_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


def extract_json(text: str, expect: Literal["object", "array"] = "object") -> Any:
    """
    Decode the outermost JSON object or array embedded in `text`.

    Args:
        text: Raw model reply
        expect: "object" for {...}, "array" for [...]

    Returns:
        The decoded dict or list

    Raises:
        AIServiceError: JSON_NOT_FOUND when no block is present,
            JSON_PARSE_ERROR when the block is not valid JSON

    Example:
        extract_json('Here you go: {"score": 80}')  # {"score": 80}
    """
    pattern = _ARRAY_PATTERN if expect == "array" else _OBJECT_PATTERN
    match = pattern.search(text or "")
    if not match:
        raise AIServiceError(
            message=f"No JSON {expect} found in AI response",
            code="JSON_NOT_FOUND",
            suggestion="Retry the request; the model replied without structured output",
            details={"response_preview": (text or "")[:200]},
        )

    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIServiceError(
            message=f"AI response contained invalid JSON: {e}",
            code="JSON_PARSE_ERROR",
            suggestion="Retry the request; the model produced malformed JSON",
            details={"response_preview": match.group(0)[:200]},
        )


_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def extract_key_findings(text: str, limit: int = 5) -> list[str]:
    """First `limit` sentences longer than 20 characters, stripped."""
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text or "")]
    return [s for s in sentences if len(s) > 20][:limit]
