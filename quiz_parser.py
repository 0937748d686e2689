"""
Turns raw model output into validated quiz questions.

This is the only place untrusted completion text becomes program data,
so every question is checked, not just the first.
"""
import json
import logging
import re
from typing import Any, List

from pydantic import ValidationError

from errors import ParseError
from models import QuizQuestion

logger = logging.getLogger(__name__)

_OPEN_FENCE_RE = re.compile(r"\A\s*```[ \t]*[\w+-]*[ \t]*\n?")
_CLOSE_FENCE_RE = re.compile(r"\n?[ \t]*```\s*\Z")

# how much of an unparsable completion goes into the log
LOG_PREVIEW_CHARS = 500


def strip_code_fence(text: str) -> str:
    """Remove a leading ```<label> line and a trailing ``` if present."""
    text = (text or "").strip()
    if not text.startswith("```"):
        return text
    text = _OPEN_FENCE_RE.sub("", text, count=1)
    text = _CLOSE_FENCE_RE.sub("", text, count=1)
    return text.strip()


def _validate_question(index: int, item: Any) -> QuizQuestion:
    if not isinstance(item, dict):
        raise ParseError(f"Question {index} is not an object")
    try:
        return QuizQuestion.model_validate(item)
    except ValidationError as e:
        raise ParseError(f"Question {index} failed validation: {e}") from e


def parse(raw_text: str) -> List[QuizQuestion]:
    text = strip_code_fence(raw_text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Completion is not valid JSON (%s): %r", e, (raw_text or "")[:LOG_PREVIEW_CHARS])
        raise ParseError(f"Completion is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "questions" not in data:
        raise ParseError("Completion JSON has no 'questions' field")
    questions = data["questions"]
    if not isinstance(questions, list):
        raise ParseError("'questions' is not a list")

    return [_validate_question(i, q) for i, q in enumerate(questions)]


def dump_questions(questions: List[QuizQuestion]) -> List[dict]:
    """Serialize back to the camelCase shape the model produced."""
    return [q.model_dump(by_alias=True) for q in questions]
