from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from knowly.schemas import Flashcard, MicroLesson, QuizQuestion

logger = logging.getLogger(__name__)

FALLBACK_LESSON_TITLE = "Overview"

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class ParsedList:
    """
    Result of decoding `{"<field>": [...]}` out of a completion.

    fallback=True means the text was not a JSON object carrying a list under
    `field`; `items` is then empty and `reason` says why.
    """
    items: list[Any] = field(default_factory=list)
    fallback: bool = False
    reason: str | None = None


def parse_json_list(raw: str, field_name: str) -> ParsedList:
    text = (raw or "").strip()
    if not text:
        return ParsedList(fallback=True, reason="empty response")

    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        # deeply nested input exhausts the decoder stack
        return ParsedList(fallback=True, reason=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return ParsedList(fallback=True, reason=f"expected a JSON object, got {type(data).__name__}")

    items = data.get(field_name)
    if not isinstance(items, list):
        return ParsedList(fallback=True, reason=f"missing list field {field_name!r}")

    return ParsedList(items=items)


def _coerce_items(items: list[Any], model: type[M], field_name: str) -> list[M]:
    out: list[M] = []
    for i, it in enumerate(items):
        try:
            out.append(model.model_validate(it))
        except ValidationError as e:
            logger.warning("dropping %s[%d]: %s", field_name, i, e.errors()[0].get("msg"))
    return out


def _log_fallback(field_name: str, parsed: ParsedList, raw: str) -> None:
    logger.warning(
        "structured parse fell back for %r (%s). First 200 chars: %r",
        field_name,
        parsed.reason,
        (raw or "")[:200],
    )


def extract_lessons(raw: str) -> list[MicroLesson]:
    parsed = parse_json_list(raw, "lessons")
    if parsed.fallback:
        _log_fallback("lessons", parsed, raw)
        return [MicroLesson(title=FALLBACK_LESSON_TITLE, content=raw)]

    lessons = _coerce_items(parsed.items, MicroLesson, "lessons")
    if parsed.items and not lessons:
        _log_fallback("lessons", ParsedList(fallback=True, reason="no item matched the lesson shape"), raw)
        return [MicroLesson(title=FALLBACK_LESSON_TITLE, content=raw)]
    return lessons


def extract_quiz_questions(raw: str) -> list[QuizQuestion]:
    parsed = parse_json_list(raw, "questions")
    if parsed.fallback:
        _log_fallback("questions", parsed, raw)
        return []
    return _coerce_items(parsed.items, QuizQuestion, "questions")


def extract_flashcards(raw: str) -> list[Flashcard]:
    parsed = parse_json_list(raw, "flashcards")
    if parsed.fallback:
        _log_fallback("flashcards", parsed, raw)
        return []
    return _coerce_items(parsed.items, Flashcard, "flashcards")
