from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from knowly.core.config import settings
from knowly.schemas import GeneratedContent, QuizQuestion
from knowly.services.llm import prompts
from knowly.services.llm.chat_client import ChatCompletion
from knowly.services.llm.parsing import extract_flashcards, extract_lessons, extract_quiz_questions

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]

# stage name -> progress reported once the stage finishes
STAGES: tuple[tuple[str, int], ...] = (
    ("language", 10),
    ("title", 20),
    ("category", 25),
    ("lessons", 40),
    ("quiz", 60),
    ("summary", 80),
    ("flashcards", 100),
)
_CHECKPOINTS = dict(STAGES)


class ChatClient(Protocol):
    def complete(self, messages, model: str | None = None) -> ChatCompletion: ...


@dataclass(frozen=True)
class GenerationResult:
    language: str
    title: str
    category: str
    content: GeneratedContent


def _ask(client: ChatClient, system: str, user: str) -> str:
    resp = client.complete(
        [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
    )
    return resp.content


def lesson_config(lesson_length: str) -> tuple[str, str]:
    try:
        return prompts.LESSON_CONFIG[lesson_length]
    except KeyError:
        raise ValueError(f"Invalid lesson_length: {lesson_length!r}. Use one of: short, normal, long") from None


def detect_language(client: ChatClient, text: str) -> str:
    raw = _ask(
        client,
        prompts.DETECT_LANGUAGE_SYSTEM,
        prompts.DETECT_LANGUAGE_USER.format(text=text[: settings.detect_chars]),
    )
    return raw.strip()


def suggest_title(client: ChatClient, text: str, language: str) -> str:
    raw = _ask(
        client,
        prompts.TITLE_SYSTEM.format(language=language),
        prompts.TITLE_USER.format(text=text[: settings.meta_chars]),
    )
    return raw.strip()


def categorize(client: ChatClient, text: str, language: str) -> str:
    raw = _ask(
        client,
        prompts.CATEGORY_SYSTEM.format(categories=", ".join(prompts.CATEGORIES), language=language),
        prompts.CATEGORY_USER.format(text=text[: settings.meta_chars]),
    )
    return raw.strip()


def generate_lessons(client: ChatClient, text: str, language: str, lesson_length: str = "normal"):
    count, detail = lesson_config(lesson_length)
    raw = _ask(
        client,
        prompts.LESSONS_SYSTEM.format(count=count, detail=detail, language=language),
        prompts.LESSONS_USER.format(text=text[: settings.body_chars]),
    )
    return extract_lessons(raw)


def generate_quiz(client: ChatClient, text: str, language: str) -> list[QuizQuestion]:
    raw = _ask(
        client,
        prompts.QUIZ_SYSTEM.format(language=language),
        prompts.QUIZ_USER.format(text=text[: settings.body_chars]),
    )
    return extract_quiz_questions(raw)


def generate_summary(client: ChatClient, text: str, language: str) -> str:
    return _ask(
        client,
        prompts.SUMMARY_SYSTEM.format(language=language),
        prompts.SUMMARY_USER.format(text=text[: settings.body_chars]),
    )


def generate_flashcards(client: ChatClient, text: str, language: str):
    raw = _ask(
        client,
        prompts.FLASHCARDS_SYSTEM.format(language=language),
        prompts.FLASHCARDS_USER.format(text=text[: settings.body_chars]),
    )
    return extract_flashcards(raw)


def generate_learning_content(
    client: ChatClient,
    text: str,
    lesson_length: str = "normal",
    on_progress: ProgressCallback | None = None,
) -> GenerationResult:
    """
    Runs the seven stages in order. The language found by the first stage is
    passed verbatim to every later prompt. Any client error aborts the run;
    there is no partial result.
    """
    # fail before the first network call
    lesson_config(lesson_length)

    def done(stage: str) -> None:
        logger.info("generation stage %s done", stage)
        if on_progress:
            on_progress(_CHECKPOINTS[stage], stage)

    language = detect_language(client, text)
    done("language")

    title = suggest_title(client, text, language)
    done("title")

    category = categorize(client, text, language)
    done("category")

    lessons = generate_lessons(client, text, language, lesson_length)
    done("lessons")

    questions = generate_quiz(client, text, language)
    done("quiz")

    summary = generate_summary(client, text, language)
    done("summary")

    flashcards = generate_flashcards(client, text, language)
    done("flashcards")

    content = GeneratedContent(
        micro_lessons=lessons,
        quiz_questions=questions,
        summary=summary,
        flashcards=flashcards,
        detected_language=language,
    )
    return GenerationResult(language=language, title=title, category=category, content=content)


def regenerate_quiz_questions(
    client: ChatClient,
    text: str,
    language: str,
    previous: Sequence[QuizQuestion] = (),
) -> list[QuizQuestion]:
    user = prompts.NEW_QUIZ_USER.format(text=text[: settings.body_chars])
    if previous:
        user += prompts.NEW_QUIZ_PREVIOUS.format(questions="\n".join(f"- {q.question}" for q in previous))

    raw = _ask(client, prompts.NEW_QUIZ_SYSTEM.format(language=language), user)
    return extract_quiz_questions(raw)
