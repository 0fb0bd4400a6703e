from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

LessonLength = Literal["short", "normal", "long"]
MaterialStatus = Literal["pending", "processing", "completed", "error"]
SortBy = Literal["date", "theme", "name"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class MicroLesson(_CamelModel):
    title: str
    content: str


class QuizQuestion(_CamelModel):
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_answer: int
    explanation: str | None = None

    @model_validator(mode="after")
    def _answer_in_range(self) -> "QuizQuestion":
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer} out of range (0..{len(self.options) - 1})"
            )
        return self


class Flashcard(_CamelModel):
    front: str
    back: str


class GeneratedContent(_CamelModel):
    """
    The bundle produced by one pipeline run. Frozen: a regeneration builds a
    new value with `with_quiz_questions` instead of mutating this one.
    """
    micro_lessons: list[MicroLesson]
    quiz_questions: list[QuizQuestion]
    summary: str
    flashcards: list[Flashcard]
    detected_language: str

    def with_quiz_questions(self, questions: list[QuizQuestion]) -> "GeneratedContent":
        return self.model_copy(update={"quiz_questions": list(questions)})

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "GeneratedContent":
        return cls.model_validate_json(raw)


class QuizAttemptOut(_CamelModel):
    timestamp: datetime
    total_questions: int
    correct_answers: int
    percentage: float


class MaterialOut(_CamelModel):
    id: str
    file_name: str
    file_type: str
    file_url: str
    uploaded_at: datetime
    extracted_text: str
    detected_language: str | None = None
    suggested_title: str | None = None
    thematic_category: str | None = None
    content: GeneratedContent | None = None
    processing_status: MaterialStatus
    error: str | None = None
    quiz_results: list[QuizAttemptOut] = []
