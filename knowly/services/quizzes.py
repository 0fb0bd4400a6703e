from __future__ import annotations

from typing import Mapping, Sequence

from sqlalchemy.orm import Session

from knowly.models.quiz_attempt import QuizAttempt
from knowly.schemas import QuizQuestion
from knowly.services.materials import append_quiz_attempt, get_material, load_content


def _load_quiz(db: Session, material_id: str) -> list[QuizQuestion]:
    m = get_material(db, material_id)
    content = load_content(m)
    if content is None:
        return []
    return list(content.quiz_questions)


def score_answers(questions: Sequence[QuizQuestion], answers: Mapping[int, int | None]) -> int:
    """
    answers maps question index -> chosen option index (None = unanswered).
    Returns the number of correct answers.
    """
    correct = 0
    for i, q in enumerate(questions):
        if answers.get(i) == q.correct_answer:
            correct += 1
    return correct


def submit_quiz_attempt(db: Session, material_id: str, answers: Mapping[int, int | None]) -> QuizAttempt:
    questions = _load_quiz(db, material_id)
    if not questions:
        raise ValueError("No quiz found for this material. Generate materials first.")

    for idx in answers:
        if not 0 <= idx < len(questions):
            raise ValueError(f"question index out of range (0..{len(questions) - 1})")

    correct = score_answers(questions, answers)
    return append_quiz_attempt(db, material_id, total_questions=len(questions), correct_answers=correct)


def list_quiz_attempts(db: Session, material_id: str) -> list[QuizAttempt]:
    m = get_material(db, material_id)
    return list(m.quiz_attempts)
