from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from knowly.models.material import Material
from knowly.models.quiz_attempt import QuizAttempt
from knowly.schemas import GeneratedContent, MaterialOut, QuizAttemptOut, QuizQuestion
from knowly.services.generation import GenerationResult

logger = logging.getLogger(__name__)

STATUSES = ("pending", "processing", "completed", "error")
TERMINAL_STATUSES = ("completed", "error")
SORT_KEYS = ("date", "theme", "name")
DEFAULT_CATEGORY = "Other"


class MaterialNotFound(LookupError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: datetime | None) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC
    if dt is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _get(db: Session, material_id: str) -> Material:
    m = db.get(Material, material_id)
    if not m:
        raise MaterialNotFound(f"Material not found: {material_id}")
    return m


def _save(db: Session, m: Material) -> Material:
    db.commit()
    db.refresh(m)
    return m


# ----------------------------
# Reads
# ----------------------------

def get_material(db: Session, material_id: str, owner_key: str | None = None) -> Material:
    m = _get(db, material_id)
    if owner_key is not None and m.owner_key != owner_key:
        raise MaterialNotFound(f"Material not found: {material_id}")
    return m


def load_content(m: Material) -> GeneratedContent | None:
    if not m.content_json:
        return None
    return GeneratedContent.from_json(m.content_json)


def sort_materials(materials: Iterable[Material], sort_by: str = "date") -> list[Material]:
    """
    Pure projection; the input order is never changed.

    date  -> upload time, newest first
    theme -> category A..Z (missing counts as "Other"), newest first within a category
    name  -> file name A..Z, case-insensitive
    """
    items = list(materials)
    if sort_by == "date":
        return sorted(items, key=lambda m: _aware(m.uploaded_at), reverse=True)
    if sort_by == "theme":
        by_date = sorted(items, key=lambda m: _aware(m.uploaded_at), reverse=True)
        return sorted(by_date, key=lambda m: (m.thematic_category or DEFAULT_CATEGORY).casefold())
    if sort_by == "name":
        by_date = sorted(items, key=lambda m: _aware(m.uploaded_at), reverse=True)
        return sorted(by_date, key=lambda m: m.file_name.casefold())
    raise ValueError(f"Invalid sort_by: {sort_by!r}. Use one of: {', '.join(SORT_KEYS)}")


def list_materials(db: Session, owner_key: str, sort_by: str = "date") -> list[Material]:
    rows = db.query(Material).filter(Material.owner_key == owner_key).all()
    return sort_materials(rows, sort_by)


# ----------------------------
# Lifecycle
# ----------------------------

def create_material(db: Session, owner_key: str, file_name: str, file_type: str) -> Material:
    m = Material(
        id=uuid.uuid4().hex,
        owner_key=owner_key,
        file_name=file_name,
        file_type=file_type or "unknown",
        file_url="",
        uploaded_at=_now(),
        extracted_text="",
        status="pending",
    )
    db.add(m)
    return _save(db, m)


def set_status(db: Session, material_id: str, status: str) -> Material:
    """
    Moves a material between the non-terminal states. Completion and failure
    go through set_content / set_failed so content and error stay consistent.
    """
    if status not in ("pending", "processing"):
        raise ValueError(f"Invalid status: {status!r}. Use set_content or set_failed for terminal states")
    m = _get(db, material_id)
    if m.status in TERMINAL_STATUSES:
        raise ValueError(f"Material {material_id} is already {m.status}")
    m.status = status
    return _save(db, m)


def set_uploaded(db: Session, material_id: str, *, file_url: str, file_key: str | None) -> Material:
    m = _get(db, material_id)
    m.file_url = file_url
    m.file_key = file_key
    if m.status == "pending":
        m.status = "processing"
    return _save(db, m)


def set_extracted_text(db: Session, material_id: str, text: str) -> Material:
    m = _get(db, material_id)
    m.extracted_text = text
    return _save(db, m)


def set_content(db: Session, material_id: str, result: GenerationResult) -> Material:
    m = _get(db, material_id)
    m.detected_language = result.language
    m.suggested_title = result.title
    m.thematic_category = result.category
    m.content_json = result.content.to_json()
    m.status = "completed"
    m.error = None
    return _save(db, m)


def set_failed(db: Session, material_id: str, error: str) -> Material:
    m = _get(db, material_id)
    m.status = "error"
    m.error = (error or "").strip() or "Unknown error"
    m.content_json = None
    return _save(db, m)


# ----------------------------
# User edits
# ----------------------------

def rename_material(db: Session, material_id: str, new_name: str) -> Material:
    name = (new_name or "").strip()
    if not name:
        raise ValueError("file_name must not be empty")
    m = _get(db, material_id)
    m.file_name = name
    return _save(db, m)


def apply_suggested_title(db: Session, material_id: str) -> Material:
    """
    Renames the file to "<suggested title>.<original extension>".
    """
    m = _get(db, material_id)
    if not m.suggested_title:
        raise ValueError("Material has no suggested title yet")
    _, dot, ext = m.file_name.rpartition(".")
    new_name = f"{m.suggested_title}.{ext}" if dot else m.suggested_title
    return rename_material(db, material_id, new_name)


def delete_material(db: Session, material_id: str) -> None:
    m = _get(db, material_id)
    db.delete(m)
    db.commit()


def append_quiz_attempt(db: Session, material_id: str, *, total_questions: int, correct_answers: int) -> QuizAttempt:
    if total_questions <= 0:
        raise ValueError("total_questions must be > 0")
    if not 0 <= correct_answers <= total_questions:
        raise ValueError(f"correct_answers out of range (0..{total_questions})")

    m = _get(db, material_id)
    attempt = QuizAttempt(
        taken_at=_now(),
        total_questions=total_questions,
        correct_answers=correct_answers,
        percentage=correct_answers / total_questions * 100,
    )
    m.quiz_attempts.append(attempt)
    db.commit()
    db.refresh(attempt)
    return attempt


def replace_quiz_questions(db: Session, material_id: str, questions: Sequence[QuizQuestion]) -> Material:
    """
    Swaps only the quiz slice of the stored content. Status, lessons,
    summary and flashcards are left untouched.
    """
    m = _get(db, material_id)
    content = load_content(m)
    if m.status != "completed" or content is None:
        raise ValueError(f"Material {material_id} has no generated content (status={m.status})")

    m.content_json = content.with_quiz_questions(list(questions)).to_json()
    return _save(db, m)


# ----------------------------
# Serialization
# ----------------------------

def attempt_out(a: QuizAttempt) -> QuizAttemptOut:
    return QuizAttemptOut(
        timestamp=_aware(a.taken_at),
        total_questions=a.total_questions,
        correct_answers=a.correct_answers,
        percentage=a.percentage,
    )


def material_out(m: Material) -> MaterialOut:
    return MaterialOut(
        id=m.id,
        file_name=m.file_name,
        file_type=m.file_type,
        file_url=m.file_url,
        uploaded_at=_aware(m.uploaded_at),
        extracted_text=m.extracted_text,
        detected_language=m.detected_language,
        suggested_title=m.suggested_title,
        thematic_category=m.thematic_category,
        content=load_content(m),
        processing_status=m.status,
        error=m.error,
        quiz_results=[attempt_out(a) for a in m.quiz_attempts],
    )
