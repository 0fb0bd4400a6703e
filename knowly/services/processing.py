from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from knowly.models.material import Material
from knowly.services.extraction import ExtractionFailed, extract_text
from knowly.services.generation import (
    ChatClient,
    ProgressCallback,
    generate_learning_content,
    regenerate_quiz_questions,
)
from knowly.services.materials import (
    get_material,
    load_content,
    replace_quiz_questions,
    set_content,
    set_extracted_text,
    set_failed,
    set_uploaded,
)
from knowly.services.uploads import UploadFailed, Uploader

logger = logging.getLogger(__name__)


def ingest_file(
    db: Session,
    material_id: str,
    *,
    data: bytes,
    file_name: str,
    content_type: str | None,
    uploader: Uploader,
) -> Material:
    """
    Upload + extraction for a freshly created material. Failures are recorded
    on the material (status=error) instead of being raised.
    """
    try:
        uploaded = uploader.upload(data, file_name, content_type)
        set_uploaded(db, material_id, file_url=uploaded.file_url, file_key=uploaded.file_key)

        text = extract_text(data, file_name, content_type)
        return set_extracted_text(db, material_id, text)
    except (UploadFailed, ExtractionFailed) as e:
        logger.warning("ingest failed for material %s: %s", material_id, e)
        return set_failed(db, material_id, str(e))
    except SQLAlchemyError as e:
        logger.error("ingest could not store material %s: %s", material_id, e)
        db.rollback()
        return set_failed(db, material_id, f"Could not store extracted text: {e.__class__.__name__}")


def generate_and_store(
    db: Session,
    material_id: str,
    client: ChatClient,
    lesson_length: str = "normal",
    on_progress: ProgressCallback | None = None,
) -> Material:
    m = get_material(db, material_id)
    if m.status != "processing":
        raise ValueError(f"Material is not ready for generation (status={m.status})")
    if not m.extracted_text:
        raise ValueError("Material extracted_text is empty; ingest first.")

    result = generate_learning_content(client, m.extracted_text, lesson_length, on_progress=on_progress)
    return set_content(db, material_id, result)


def regenerate_and_store(db: Session, material_id: str, client: ChatClient) -> bool:
    """
    New quiz questions for a completed material. Returns False (and leaves
    the stored quiz alone) when the model produced no usable questions.
    """
    m = get_material(db, material_id)
    content = load_content(m)
    if content is None or not m.extracted_text:
        raise ValueError(f"Material has no generated content (status={m.status})")

    language = m.detected_language or content.detected_language
    questions = regenerate_quiz_questions(client, m.extracted_text, language, content.quiz_questions)
    if not questions:
        logger.warning("regeneration for material %s produced no questions; keeping the old quiz", material_id)
        return False

    replace_quiz_questions(db, material_id, questions)
    return True


def record_failure(db: Session, material_id: str, error: str) -> None:
    db.rollback()
    if db.get(Material, material_id) is None:
        # deleted while the job was running
        return
    set_failed(db, material_id, error)
