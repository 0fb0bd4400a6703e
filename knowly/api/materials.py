from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from knowly.api.deps import get_owner_key
from knowly.db.session import get_db
from knowly.models.material import Material
from knowly.schemas import LessonLength, SortBy
from knowly.services.extraction import is_supported_file, resolve_file_type
from knowly.services.job_dispatch import dispatch_job
from knowly.services.materials import (
    MaterialNotFound,
    apply_suggested_title,
    attempt_out,
    create_material,
    delete_material,
    get_material,
    list_materials,
    material_out,
    rename_material,
)
from knowly.services.processing import ingest_file
from knowly.services.quizzes import list_quiz_attempts, submit_quiz_attempt
from knowly.services.quota import UploadLimitReached, check_and_count_upload
from knowly.services.uploads import UploadFailed, build_uploader

router = APIRouter(prefix="/materials", tags=["materials"])


def _owned(db: Session, material_id: str, owner_key: str) -> Material:
    try:
        return get_material(db, material_id, owner_key=owner_key)
    except MaterialNotFound:
        raise HTTPException(status_code=404, detail="Material not found")


def _dump(m: Material) -> dict:
    return material_out(m).model_dump(mode="json", by_alias=True)


# -----------------------
# Upload + generation
# -----------------------
class MaterialUploadResponse(BaseModel):
    ok: bool
    material_id: str
    status: str
    job_id: int | None = None
    task_id: str | None = None
    error: str | None = None


@router.post("", response_model=MaterialUploadResponse)
def upload_material(
    file: UploadFile = File(...),
    lesson_length: LessonLength = Form("normal"),
    owner_key: str = Depends(get_owner_key),
    db: Session = Depends(get_db),
) -> MaterialUploadResponse:
    file_name = file.filename or "upload"
    if not is_supported_file(file_name, file.content_type):
        raise HTTPException(status_code=400, detail="Only PDF, PPT and text files are allowed.")

    try:
        check_and_count_upload(db, owner_key)
    except UploadLimitReached as e:
        raise HTTPException(status_code=402, detail=str(e))

    try:
        uploader = build_uploader()
    except UploadFailed as e:
        raise HTTPException(status_code=500, detail=str(e))

    data = file.file.read()
    m = create_material(db, owner_key, file_name, resolve_file_type(file_name, file.content_type))
    m = ingest_file(db, m.id, data=data, file_name=file_name, content_type=file.content_type, uploader=uploader)
    if m.status == "error":
        return MaterialUploadResponse(ok=False, material_id=m.id, status=m.status, error=m.error)

    job, task_id = dispatch_job(
        db,
        "generate_material_content",
        {"material_id": m.id, "lesson_length": lesson_length},
        owner_key=owner_key,
    )

    # eager mode (ENV=test) has already run the task at this point
    db.refresh(m)
    return MaterialUploadResponse(
        ok=m.status != "error",
        material_id=m.id,
        status=m.status,
        job_id=job.id,
        task_id=task_id,
        error=m.error,
    )


@router.get("")
def list_owned_materials(
    sort_by: SortBy = Query(default="date"),
    owner_key: str = Depends(get_owner_key),
    db: Session = Depends(get_db),
):
    rows = list_materials(db, owner_key, sort_by=sort_by)
    return {"ok": True, "sort_by": sort_by, "materials": [_dump(m) for m in rows]}


@router.get("/{material_id}")
def get_owned_material(material_id: str, owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)):
    m = _owned(db, material_id, owner_key)
    return {"ok": True, "material": _dump(m)}


# -----------------------
# Edits
# -----------------------
class RenameRequest(BaseModel):
    file_name: str


@router.patch("/{material_id}")
def rename(
    material_id: str,
    req: RenameRequest,
    owner_key: str = Depends(get_owner_key),
    db: Session = Depends(get_db),
):
    _owned(db, material_id, owner_key)
    try:
        m = rename_material(db, material_id, req.file_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "material": _dump(m)}


@router.post("/{material_id}/apply-title")
def apply_title(material_id: str, owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)):
    _owned(db, material_id, owner_key)
    try:
        m = apply_suggested_title(db, material_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "material": _dump(m)}


@router.delete("/{material_id}")
def delete(material_id: str, owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)):
    _owned(db, material_id, owner_key)
    delete_material(db, material_id)
    return {"ok": True, "material_id": material_id}


# -----------------------
# Quiz
# -----------------------
class RegenerateQuizResponse(BaseModel):
    ok: bool
    material_id: str
    job_id: int
    task_id: str


@router.post("/{material_id}/quiz/regenerate", response_model=RegenerateQuizResponse)
def regenerate_questions(
    material_id: str,
    owner_key: str = Depends(get_owner_key),
    db: Session = Depends(get_db),
) -> RegenerateQuizResponse:
    m = _owned(db, material_id, owner_key)
    if m.status != "completed":
        raise HTTPException(status_code=400, detail=f"Material has no generated content yet (status={m.status})")

    job, task_id = dispatch_job(db, "regenerate_quiz", {"material_id": material_id}, owner_key=owner_key)
    return RegenerateQuizResponse(ok=True, material_id=material_id, job_id=job.id, task_id=task_id)


class QuizAttemptRequest(BaseModel):
    answers: dict[int, int | None]  # question index -> chosen option index


@router.post("/{material_id}/quiz/attempts")
def submit_attempt(
    material_id: str,
    req: QuizAttemptRequest,
    owner_key: str = Depends(get_owner_key),
    db: Session = Depends(get_db),
):
    _owned(db, material_id, owner_key)
    try:
        a = submit_quiz_attempt(db, material_id, req.answers)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "material_id": material_id, "attempt": attempt_out(a).model_dump(mode="json", by_alias=True)}


@router.get("/{material_id}/quiz/attempts")
def quiz_attempts(material_id: str, owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)):
    _owned(db, material_id, owner_key)
    attempts = [attempt_out(a).model_dump(mode="json", by_alias=True) for a in list_quiz_attempts(db, material_id)]
    return {"ok": True, "material_id": material_id, "total": len(attempts), "attempts": attempts}
