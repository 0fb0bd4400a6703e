import json
from typing import Any

from sqlalchemy.orm import Session

from knowly.models.job import Job


class JobNotFound(LookupError):
    pass


def _get(db: Session, job_id: int) -> Job:
    job = db.get(Job, job_id)
    if not job:
        raise JobNotFound(f"Job not found: {job_id}")
    return job


def _payload(job: Job) -> dict[str, Any]:
    try:
        base = json.loads(job.payload_json or "{}")
    except ValueError:
        return {}
    return base if isinstance(base, dict) else {}


def create_job(db: Session, job_type: str, payload: dict, owner_key: str | None = None) -> Job:
    job = Job(
        owner_key=owner_key,
        job_type=job_type,
        status="queued",
        payload_json=json.dumps(payload or {}, ensure_ascii=False),
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_job(db: Session, job_id: int, owner_key: str | None = None) -> Job:
    job = _get(db, job_id)
    if owner_key is not None and job.owner_key != owner_key:
        raise JobNotFound(f"Job not found: {job_id}")
    return job


def get_job_payload(db: Session, job_id: int) -> dict[str, Any]:
    return _payload(_get(db, job_id))


def set_job_status(db: Session, job_id: int, status: str, error: str | None = None) -> Job:
    job = _get(db, job_id)
    job.status = status
    job.error = error
    db.commit()
    db.refresh(job)
    return job


def merge_job_payload(db: Session, job_id: int, patch: dict[str, Any]) -> Job:
    """
    Merge a patch into payload_json: existing keys are kept, keys in the
    patch overwrite.
    """
    job = _get(db, job_id)
    base = _payload(job)
    base.update(patch or {})
    job.payload_json = json.dumps(base, ensure_ascii=False)
    db.commit()
    db.refresh(job)
    return job


def set_job_progress(db: Session, job_id: int, percent: int, stage: str) -> Job:
    return merge_job_payload(db, job_id, {"progress": {"stage": stage, "percent": percent}})
