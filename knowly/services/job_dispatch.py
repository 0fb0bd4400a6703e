from __future__ import annotations

from typing import Any, Dict

from sqlalchemy.orm import Session

from knowly.models.job import Job
from knowly.services.jobs import create_job
from knowly.worker import tasks as worker_tasks

# API-level job_type -> Celery task object
JOB_TYPE_TO_TASK = {
    "generate_material_content": worker_tasks.generate_material_content,
    "regenerate_quiz": worker_tasks.regenerate_quiz,
}


def dispatch_job(
    db: Session,
    job_type: str,
    payload: Dict[str, Any] | None = None,
    owner_key: str | None = None,
) -> tuple[Job, str]:
    """
    Creates the Job row, then dispatches with task.apply_async so ENV=test
    eager mode works. Returns (job, celery task id).
    """
    payload = payload or {}

    task = JOB_TYPE_TO_TASK.get(job_type)
    if not task:
        raise ValueError(f"Unknown job_type: {job_type}")

    job = create_job(db, job_type, payload, owner_key=owner_key)
    async_result = task.apply_async(kwargs={"job_id": job.id, **payload})
    return job, async_result.id
