from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from knowly.api.deps import get_owner_key
from knowly.db.session import get_db
from knowly.services.jobs import JobNotFound, get_job, get_job_payload

router = APIRouter(prefix="/jobs", tags=["jobs"])


class JobGetResponse(BaseModel):
    ok: bool
    job_id: int
    job_type: str
    status: str
    error: str | None
    progress: dict | None = None
    payload: dict


@router.get("/{job_id}", response_model=JobGetResponse)
def job_status(
    job_id: int,
    owner_key: str = Depends(get_owner_key),
    db: Session = Depends(get_db),
) -> JobGetResponse:
    try:
        job = get_job(db, job_id, owner_key=owner_key)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found")

    payload = get_job_payload(db, job_id)
    return JobGetResponse(
        ok=True,
        job_id=job.id,
        job_type=job.job_type,
        status=job.status,
        error=job.error,
        progress=payload.get("progress"),
        payload=payload,
    )
