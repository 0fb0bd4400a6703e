from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from knowly.db.session import SessionLocal
from knowly.services.jobs import merge_job_payload, set_job_progress, set_job_status
from knowly.services.llm.chat_client import build_chat_client
from knowly.services.processing import generate_and_store, record_failure, regenerate_and_store
from knowly.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="materials.generate")
def generate_material_content(job_id: int, material_id: str, lesson_length: str = "normal") -> dict:
    db: Session = SessionLocal()
    try:
        set_job_status(db, job_id, "running")
        merge_job_payload(db, job_id, {"material_id": material_id, "progress": {"stage": "start", "percent": 0}})

        client = build_chat_client()
        generate_and_store(
            db,
            material_id,
            client,
            lesson_length,
            on_progress=lambda percent, stage: set_job_progress(db, job_id, percent, stage),
        )

        merge_job_payload(db, job_id, {"progress": {"stage": "done", "percent": 100}})
        set_job_status(db, job_id, "done", error=None)
        return {"ok": True, "job_id": job_id, "material_id": material_id}

    except Exception as e:
        # the whole run is all-or-nothing: record on the material, then on the job
        err = str(e) or e.__class__.__name__
        logger.error("generation failed for material %s: %s", material_id, err)
        record_failure(db, material_id, err)
        merge_job_payload(db, job_id, {"progress": {"stage": "failed"}, "error": err})
        set_job_status(db, job_id, "failed", error=err)
        raise
    finally:
        db.close()


@celery_app.task(name="materials.regenerate_quiz")
def regenerate_quiz(job_id: int, material_id: str) -> dict:
    db: Session = SessionLocal()
    try:
        set_job_status(db, job_id, "running")
        client = build_chat_client()
        replaced = regenerate_and_store(db, material_id, client)

        merge_job_payload(db, job_id, {"material_id": material_id, "replaced": replaced})
        set_job_status(db, job_id, "done", error=None)
        return {"ok": True, "job_id": job_id, "material_id": material_id, "replaced": replaced}

    except Exception as e:
        # material is left as it was; only the job records the failure
        err = str(e) or e.__class__.__name__
        logger.error("quiz regeneration failed for material %s: %s", material_id, err)
        db.rollback()
        merge_job_payload(db, job_id, {"error": err})
        set_job_status(db, job_id, "failed", error=err)
        raise
    finally:
        db.close()
