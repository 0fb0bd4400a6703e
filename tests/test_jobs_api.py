import pytest
from fastapi.testclient import TestClient

from knowly.main import app
from knowly.services.jobs import (
    JobNotFound,
    create_job,
    get_job,
    get_job_payload,
    merge_job_payload,
    set_job_progress,
)

HEADERS = {"X-Owner-Key": "student@example.com"}


def test_unknown_job_is_404():
    client = TestClient(app)
    assert client.get("/jobs/999999").status_code == 404


def test_merge_job_payload_keeps_existing_keys(db):
    job = create_job(db, "generate_material_content", {"material_id": "m1"})
    merge_job_payload(db, job.id, {"progress": {"stage": "start", "percent": 0}})
    set_job_progress(db, job.id, 40, "lessons")

    assert get_job_payload(db, job.id) == {
        "material_id": "m1",
        "progress": {"stage": "lessons", "percent": 40},
    }


def test_generation_job_reports_done_at_100(worker_chat):
    client = TestClient(app)
    r = client.post(
        "/materials",
        files={"file": ("notes.txt", b"Cells are the basic unit of life.", "text/plain")},
        headers=HEADERS,
    )
    body = r.json()

    job = client.get(f"/jobs/{body['job_id']}", headers=HEADERS).json()
    assert job["job_type"] == "generate_material_content"
    assert job["status"] == "done"
    assert job["error"] is None
    assert job["progress"] == {"stage": "done", "percent": 100}
    assert job["payload"]["material_id"] == body["material_id"]
    assert job["payload"]["lesson_length"] == "normal"


def test_jobs_are_scoped_to_owner(worker_chat):
    client = TestClient(app)
    r = client.post(
        "/materials",
        files={"file": ("notes.txt", b"Cells are the basic unit of life.", "text/plain")},
        headers=HEADERS,
    )
    job_id = r.json()["job_id"]

    assert client.get(f"/jobs/{job_id}", headers=HEADERS).status_code == 200
    assert client.get(f"/jobs/{job_id}", headers={"X-Owner-Key": "someone@example.com"}).status_code == 404
    assert client.get(f"/jobs/{job_id}").status_code == 404


def test_job_without_owner_is_hidden(db):
    job = create_job(db, "regenerate_quiz", {"material_id": "m1"})
    client = TestClient(app)
    assert client.get(f"/jobs/{job.id}", headers=HEADERS).status_code == 404


def test_get_job_checks_owner(db):
    job = create_job(db, "regenerate_quiz", {"material_id": "m1"}, owner_key="student@example.com")
    assert job.owner_key == "student@example.com"
    assert get_job(db, job.id, owner_key="student@example.com").id == job.id
    assert get_job(db, job.id).id == job.id
    with pytest.raises(JobNotFound):
        get_job(db, job.id, owner_key="someone@example.com")
