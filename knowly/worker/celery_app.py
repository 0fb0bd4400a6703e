import os

from celery import Celery

from knowly.core.config import is_test_env


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v and v.strip() else default


if is_test_env():
    BROKER_URL = "memory://"
    RESULT_BACKEND = "cache+memory://"
else:
    BROKER_URL = _env("CELERY_BROKER_URL") or _env("REDIS_URL") or "redis://localhost:6379/0"
    RESULT_BACKEND = _env("CELERY_RESULT_BACKEND") or BROKER_URL

# IMPORTANT: the variable name MUST be `celery_app`
celery_app = Celery(
    "knowly",
    broker=BROKER_URL,
    backend=RESULT_BACKEND,
)

celery_app.autodiscover_tasks(["knowly.worker"])

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    enable_utc=True,
    timezone="UTC",
    # ENV=test runs tasks inline so API tests see final state
    task_always_eager=is_test_env(),
)

__all__ = ["celery_app"]
