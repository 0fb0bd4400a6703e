import logging

from fastapi import FastAPI
from pydantic import BaseModel
from sqlalchemy import text

from knowly.api.auth import router as auth_router
from knowly.api.jobs import router as jobs_router
from knowly.api.materials import router as materials_router
from knowly.api.subscription import router as subscription_router
from knowly.db.session import SessionLocal

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Knowly API", version="0.1.0")
app.include_router(materials_router)
app.include_router(jobs_router)
app.include_router(auth_router)
app.include_router(subscription_router)


class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    db_ok: bool


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception as e:
        logger.warning("health check: database unreachable: %s", e)
    finally:
        db.close()

    return HealthResponse(ok=True, service="api", version=app.version, db_ok=db_ok)
