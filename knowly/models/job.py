from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from knowly.db.base_class import Base


class Job(Base):
    """
    One background run per row. payload_json holds the task kwargs plus
    whatever the task merges in while it runs (progress, material_id, error).
    """
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_key: Mapped[str | None] = mapped_column(String(320), nullable=True, index=True)
    job_type: Mapped[str] = mapped_column(String(64), nullable=False)  # generate_material_content|regenerate_quiz
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="queued")  # queued|running|done|failed
    payload_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
