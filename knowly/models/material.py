from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from knowly.db.base_class import Base


class Material(Base):
    __tablename__ = "materials"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    owner_key: Mapped[str] = mapped_column(String(320), nullable=False, index=True)

    # source file
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(String(255), nullable=False, default="unknown")
    file_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # extraction + generation outputs
    extracted_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    detected_language: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggested_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    thematic_category: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    content_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # GeneratedContent JSON string

    # status: pending|processing|completed|error
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending", index=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    quiz_attempts = relationship(
        "QuizAttempt",
        back_populates="material",
        order_by="QuizAttempt.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
