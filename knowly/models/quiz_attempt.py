from __future__ import annotations

from sqlalchemy import BigInteger, Column, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from knowly.db.base_class import Base


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    material_id = Column(
        String(32),
        ForeignKey("materials.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # append-only: rows are never updated after insert
    taken_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    percentage = Column(Float, nullable=False)

    material = relationship("Material", back_populates="quiz_attempts")
