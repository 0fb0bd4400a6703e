from __future__ import annotations

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String

from knowly.db.base_class import Base


class UploadCounter(Base):
    """
    Daily upload counter per owner key.

    `day` is the date the count belongs to; a stale day means the count
    restarts from zero on the next check.
    """
    __tablename__ = "upload_counters"

    owner_key = Column(String(320), primary_key=True)
    day = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)


class Subscription(Base):
    __tablename__ = "subscriptions"

    owner_key = Column(String(320), primary_key=True)
    is_premium = Column(Boolean, nullable=False, default=False)
    subscribed_at = Column(DateTime(timezone=True), nullable=True)
