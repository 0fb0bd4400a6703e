from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from knowly.core.config import settings
from knowly.models.usage import Subscription, UploadCounter
from knowly.services.users import get_user, set_premium

logger = logging.getLogger(__name__)


class UploadLimitReached(Exception):
    pass


def _today() -> date:
    return datetime.now(timezone.utc).date()


def is_premium(db: Session, owner_key: str) -> bool:
    u = get_user(db, owner_key)
    if u and u.is_premium:
        return True
    sub = db.get(Subscription, owner_key)
    return bool(sub and sub.is_premium)


def uploads_today(db: Session, owner_key: str, today: date | None = None) -> int:
    today = today or _today()
    row = db.get(UploadCounter, owner_key)
    if not row or row.day != today:
        return 0
    return int(row.count or 0)


def check_and_count_upload(db: Session, owner_key: str, today: date | None = None) -> int:
    """
    Gate for a new upload. Premium owners always pass; free owners get
    `free_daily_limit` uploads per calendar day (UTC). Returns the new count.
    """
    today = today or _today()

    row = db.get(UploadCounter, owner_key)
    if not row:
        row = UploadCounter(owner_key=owner_key, day=today, count=0)
        db.add(row)
    elif row.day != today:
        row.day = today
        row.count = 0

    if not is_premium(db, owner_key) and row.count >= settings.free_daily_limit:
        db.rollback()
        logger.info("upload limit reached for %s (%d/day)", owner_key, settings.free_daily_limit)
        raise UploadLimitReached(
            f"Daily upload limit of {settings.free_daily_limit} reached. Upgrade to premium for unlimited uploads."
        )

    row.count = int(row.count or 0) + 1
    db.commit()
    return row.count


def activate_premium(db: Session, owner_key: str) -> Subscription:
    """
    Simulated payment success: flags the owner (and the user account, if
    the owner key is a registered email) as premium.
    """
    sub = db.get(Subscription, owner_key)
    if not sub:
        sub = Subscription(owner_key=owner_key)
        db.add(sub)
    sub.is_premium = True
    sub.subscribed_at = datetime.now(timezone.utc)
    db.commit()

    if get_user(db, owner_key):
        set_premium(db, owner_key, True)

    db.refresh(sub)
    return sub


def subscription_status(db: Session, owner_key: str) -> dict[str, Any]:
    sub = db.get(Subscription, owner_key)
    premium = is_premium(db, owner_key)
    used = uploads_today(db, owner_key)
    return {
        "is_premium": premium,
        "subscribed_at": sub.subscribed_at.isoformat() if (sub and sub.subscribed_at) else None,
        "uploads_today": used,
        "daily_limit": None if premium else settings.free_daily_limit,
        "remaining_uploads": None if premium else max(0, settings.free_daily_limit - used),
        "payment_link": settings.payment_link,
    }
