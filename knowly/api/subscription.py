from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from knowly.api.deps import get_owner_key
from knowly.db.session import get_db
from knowly.services.quota import activate_premium, subscription_status

router = APIRouter(prefix="/subscription", tags=["subscription"])


class SubscriptionResponse(BaseModel):
    ok: bool
    is_premium: bool
    subscribed_at: str | None
    uploads_today: int
    daily_limit: int | None
    remaining_uploads: int | None
    payment_link: str


@router.get("", response_model=SubscriptionResponse)
def get_subscription(owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)) -> SubscriptionResponse:
    return SubscriptionResponse(ok=True, **subscription_status(db, owner_key))


@router.post("/activate", response_model=SubscriptionResponse)
def activate(owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)) -> SubscriptionResponse:
    # payment itself happens on the external payment link; this records the outcome
    activate_premium(db, owner_key)
    return SubscriptionResponse(ok=True, **subscription_status(db, owner_key))
