from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from knowly.api.deps import get_owner_key
from knowly.db.session import get_db
from knowly.models.user import User
from knowly.services.users import AuthError, authenticate, get_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


class Credentials(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    ok: bool
    email: str
    user_id: str
    is_premium: bool
    created_at: str | None


def _user_response(u: User) -> UserResponse:
    return UserResponse(
        ok=True,
        email=u.email,
        user_id=u.user_id,
        is_premium=u.is_premium,
        created_at=u.created_at.isoformat() if u.created_at else None,
    )


@router.post("/register", response_model=UserResponse)
def register(req: Credentials, db: Session = Depends(get_db)) -> UserResponse:
    try:
        return _user_response(register_user(db, req.email, req.password))
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/login", response_model=UserResponse)
def login(req: Credentials, db: Session = Depends(get_db)) -> UserResponse:
    try:
        return _user_response(authenticate(db, req.email, req.password))
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/me", response_model=UserResponse)
def me(owner_key: str = Depends(get_owner_key), db: Session = Depends(get_db)) -> UserResponse:
    u = get_user(db, owner_key)
    if not u:
        raise HTTPException(status_code=404, detail="Not logged in")
    return _user_response(u)
