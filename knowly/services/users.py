from __future__ import annotations

import re
import uuid

from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from knowly.models.user import User

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LEN = 6


class AuthError(ValueError):
    pass


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _validate(email: str, password: str) -> None:
    if not _EMAIL_RE.match(email):
        raise AuthError("Please enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LEN:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LEN} characters long")


def get_user(db: Session, email: str) -> User | None:
    return db.get(User, _normalize_email(email))


def register_user(db: Session, email: str, password: str) -> User:
    email = _normalize_email(email)
    _validate(email, password)
    if get_user(db, email):
        raise AuthError("An account with this email already exists")

    u = User(
        email=email,
        user_id=uuid.uuid4().hex,
        password_hash=generate_password_hash(password),
        is_premium=False,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def authenticate(db: Session, email: str, password: str) -> User:
    email = _normalize_email(email)
    _validate(email, password)
    u = get_user(db, email)
    if not u:
        raise AuthError("No account found with this email address")
    if not check_password_hash(u.password_hash, password):
        raise AuthError("Wrong password")
    return u


def set_premium(db: Session, email: str, is_premium: bool = True) -> User:
    u = get_user(db, email)
    if not u:
        raise AuthError("No account found with this email address")
    u.is_premium = is_premium
    db.commit()
    db.refresh(u)
    return u
