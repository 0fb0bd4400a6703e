from datetime import date

import pytest
from fastapi.testclient import TestClient

from knowly.main import app
from knowly.models.usage import UploadCounter
from knowly.services.quota import (
    UploadLimitReached,
    activate_premium,
    check_and_count_upload,
    is_premium,
    subscription_status,
    uploads_today,
)
from knowly.services.users import AuthError, authenticate, get_user, register_user, set_premium

EMAIL = "learner@example.com"


# ----------------------------
# Users
# ----------------------------

def test_register_normalizes_email_and_hashes_password(db):
    u = register_user(db, "  Learner@Example.com ", "secret1")
    assert u.email == EMAIL
    assert u.password_hash != "secret1"
    assert u.is_premium is False
    assert len(u.user_id) == 32


@pytest.mark.parametrize(
    "email, password",
    [("not-an-email", "secret1"), ("a@b", "secret1"), (EMAIL, "12345")],
)
def test_register_validates_input(db, email, password):
    with pytest.raises(AuthError):
        register_user(db, email, password)


def test_register_twice_is_refused(db):
    register_user(db, EMAIL, "secret1")
    with pytest.raises(AuthError):
        register_user(db, EMAIL, "another1")


def test_authenticate(db):
    register_user(db, EMAIL, "secret1")
    assert authenticate(db, EMAIL.upper(), "secret1").email == EMAIL
    with pytest.raises(AuthError, match="Wrong password"):
        authenticate(db, EMAIL, "secret2")
    with pytest.raises(AuthError, match="No account"):
        authenticate(db, "nobody@example.com", "secret1")


# ----------------------------
# Quota
# ----------------------------

def test_free_owner_gets_three_uploads_a_day(db):
    day = date(2026, 3, 1)
    assert [check_and_count_upload(db, EMAIL, today=day) for _ in range(3)] == [1, 2, 3]
    with pytest.raises(UploadLimitReached):
        check_and_count_upload(db, EMAIL, today=day)
    assert uploads_today(db, EMAIL, today=day) == 3


def test_counter_resets_on_a_new_day(db):
    day = date(2026, 3, 1)
    for _ in range(3):
        check_and_count_upload(db, EMAIL, today=day)

    assert check_and_count_upload(db, EMAIL, today=date(2026, 3, 2)) == 1
    row = db.get(UploadCounter, EMAIL)
    assert row.day == date(2026, 3, 2)


def test_premium_owner_is_never_limited(db):
    activate_premium(db, EMAIL)
    assert is_premium(db, EMAIL)
    day = date(2026, 3, 1)
    for _ in range(5):
        check_and_count_upload(db, EMAIL, today=day)
    assert uploads_today(db, EMAIL, today=day) == 5


def test_activate_premium_flags_registered_user(db):
    register_user(db, EMAIL, "secret1")
    activate_premium(db, EMAIL)
    assert get_user(db, EMAIL).is_premium is True


def test_set_premium_toggles_the_account_flag(db):
    register_user(db, EMAIL, "secret1")
    assert set_premium(db, EMAIL).is_premium is True
    assert set_premium(db, EMAIL, False).is_premium is False
    with pytest.raises(AuthError):
        set_premium(db, "nobody@example.com")


def test_subscription_status_for_free_owner(db):
    check_and_count_upload(db, EMAIL)
    status = subscription_status(db, EMAIL)
    assert status["is_premium"] is False
    assert status["uploads_today"] == 1
    assert status["daily_limit"] == 3
    assert status["remaining_uploads"] == 2
    assert status["subscribed_at"] is None


# ----------------------------
# HTTP
# ----------------------------

@pytest.fixture
def client():
    return TestClient(app)


def test_auth_endpoints(client):
    r = client.post("/auth/register", json={"email": EMAIL, "password": "secret1"})
    assert r.status_code == 200, r.text
    assert r.json()["email"] == EMAIL

    assert client.post("/auth/register", json={"email": EMAIL, "password": "secret1"}).status_code == 400
    assert client.post("/auth/login", json={"email": EMAIL, "password": "wrong-pass"}).status_code == 401

    r = client.post("/auth/login", json={"email": EMAIL, "password": "secret1"})
    assert r.status_code == 200
    assert r.json()["is_premium"] is False

    assert client.get("/auth/me", headers={"X-Owner-Key": EMAIL}).json()["email"] == EMAIL
    assert client.get("/auth/me").status_code == 404


def test_subscription_endpoints(client):
    headers = {"X-Owner-Key": EMAIL}
    r = client.get("/subscription", headers=headers)
    assert r.status_code == 200
    assert r.json()["is_premium"] is False
    assert r.json()["remaining_uploads"] == 3
    assert r.json()["payment_link"]

    r = client.post("/subscription/activate", headers=headers)
    body = r.json()
    assert body["is_premium"] is True
    assert body["daily_limit"] is None
    assert body["remaining_uploads"] is None
    assert body["subscribed_at"]
