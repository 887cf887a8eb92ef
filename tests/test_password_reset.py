# tests/test_password_reset.py

import re
from datetime import timedelta

import pytest

from app.core.exceptions import AlreadyUsed, Expired, NotFound, ValidationError
from app.core.security import verify_password
from app.models.password_reset_token import PasswordResetToken
from app.models.user import User
from app.services.password_reset import PasswordResetService, RESET_REQUESTED_MESSAGE

from conftest import PASSWORD

TOKEN_RE = re.compile(r"token=([0-9a-f]{64})")


@pytest.fixture
def service(db, mailer, clock):
    return PasswordResetService(db, mailer, clock=clock)


def _mailed_token(mailer):
    return TOKEN_RE.search(mailer.sent[-1]["text"]).group(1)


def test_request_for_known_email_creates_one_hour_token(service, db, mailer, clock, make_user):
    user = make_user()

    assert service.request_reset(user.email.upper()) == RESET_REQUESTED_MESSAGE

    row = db.query(PasswordResetToken).filter_by(user_id=user.id).one()
    assert len(row.token) == 64
    assert _mailed_token(mailer) == row.token
    assert service.validate_token(row.token) == clock() + timedelta(hours=1)


def test_request_for_unknown_email_creates_nothing(service, db, mailer):
    assert service.request_reset("nobody@example.co.ke") == RESET_REQUESTED_MESSAGE
    assert db.query(PasswordResetToken).count() == 0
    assert mailer.sent == []


def test_new_request_replaces_unused_tokens(service, db, clock, make_user):
    user = make_user()
    service.request_reset(user.email)
    clock.advance(minutes=6)
    service.request_reset(user.email)

    assert db.query(PasswordResetToken).filter_by(user_id=user.id).count() == 1


def test_request_inside_cooldown_is_silently_ignored(service, db, mailer, clock, make_user):
    user = make_user()
    service.request_reset(user.email)
    first = db.query(PasswordResetToken).one().token
    clock.advance(minutes=1)

    assert service.request_reset(user.email) == RESET_REQUESTED_MESSAGE
    assert db.query(PasswordResetToken).one().token == first
    assert len(mailer.sent) == 1


def test_reset_replaces_password_and_consumes_token(service, db, mailer, make_user):
    user = make_user()
    service.request_reset(user.email)
    token = _mailed_token(mailer)

    service.reset_password(token, "BrandNewPass1")

    refreshed = db.get(User, user.id)
    assert verify_password("BrandNewPass1", refreshed.hashed_password)
    row = db.query(PasswordResetToken).filter_by(token=token).one()
    assert row.is_used is True
    assert row.used_at is not None

    with pytest.raises(AlreadyUsed):
        service.reset_password(token, "AnotherPass2")


def test_reset_token_expires_after_one_hour(service, mailer, clock, make_user):
    user = make_user()
    service.request_reset(user.email)
    token = _mailed_token(mailer)

    clock.advance(hours=1)
    with pytest.raises(Expired):
        service.reset_password(token, "BrandNewPass1")


def test_unknown_reset_token(service):
    with pytest.raises(NotFound):
        service.validate_token("0" * 64)


def test_change_password_requires_current_password(service, db, make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        service.change_password(user, "wrong-password", "BrandNewPass1")

    service.change_password(user, PASSWORD, "BrandNewPass1")
    assert verify_password("BrandNewPass1", db.get(User, user.id).hashed_password)


# ----------------- HTTP -----------------
def test_forgot_password_responses_are_identical(client, db, make_user):
    user = make_user()

    known = client.post("/v1/auth/password/forgot", json={"email": user.email})
    unknown = client.post("/v1/auth/password/forgot", json={"email": "ghost@example.co.ke"})
    malformed = client.post("/v1/auth/password/forgot", json={"email": "not-an-email"})

    assert known.status_code == unknown.status_code == malformed.status_code == 200
    assert known.json() == unknown.json() == malformed.json() == {"message": RESET_REQUESTED_MESSAGE}
    assert db.query(PasswordResetToken).count() == 1
    assert db.query(PasswordResetToken).one().user_id == user.id


def test_reset_flow_over_http(client, mailer, make_user):
    user = make_user()
    client.post("/v1/auth/password/forgot", json={"email": user.email})
    token = _mailed_token(mailer)

    check = client.get("/v1/auth/password/validate", params={"token": token})
    assert check.status_code == 200
    assert check.json()["valid"] is True

    resp = client.post(
        "/v1/auth/password/reset",
        json={"token": token, "password": "BrandNewPass1", "confirm_password": "BrandNewPass1"},
    )
    assert resp.status_code == 200

    login = client.post("/v1/auth/login", json={"email": user.email, "password": "BrandNewPass1"})
    assert login.status_code == 200

    again = client.post(
        "/v1/auth/password/reset",
        json={"token": token, "password": "OtherPass123", "confirm_password": "OtherPass123"},
    )
    assert again.status_code == 400
    assert again.json()["code"] == "already_used"


def test_reset_rejects_mismatched_passwords(client):
    resp = client.post(
        "/v1/auth/password/reset",
        json={"token": "a" * 64, "password": "BrandNewPass1", "confirm_password": "Different123"},
    )
    assert resp.status_code == 422


def test_reset_with_unknown_token_is_404(client):
    resp = client.post(
        "/v1/auth/password/reset",
        json={"token": "a" * 64, "password": "BrandNewPass1", "confirm_password": "BrandNewPass1"},
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_change_password_endpoint(client, db, make_user, auth_headers):
    user = make_user()
    resp = client.patch(
        "/v1/users/me/password",
        json={"current_password": PASSWORD, "new_password": "BrandNewPass1", "confirm_password": "BrandNewPass1"},
        headers=auth_headers(user),
    )
    assert resp.status_code == 200
    assert verify_password("BrandNewPass1", db.get(User, user.id).hashed_password)

    wrong = client.patch(
        "/v1/users/me/password",
        json={"current_password": "nope-nope", "new_password": "Another12345", "confirm_password": "Another12345"},
        headers=auth_headers(user),
    )
    assert wrong.status_code == 400
