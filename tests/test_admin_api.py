# tests/test_admin_api.py

from datetime import datetime, timedelta, timezone

import pytest

from app.models.email_verification_token import EmailVerificationToken
from app.models.password_reset_token import PasswordResetToken
from app.models.user import User, UserType


@pytest.fixture
def admin(make_user):
    return make_user(user_type=UserType.ADMIN.value)


def test_admin_routes_require_admin(client, make_user, auth_headers):
    assert client.get("/v1/admin/users").status_code == 401

    agent = make_user(user_type=UserType.AGENT.value, is_approved=True)
    assert client.get("/v1/admin/users", headers=auth_headers(agent)).status_code == 403


def test_pending_agents_lists_verified_unapproved_only(client, make_user, admin, auth_headers):
    waiting = make_user(user_type=UserType.AGENT.value, is_approved=False)
    make_user(user_type=UserType.AGENT.value, is_approved=False, is_verified=False)
    make_user(user_type=UserType.AGENT.value, is_approved=True)
    make_user()

    resp = client.get("/v1/admin/agents/pending", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert [u["id"] for u in resp.json()] == [waiting.id]


def test_list_agents(client, make_user, admin, auth_headers):
    make_user(user_type=UserType.AGENT.value, is_approved=True)
    make_user(user_type=UserType.AGENT.value, is_approved=False)
    make_user()

    resp = client.get("/v1/admin/agents", headers=auth_headers(admin))
    assert len(resp.json()) == 2


def test_approve_agent(client, db, make_user, admin, auth_headers):
    agent = make_user(user_type=UserType.AGENT.value, is_approved=False)

    resp = client.post(f"/v1/admin/agents/{agent.id}/approve", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json()["is_approved"] is True
    stored = db.get(User, agent.id)
    assert stored.approved_by == admin.id
    assert stored.approved_at is not None


def test_approve_rejects_non_agents_and_missing(client, make_user, admin, auth_headers):
    tenant = make_user()
    assert client.post(f"/v1/admin/agents/{tenant.id}/approve", headers=auth_headers(admin)).status_code == 400
    assert client.post("/v1/admin/agents/9999/approve", headers=auth_headers(admin)).status_code == 404


def test_list_users(client, make_user, admin, auth_headers):
    make_user()
    resp = client.get("/v1/admin/users", headers=auth_headers(admin))
    assert [u["id"] for u in resp.json()] == sorted(u["id"] for u in resp.json())
    assert len(resp.json()) == 2


def test_purge_tokens(client, db, make_user, admin, auth_headers):
    user = make_user(is_verified=False)
    long_ago = datetime.now(timezone.utc) - timedelta(days=3)
    db.add_all([
        EmailVerificationToken(user_id=user.id, token="a" * 64, created_at=long_ago,
                               expires_at=long_ago + timedelta(hours=24), is_used=False),
        EmailVerificationToken(user_id=user.id, token="b" * 64, created_at=datetime.now(timezone.utc),
                               expires_at=datetime.now(timezone.utc) + timedelta(hours=24), is_used=False),
        PasswordResetToken(user_id=user.id, token="c" * 64, created_at=long_ago,
                           expires_at=long_ago + timedelta(hours=1), is_used=False),
    ])
    db.commit()

    resp = client.post("/v1/admin/maintenance/purge-tokens", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json() == {"email_verification_tokens": 1, "password_reset_tokens": 1}
    assert [t.token for t in db.query(EmailVerificationToken).all()] == ["b" * 64]
