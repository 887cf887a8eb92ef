# tests/test_verification_service.py

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.core.exceptions import AlreadyUsed, Expired, NotFound, RateLimited, UpstreamError, ValidationError
from app.models.email_verification_token import EmailVerificationToken
from app.models.user import User
from app.services.verification import VerificationService


@pytest.fixture
def service(db, mailer, clock):
    return VerificationService(db, mailer, clock=clock)


@pytest.fixture
def unverified(make_user):
    return make_user(is_verified=False)


def test_issue_token_persists_and_emails(service, db, mailer, clock, unverified):
    row = service.issue_token(unverified.id)

    assert len(row.token) == 64
    assert row.is_used is False
    stored = db.query(EmailVerificationToken).filter_by(user_id=unverified.id).one()
    assert stored.token == row.token
    assert mailer.sent[0]["to"] == unverified.email
    assert row.token in mailer.sent[0]["text"]


def test_token_expires_after_24_hours(service, clock, unverified):
    row = service.issue_token(unverified.id)

    clock.advance(hours=24, seconds=1)
    with pytest.raises(Expired):
        service.consume_token(row.token)


def test_token_still_valid_just_before_expiry(service, clock, unverified):
    row = service.issue_token(unverified.id)

    clock.advance(hours=23, minutes=59)
    user = service.consume_token(row.token)
    assert user.is_verified is True


def test_consume_succeeds_exactly_once(service, db, unverified):
    row = service.issue_token(unverified.id)

    user = service.consume_token(row.token)
    assert user.is_verified is True
    assert user.verified_at is not None

    with pytest.raises(AlreadyUsed):
        service.consume_token(row.token)


def test_lost_race_reports_already_used(service, db, unverified):
    row = service.issue_token(unverified.id)
    stale = SimpleNamespace(id=row.id, user_id=row.user_id, is_used=False, expires_at=row.expires_at)
    # a concurrent request consumes the token after our read
    db.query(EmailVerificationToken).filter_by(id=row.id).update({"is_used": True})
    db.commit()

    with patch("app.services.verification.tokens.find_by_token", return_value=stale):
        with pytest.raises(AlreadyUsed):
            service.consume_token(row.token)
    assert db.get(User, unverified.id).is_verified is False


def test_unknown_token_not_found(service):
    with pytest.raises(NotFound):
        service.consume_token("f" * 64)


def test_expired_checked_before_used(service, db, clock, unverified):
    row = service.issue_token(unverified.id)
    service.consume_token(row.token)

    clock.advance(days=2)
    with pytest.raises(Expired):
        service.consume_token(row.token)


def test_second_issue_within_cooldown_is_rate_limited(service, clock, unverified):
    service.issue_token(unverified.id)

    clock.advance(seconds=60)
    with pytest.raises(RateLimited) as exc_info:
        service.issue_token(unverified.id)
    assert exc_info.value.retry_after_seconds == 240


def test_issue_allowed_after_cooldown(service, db, clock, unverified):
    service.issue_token(unverified.id)

    clock.advance(minutes=5)
    service.issue_token(unverified.id)
    assert db.query(EmailVerificationToken).filter_by(user_id=unverified.id).count() == 2


def test_verified_user_cannot_request_token(service, make_user):
    user = make_user(is_verified=True)
    with pytest.raises(ValidationError):
        service.issue_token(user.id)


def test_inactive_user_is_not_found(service, make_user):
    user = make_user(is_verified=False, is_active=False)
    with pytest.raises(NotFound):
        service.issue_token(user.id)


def test_delivery_failure_keeps_token(service, db, mailer, unverified):
    mailer.fail = True

    with pytest.raises(UpstreamError):
        service.issue_token(unverified.id)
    assert db.query(EmailVerificationToken).filter_by(user_id=unverified.id).count() == 1


def test_best_effort_issue_swallows_delivery_failure(service, db, mailer, unverified):
    mailer.fail = True

    row = service.issue_token_best_effort(unverified.id)
    assert row is not None
    assert db.query(EmailVerificationToken).filter_by(user_id=unverified.id).count() == 1


def test_best_effort_issue_respects_cooldown(service, db, clock, unverified):
    service.issue_token(unverified.id)
    clock.advance(seconds=30)

    assert service.issue_token_best_effort(unverified.id) is None
    assert db.query(EmailVerificationToken).filter_by(user_id=unverified.id).count() == 1


def test_welcome_failure_does_not_fail_consume(service, db, mailer, unverified):
    row = service.issue_token(unverified.id)
    mailer.fail = True

    user = service.consume_token(row.token)
    assert user.is_verified is True
    assert db.get(User, unverified.id).is_verified is True


def test_welcome_email_sent_after_consume(service, mailer, unverified):
    row = service.issue_token(unverified.id)
    service.consume_token(row.token)
    assert mailer.subjects() == ["Verify your Realtor Space account", "Welcome to Realtor Space"]


def test_status_reports_cooldown_and_pending(service, clock, unverified):
    before = service.get_status(unverified.id)
    assert before.pending_verification is False
    assert before.can_resend is True
    assert before.retry_after_seconds is None

    service.issue_token(unverified.id)
    clock.advance(seconds=100)
    during = service.get_status(unverified.id)
    assert during.pending_verification is True
    assert during.can_resend is False
    assert during.retry_after_seconds == 200

    clock.advance(minutes=10)
    after = service.get_status(unverified.id)
    assert after.pending_verification is True
    assert after.can_resend is True

    clock.advance(days=1)
    assert service.get_status(unverified.id).pending_verification is False


def test_status_for_verified_user(service, make_user):
    status = service.get_status(make_user(is_verified=True).id)
    assert status.is_verified is True
    assert status.can_resend is False


def test_purge_expired(service, db, clock, unverified):
    service.issue_token(unverified.id)
    clock.advance(days=2)

    assert service.purge_expired() == 1
    assert db.query(EmailVerificationToken).count() == 0
