# tests/test_tokens.py

import re
from datetime import timedelta

from app.models.email_verification_token import EmailVerificationToken
from app.models.password_reset_token import PasswordResetToken
from app.services import tokens


def _token(db, user, clock, *, ttl=timedelta(hours=24), used=False, model=EmailVerificationToken):
    now = clock()
    row = model(
        user_id=user.id,
        token=tokens.generate_token(),
        created_at=now,
        expires_at=now + ttl,
        is_used=used,
        used_at=now if used else None,
    )
    db.add(row)
    db.commit()
    return row


def test_generated_tokens_are_64_hex_chars_and_unique():
    values = {tokens.generate_token() for _ in range(50)}
    assert len(values) == 50
    assert all(re.fullmatch(r"[0-9a-f]{64}", v) for v in values)


def test_claim_succeeds_only_once(db, make_user, clock):
    user = make_user()
    row = _token(db, user, clock)

    assert tokens.claim(db, EmailVerificationToken, row.id, clock()) is True
    db.commit()
    assert tokens.claim(db, EmailVerificationToken, row.id, clock()) is False


def test_cooldown_remaining(db, make_user, clock):
    user = make_user()
    row = _token(db, user, clock)
    cooldown = timedelta(minutes=5)

    clock.advance(seconds=90)
    assert tokens.cooldown_remaining(row, clock(), cooldown) == timedelta(seconds=210)

    clock.advance(seconds=210)
    assert tokens.cooldown_remaining(row, clock(), cooldown) is None
    assert tokens.cooldown_remaining(None, clock(), cooldown) is None


def test_used_token_does_not_block_cooldown(db, make_user, clock):
    user = make_user()
    row = _token(db, user, clock, used=True)
    assert tokens.cooldown_remaining(row, clock(), timedelta(minutes=5)) is None


def test_purge_removes_expired_and_old_used_tokens(db, make_user, clock):
    user = make_user()
    expired = _token(db, user, clock, ttl=timedelta(hours=1), model=PasswordResetToken)
    old_used = _token(db, user, clock, used=True, model=PasswordResetToken)
    clock.advance(hours=30)
    live = _token(db, user, clock, ttl=timedelta(hours=1), model=PasswordResetToken)
    expired_id, old_used_id, live_id = expired.id, old_used.id, live.id

    deleted = tokens.purge(db, PasswordResetToken, clock(), used_retention=timedelta(hours=24))

    assert deleted == 2
    remaining = {r.id for r in db.query(PasswordResetToken).all()}
    assert remaining == {live_id}
    assert expired_id not in remaining and old_used_id not in remaining
