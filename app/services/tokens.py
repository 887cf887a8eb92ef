"""
Shared lifecycle for single-use, time-limited tokens.

Both token tables (email verification and password reset) carry the same
columns: token, created_at, expires_at, is_used, used_at. A row is valid iff
it is unused and `now < expires_at`.
"""
from __future__ import annotations
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.exceptions import NotFound, Expired, AlreadyUsed
from app.utils.clock import as_utc

TOKEN_BYTES = 32  # 64 hex chars


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def is_expired(row, now: datetime) -> bool:
    return now >= as_utc(row.expires_at)


def is_valid(row, now: datetime) -> bool:
    return not row.is_used and not is_expired(row, now)


def find_by_token(db: Session, model, token: str):
    return db.query(model).filter(model.token == token).first()


def latest_for_user(db: Session, model, user_id: int):
    return (
        db.query(model)
        .filter(model.user_id == user_id)
        .order_by(model.created_at.desc(), model.id.desc())
        .first()
    )


def ensure_consumable(row, now: datetime, label: str) -> None:
    """NotFound, then Expired, then AlreadyUsed."""
    if row is None:
        raise NotFound(f"{label} token not found")
    if is_expired(row, now):
        raise Expired(f"{label} token has expired")
    if row.is_used:
        raise AlreadyUsed(f"{label} token has already been used")


def claim(db: Session, model, row_id: int, now: datetime) -> bool:
    """
    Conditionally mark a token used. Returns False when another caller got
    there first; the caller must not treat the token as consumed in that case.
    Does not commit.
    """
    updated = (
        db.query(model)
        .filter(model.id == row_id, model.is_used.is_(False))
        .update({model.is_used: True, model.used_at: now}, synchronize_session=False)
    )
    return updated == 1


def cooldown_remaining(row, now: datetime, cooldown: timedelta) -> timedelta | None:
    """Time left before another token may be issued, or None if not blocked."""
    if row is None or row.is_used:
        return None
    elapsed = now - as_utc(row.created_at)
    if elapsed < cooldown:
        return cooldown - elapsed
    return None


def purge(db: Session, model, now: datetime, used_retention: timedelta) -> int:
    """Delete expired unused tokens and used tokens older than `used_retention`. Commits."""
    expired = (
        db.query(model)
        .filter(model.is_used.is_(False), model.expires_at <= now)
        .delete(synchronize_session=False)
    )
    used = (
        db.query(model)
        .filter(model.is_used.is_(True), model.created_at < now - used_retention)
        .delete(synchronize_session=False)
    )
    db.commit()
    return expired + used
