from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AlreadyUsed, ValidationError
from app.core.security import hash_password, verify_password
from app.models.password_reset_token import PasswordResetToken
from app.models.user import User
from app.services import tokens
from app.services.email import EmailSender, send_password_reset_email
from app.services.tasks import submit
from app.utils.clock import utcnow, as_utc
from app.utils.strings import norm_email

logger = logging.getLogger(__name__)

RESET_REQUESTED_MESSAGE = "If your email is registered, you will receive a password reset link"


class PasswordResetService:
    def __init__(
        self,
        db: Session,
        sender: EmailSender,
        *,
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta | None = None,
        cooldown: timedelta | None = None,
    ):
        self.db = db
        self.sender = sender
        self.clock = clock
        self.ttl = ttl or timedelta(minutes=settings.password_reset_ttl_minutes)
        self.cooldown = cooldown or timedelta(seconds=settings.token_resend_cooldown_seconds)

    def request_reset(self, email: str, tasks=None) -> str:
        """
        Always returns RESET_REQUESTED_MESSAGE. Unknown or inactive emails and
        requests inside the cooldown create nothing; the email itself is queued.
        """
        now = self.clock()
        user = self.db.query(User).filter(User.email == norm_email(email)).first()
        if not user or not user.is_active:
            logger.info("Password reset requested for unknown email")
            return RESET_REQUESTED_MESSAGE

        last = tokens.latest_for_user(self.db, PasswordResetToken, user.id)
        if tokens.cooldown_remaining(last, now, self.cooldown) is not None:
            logger.info("Password reset ignored during cooldown", extra={"user_id": user.id})
            return RESET_REQUESTED_MESSAGE

        self.db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id,
            PasswordResetToken.is_used.is_(False),
        ).delete(synchronize_session=False)

        row = PasswordResetToken(
            user_id=user.id,
            token=tokens.generate_token(),
            created_at=now,
            expires_at=now + self.ttl,
            is_used=False,
        )
        self.db.add(row)
        self.db.commit()
        logger.info("Password reset token issued", extra={"user_id": user.id})

        submit(tasks, send_password_reset_email, self.sender, to=user.email, first_name=user.first_name, token=row.token)
        return RESET_REQUESTED_MESSAGE

    def validate_token(self, token: str) -> datetime:
        row = tokens.find_by_token(self.db, PasswordResetToken, token)
        tokens.ensure_consumable(row, self.clock(), "Reset")
        return as_utc(row.expires_at)

    def reset_password(self, token: str, new_password: str) -> User:
        now = self.clock()
        row = tokens.find_by_token(self.db, PasswordResetToken, token)
        tokens.ensure_consumable(row, now, "Reset")

        if not tokens.claim(self.db, PasswordResetToken, row.id, now):
            self.db.rollback()
            raise AlreadyUsed("Reset token has already been used")

        user = self.db.get(User, row.user_id)
        user.hashed_password = hash_password(new_password)
        self.db.commit()
        logger.info("Password reset completed", extra={"user_id": user.id})
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")
        if current_password == new_password:
            raise ValidationError("New password must differ from the current password")
        user.hashed_password = hash_password(new_password)
        self.db.add(user)
        self.db.commit()
        logger.info("Password changed", extra={"user_id": user.id})

    def purge_expired(self) -> int:
        now = self.clock()
        deleted = tokens.purge(self.db, PasswordResetToken, now, used_retention=timedelta(hours=24))
        logger.info("Purged password reset tokens", extra={"deleted": deleted})
        return deleted
