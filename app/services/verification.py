from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFound, RateLimited, UpstreamError, ValidationError, AlreadyUsed
from app.models.email_verification_token import EmailVerificationToken
from app.models.user import User
from app.services import tokens
from app.services.email import EmailSender, send_verification_email, send_welcome_email
from app.services.tasks import submit
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class VerificationStatus(BaseModel):
    is_verified: bool
    pending_verification: bool
    can_resend: bool
    retry_after_seconds: Optional[int] = None


class VerificationService:
    """Issues and consumes email verification tokens for one DB session."""

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
        self.ttl = ttl or timedelta(hours=settings.email_verify_ttl_hours)
        self.cooldown = cooldown or timedelta(seconds=settings.token_resend_cooldown_seconds)

    # ----------------- helpers -----------------
    def _active_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user or not user.is_active:
            raise NotFound("User not found")
        return user

    def _check_cooldown(self, user_id: int, now: datetime) -> None:
        last = tokens.latest_for_user(self.db, EmailVerificationToken, user_id)
        remaining = tokens.cooldown_remaining(last, now, self.cooldown)
        if remaining is not None:
            raise RateLimited(
                "Please wait before requesting another verification email",
                retry_after_seconds=max(1, int(remaining.total_seconds())),
            )

    def _create(self, user: User) -> EmailVerificationToken:
        now = self.clock()
        if user.is_verified:
            raise ValidationError("Email is already verified")
        self._check_cooldown(user.id, now)

        row = EmailVerificationToken(
            user_id=user.id,
            token=tokens.generate_token(),
            created_at=now,
            expires_at=now + self.ttl,
            is_used=False,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Verification token issued", extra={"user_id": user.id, "token_id": row.id})
        return row

    # ----------------- operations -----------------
    def issue_token(self, user_id: int) -> EmailVerificationToken:
        """
        Create a token and deliver it synchronously.
        The token stays committed when delivery fails; the caller gets UpstreamError.
        """
        user = self._active_user(user_id)
        row = self._create(user)
        try:
            send_verification_email(self.sender, to=user.email, first_name=user.first_name, token=row.token)
        except Exception as exc:
            logger.exception("Verification email delivery failed", extra={"user_id": user.id})
            raise UpstreamError("Failed to send verification email") from exc
        return row

    def issue_token_best_effort(self, user_id: int, tasks=None) -> Optional[EmailVerificationToken]:
        """Registration and login path: token now, email queued on `tasks`. Never raises."""
        try:
            user = self._active_user(user_id)
            row = self._create(user)
        except (NotFound, ValidationError, RateLimited) as exc:
            logger.info("Skipping verification email: %s", exc.message, extra={"user_id": user_id})
            return None
        submit(tasks, send_verification_email, self.sender, to=user.email, first_name=user.first_name, token=row.token)
        return row

    def consume_token(self, token: str, tasks=None) -> User:
        now = self.clock()
        row = tokens.find_by_token(self.db, EmailVerificationToken, token)
        tokens.ensure_consumable(row, now, "Verification")

        if not tokens.claim(self.db, EmailVerificationToken, row.id, now):
            self.db.rollback()
            raise AlreadyUsed("Verification token has already been used")

        user = self.db.get(User, row.user_id)
        user.is_verified = True
        user.verified_at = now
        self.db.commit()
        self.db.refresh(user)
        logger.info("Email verified", extra={"user_id": user.id})

        submit(tasks, send_welcome_email, self.sender, to=user.email, first_name=user.first_name, user_type=user.user_type)
        return user

    def get_status(self, user_id: int) -> VerificationStatus:
        user = self._active_user(user_id)
        if user.is_verified:
            return VerificationStatus(is_verified=True, pending_verification=False, can_resend=False)

        now = self.clock()
        last = tokens.latest_for_user(self.db, EmailVerificationToken, user.id)
        pending = last is not None and tokens.is_valid(last, now)
        remaining = tokens.cooldown_remaining(last, now, self.cooldown)
        if remaining is not None:
            return VerificationStatus(
                is_verified=False,
                pending_verification=pending,
                can_resend=False,
                retry_after_seconds=max(1, int(remaining.total_seconds())),
            )
        return VerificationStatus(is_verified=False, pending_verification=pending, can_resend=True)

    def purge_expired(self) -> int:
        now = self.clock()
        deleted = tokens.purge(self.db, EmailVerificationToken, now, used_retention=timedelta(hours=24))
        logger.info("Purged verification tokens", extra={"deleted": deleted})
        return deleted
