from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.schemas.user import MessageResponse
from app.schemas.verification import ForgotPasswordRequest, ResetPasswordRequest, ResetTokenInfo
from app.services.email import EmailSender, get_email_sender
from app.services.password_reset import PasswordResetService

router = APIRouter(prefix="/v1/auth/password", tags=["auth"])


@router.post("/forgot", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    """Same status and body whether or not the email belongs to an account."""
    message = PasswordResetService(db, sender).request_reset(body.email, background_tasks)
    return MessageResponse(message=message)


@router.get("/validate", response_model=ResetTokenInfo)
def validate_reset_token(
    token: str,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    expires_at = PasswordResetService(db, sender).validate_token(token)
    return ResetTokenInfo(expires_at=expires_at)


@router.post("/reset", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    PasswordResetService(db, sender).reset_password(body.token, body.password)
    return MessageResponse(message="Password has been reset successfully. You can now sign in.")
