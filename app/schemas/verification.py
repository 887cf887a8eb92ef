from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from app.schemas.user import UserRead


class TokenBody(BaseModel):
    token: str = Field(min_length=1, max_length=128)


class VerificationSent(BaseModel):
    message: str = "Verification email sent"
    expires_at: datetime


class VerificationStatusOut(BaseModel):
    is_verified: bool
    pending_verification: bool
    can_resend: bool
    retry_after_seconds: Optional[int] = None


class EmailVerified(BaseModel):
    message: str = "Email verified successfully"
    user: UserRead


class ForgotPasswordRequest(BaseModel):
    # not EmailStr: malformed input must get the same answer as unknown addresses
    email: str = Field(min_length=1, max_length=255)


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=8)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ResetTokenInfo(BaseModel):
    valid: bool = True
    expires_at: datetime
