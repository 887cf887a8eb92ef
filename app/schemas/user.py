from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, field_validator, model_validator

from app.core.exceptions import ValidationError as PhoneError
from app.models.user import UserType
from app.utils.phone import normalize_ke_phone


def _phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    try:
        return normalize_ke_phone(v)
    except PhoneError as exc:
        raise ValueError(exc.message) from exc


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: str
    user_type: UserType = UserType.TENANT

    @field_validator("phone_number")
    @classmethod
    def _normalize_phone(cls, v: str) -> str:
        return _phone(v)

    @field_validator("user_type")
    @classmethod
    def _no_self_service_admin(cls, v: UserType) -> UserType:
        if v == UserType.ADMIN:
            raise ValueError("Cannot register as admin")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserRead(BaseModel):
    id: int
    email: EmailStr
    phone_number: str
    first_name: str
    last_name: str
    user_type: UserType
    profile_image_url: Optional[str] = None
    is_active: bool
    is_verified: bool
    is_approved: bool
    approved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("phone_number")
    @classmethod
    def _normalize_phone(cls, v: Optional[str]) -> Optional[str]:
        return _phone(v)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(Token):
    user: UserRead


class RegisterResponse(Token):
    user: UserRead
    email_verification_required: bool = True
    message: str = "Registration successful. Please check your email to verify your account."


class MessageResponse(BaseModel):
    message: str
