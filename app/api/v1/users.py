from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user
from app.core.exceptions import Conflict
from app.models.user import User
from app.schemas.user import UserRead, UserUpdate, PasswordChange, MessageResponse
from app.services.email import EmailSender, get_email_sender
from app.services.password_reset import PasswordResetService

router = APIRouter(prefix="/v1/users", tags=["users"], dependencies=[Depends(get_current_user)])


@router.get("/me", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    # phone uniqueness (if provided)
    if payload.phone_number is not None and payload.phone_number != current_user.phone_number:
        exists = db.query(User).filter(
            User.phone_number == payload.phone_number,
            User.id != current_user.id
        ).first()
        if exists:
            raise Conflict("Phone number already in use", field="phone_number")
        current_user.phone_number = payload.phone_number

    if payload.first_name is not None:
        current_user.first_name = payload.first_name.strip()
    if payload.last_name is not None:
        current_user.last_name = payload.last_name.strip()
    if payload.profile_image_url is not None:
        current_user.profile_image_url = payload.profile_image_url or None

    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.patch("/me/password", response_model=MessageResponse)
def change_password(
    body: PasswordChange,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
    current_user: User = Depends(get_current_user),
):
    PasswordResetService(db, sender).change_password(current_user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
