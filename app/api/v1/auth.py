from __future__ import annotations
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import HTMLResponse
from jose import JWTError
from pydantic import ValidationError as PayloadError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, APP_FRONTEND_URL
from app.core.deps import get_current_user, get_db, oauth2_scheme
from app.core.exceptions import Conflict, ServiceError
from app.core.security import create_access_token, decode_token, hash_password, is_refreshable, verify_password
from app.models.user import User
from app.schemas.user import LoginResponse, RegisterResponse, Token, UserCreate, UserLogin, UserRead
from app.schemas.verification import EmailVerified, TokenBody, VerificationSent, VerificationStatusOut
from app.services.email import EmailSender, get_email_sender
from app.services.email_templates import build_verification_result_page
from app.services.verification import VerificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


def _token_for(user: User) -> dict:
    return {
        "access_token": create_access_token(user.id, user.email, user.user_type),
        "token_type": "bearer",
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


# ----------------- Registration / login -----------------
@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    payload: UserCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    email = payload.email.lower()
    # the DB also enforces both
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered", field="email")
    if db.query(User).filter(User.phone_number == payload.phone_number).first():
        raise Conflict("Phone number already registered", field="phone_number")

    user = User(
        email=email,
        phone_number=payload.phone_number,
        hashed_password=hash_password(payload.password),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        user_type=payload.user_type.value,
        is_verified=False,
        is_approved=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email or phone number already registered")
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id, "user_type": user.user_type})

    VerificationService(db, sender).issue_token_best_effort(user.id, background_tasks)

    return RegisterResponse(user=UserRead.model_validate(user), **_token_for(user))


@router.post("/login", response_model=LoginResponse)
def login(
    payload: UserLogin,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")

    if not user.is_verified:
        # background tasks do not run on an error response, so send inline
        VerificationService(db, sender).issue_token_best_effort(user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Please verify your email address before logging in.",
                "verification_required": True,
                "email": user.email,
            },
        )

    logger.info("User logged in", extra={"user_id": user.id})
    return LoginResponse(user=UserRead.model_validate(user), **_token_for(user))


@router.post("/refresh", response_model=Token)
def refresh_token(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Re-issue an access token that expires within the next hour."""
    try:
        data = decode_token(token)
    except (JWTError, PayloadError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if data.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")

    if not is_refreshable(data):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token is not close to expiry")

    user = db.get(User, int(data.sub))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive or missing user")
    return Token(**_token_for(user))


# ----------------- Email verification -----------------
@router.post("/verify/email/send", response_model=VerificationSent)
def send_verification_email(
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
    current_user: User = Depends(get_current_user),
):
    row = VerificationService(db, sender).issue_token(current_user.id)
    return VerificationSent(expires_at=row.expires_at)


@router.get("/verify/email", response_class=HTMLResponse)
def verify_email_link(
    token: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    """One-click endpoint used by the link in the verification email."""
    try:
        VerificationService(db, sender).consume_token(token, background_tasks)
    except ServiceError as exc:
        page = build_verification_result_page(False, exc.message, f"{APP_FRONTEND_URL}/login")
        return HTMLResponse(page, status_code=exc.status_code)

    page = build_verification_result_page(
        True, "Your email address has been verified. You can now sign in.", f"{APP_FRONTEND_URL}/login"
    )
    return HTMLResponse(page)


@router.post("/verify/email", response_model=EmailVerified)
def verify_email(
    body: TokenBody,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    user = VerificationService(db, sender).consume_token(body.token, background_tasks)
    return EmailVerified(user=UserRead.model_validate(user))


@router.get("/verify/status", response_model=VerificationStatusOut)
def verification_status(
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
    current_user: User = Depends(get_current_user),
):
    result = VerificationService(db, sender).get_status(current_user.id)
    return VerificationStatusOut(**result.model_dump())
