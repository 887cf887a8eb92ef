from __future__ import annotations
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError
from pydantic import ValidationError as PayloadError

from app.db.session import get_db
from app.models.user import User, UserType
from app.core.security import decode_token
from app.services.mpesa import MpesaClient

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/login")


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Decode the bearer token, fetch the user, ensure active.
    Authorization decisions use the stored user_type, not the token claim.
    """
    try:
        data = decode_token(token)
    except (JWTError, PayloadError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if data.type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")

    user = db.get(User, int(data.sub))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive or missing user")
    return user


def get_mpesa_client() -> MpesaClient:
    return MpesaClient.from_settings()


# ---------- User type helpers ----------

def ensure_user_type(user: User, *allowed: UserType | str) -> None:
    names = {a.value if isinstance(a, UserType) else a for a in allowed}
    if user.user_type not in names:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def require_user_type(*allowed: UserType | str):
    """
    FastAPI dependency: the current user must have ANY of the given types.

    Usage:
        @router.get("/admin-only", dependencies=[Depends(require_user_type(UserType.ADMIN))])
    """
    def _checker(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        ensure_user_type(current_user, *allowed)
        return current_user
    return _checker


def require_verified_email(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    if not current_user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Email verification required", "verification_required": True},
        )
    return current_user


def require_approved_agent(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    """Admins always pass; agents must be verified and approved."""
    if current_user.is_admin:
        return current_user
    if not current_user.is_agent:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Agent access required")
    if not current_user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Email verification required", "verification_required": True},
        )
    if not current_user.is_approved:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Agent account pending approval", "approval_required": True},
        )
    return current_user
