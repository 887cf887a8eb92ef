from __future__ import annotations
from datetime import datetime, timedelta, timezone
from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from app.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ISSUER

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# A token may only be re-issued once it is this close to expiry
REFRESH_WINDOW = timedelta(hours=1)


class TokenPayload(BaseModel):
    sub: str        # user id
    type: str       # "access"
    email: str
    user_type: str
    iat: int
    exp: int


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def _create_token(*, sub: str, email: str, user_type: str, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "email": email,
        "user_type": user_type,
        "iss": JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user_id: int, email: str, user_type: str) -> str:
    return _create_token(
        sub=str(user_id),
        email=email,
        user_type=user_type,
        token_type="access",
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def decode_token(token: str) -> TokenPayload:
    """Raises jose.JWTError on a bad signature, wrong issuer or expiry."""
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], issuer=JWT_ISSUER)
    return TokenPayload(**payload)


def is_refreshable(payload: TokenPayload, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    expires_at = datetime.fromtimestamp(payload.exp, tz=timezone.utc)
    return expires_at - now <= REFRESH_WINDOW
