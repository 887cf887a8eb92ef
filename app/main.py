from __future__ import annotations
import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.orm import Session

from app.core.config import settings, configure_cors, ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_PHONE
from app.core.exceptions import ServiceError, service_error_handler, validation_exception_handler
from app.core.logging_config import setup_logging
from app.core.security import hash_password
from app.db.session import init_models, SessionLocal
from app.models.user import User, UserType
from app.services.locations import seed_locations
from app.utils.phone import normalize_ke_phone
from app.admin import mount_admin

# Routers (import once, include once)
from app.api.v1.auth import router as auth_router
from app.api.v1.password_reset import router as password_reset_router
from app.api.v1.users import router as users_router
from app.api.v1.admin import router as admin_router
from app.api.v1.locations import router as locations_router
from app.api.v1.properties import router as properties_router
from app.api.v1.payments import router as payments_router
from app.api.v1.reference import router as reference_router

setup_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
configure_cors(app)

# Global exception handlers
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


def _ensure_admin(db: Session) -> None:
    """Create the first admin from ADMIN_* settings (idempotent)."""
    admin_email = (ADMIN_EMAIL or "").strip().lower() or None
    if not admin_email:
        return
    if db.query(User).filter(User.email == admin_email).first():
        return
    if db.query(User).filter(User.user_type == UserType.ADMIN.value).first():
        return

    admin_user = User(
        email=admin_email,
        phone_number=normalize_ke_phone(ADMIN_PHONE or ""),
        hashed_password=hash_password(ADMIN_PASSWORD),
        first_name="Admin",
        last_name="Admin",
        user_type=UserType.ADMIN.value,
        is_verified=True,       # seed skips email verification
        is_approved=True,
        is_active=True,
    )
    db.add(admin_user)
    db.commit()
    logger.info("Seeded admin user", extra={"email": admin_email})


@app.on_event("startup")
def on_startup():
    """
    - Create tables
    - Seed counties / sub-counties
    - Ensure a first admin user
    """
    init_models()
    with SessionLocal() as db:
        if settings.seed_locations:
            seed_locations(db)
        _ensure_admin(db)


# Mount API v1 routers (once)
app.include_router(auth_router)
app.include_router(password_reset_router)
app.include_router(users_router)
app.include_router(admin_router)
app.include_router(locations_router)
app.include_router(properties_router)
app.include_router(payments_router)
app.include_router(reference_router)

mount_admin(app)


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok", "service": settings.app_name, "environment": settings.environment}


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s",
        request.method, request.url.path, response.status_code,
        extra={"duration_ms": round((time.perf_counter() - started) * 1000, 1)},
    )
    return response
