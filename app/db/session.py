# app/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings
from app.db.base import Base

_connect_args = {"check_same_thread": False} if settings.sqlalchemy_url.startswith("sqlite") else {}

engine = create_engine(settings.sqlalchemy_url, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def import_models():
    # Import ALL model modules so metadata is populated before create_all
    from app.models import (  # noqa: F401
        user, email_verification_token, password_reset_token,
        location, property as prop, payment_attempt,
    )


def init_models(bind=None):
    import_models()
    Base.metadata.create_all(bind=bind or engine)
