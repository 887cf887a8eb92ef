# tests/conftest.py

import os
from datetime import datetime, timedelta, timezone

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("MPESA_CONSUMER_KEY", "test-key")
os.environ.setdefault("MPESA_CONSUMER_SECRET", "test-secret")
os.environ.setdefault("MPESA_SHORT_CODE", "174379")
os.environ.setdefault("MPESA_PASS_KEY", "test-passkey")
os.environ.setdefault("MPESA_BASE_URL", "https://mpesa.test")
os.environ.setdefault("APP_BACKEND_URL", "https://api.realtor.test")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.deps import get_db, get_mpesa_client
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.db.session import import_models
from app.main import app
from app.models.user import User, UserType
from app.services.email import EmailSender, get_email_sender
from app.services.locations import seed_locations
from app.services.mpesa import MpesaClient

PASSWORD = "Sup3rSecret!"
PASSWORD_HASH = hash_password(PASSWORD)


class RecordingEmailSender(EmailSender):
    """Collects messages instead of sending them; set `fail=True` to simulate SMTP errors."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to, subject, html, text=None):
        if self.fail:
            raise ConnectionError("SMTP unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})

    def subjects(self):
        return [m["subject"] for m in self.sent]


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeDaraja:
    """httpx.MockTransport handler mimicking the Daraja sandbox."""

    def __init__(self):
        self.requests = []
        self.oauth_status = 200
        self.push_status = 200
        self.push_body = {
            "MerchantRequestID": "29115-34620561-1",
            "CheckoutRequestID": "ws_CO_191220191020363925",
            "ResponseCode": "0",
            "ResponseDescription": "Success. Request accepted for processing",
            "CustomerMessage": "Success. Request accepted for processing",
        }
        self.query_status = 200
        self.query_body = {
            "ResponseCode": "0",
            "ResponseDescription": "The service request has been accepted successsfully",
            "MerchantRequestID": "29115-34620561-1",
            "CheckoutRequestID": "ws_CO_191220191020363925",
            "ResultCode": "0",
            "ResultDesc": "The service request is processed successfully.",
        }
        self.raise_on_push = None

    def paths(self):
        return [r.url.path for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/oauth/v1/generate":
            if self.oauth_status != 200:
                return httpx.Response(self.oauth_status, json={"errorMessage": "Invalid credentials"})
            return httpx.Response(200, json={"access_token": "sandbox-token", "expires_in": "3599"})
        if path == "/mpesa/stkpush/v1/processrequest":
            if self.raise_on_push is not None:
                raise self.raise_on_push
            return httpx.Response(self.push_status, json=self.push_body)
        if path == "/mpesa/stkpushquery/v1/query":
            return httpx.Response(self.query_status, json=self.query_body)
        return httpx.Response(404, json={"errorMessage": "not found"})


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import_models()
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return RecordingEmailSender()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def daraja():
    return FakeDaraja()


@pytest.fixture
def mpesa_client(daraja):
    return MpesaClient(
        consumer_key="test-key",
        consumer_secret="test-secret",
        short_code="174379",
        pass_key="test-passkey",
        base_url="https://mpesa.test",
        transport=httpx.MockTransport(daraja),
    )


@pytest.fixture
def locations(db):
    seed_locations(db)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "email": f"user{n}@example.co.ke",
            "phone_number": f"2547{n:08d}",
            "first_name": "Wanjiku",
            "last_name": f"Kamau{n}",
            "hashed_password": PASSWORD_HASH,
            "user_type": UserType.TENANT.value,
            "is_verified": True,
            "is_active": True,
        }
        data.update(overrides)
        user = User(**data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.user_type)}"}
    return _headers


@pytest.fixture
def client(db, mailer, mpesa_client):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_sender] = lambda: mailer
    app.dependency_overrides[get_mpesa_client] = lambda: mpesa_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
