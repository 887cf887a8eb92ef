# tests/test_app.py

import json
import logging

from app.admin import ADMIN_VIEWS
from app.core.logging_config import JSONFormatter
from app.core.security import verify_password
from app.main import _ensure_admin, app
from app.models.user import User, UserType


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_json_formatter_merges_extra_fields():
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "Payment %s", ("ok",), None)
    record.payment_id = 7

    line = json.loads(JSONFormatter().format(record))

    assert line["message"] == "Payment ok"
    assert line["level"] == "INFO"
    assert line["payment_id"] == 7


def test_ensure_admin_seeds_once(db):
    _ensure_admin(db)
    _ensure_admin(db)

    admins = db.query(User).filter(User.user_type == UserType.ADMIN.value).all()
    assert len(admins) == 1
    assert admins[0].is_verified is True
    assert admins[0].phone_number == "254700000000"
    assert verify_password("AdminPass123!", admins[0].hashed_password)


def test_admin_console_is_mounted(client):
    assert any(getattr(r, "path", None) == "/admin" for r in app.routes)
    assert len(ADMIN_VIEWS) == 7
    assert client.get("/admin/", follow_redirects=False).status_code in (302, 303, 307)
