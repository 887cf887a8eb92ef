# tests/test_email_templates.py

import pytest

from app.services.email_templates import (
    build_password_reset_email,
    build_verification_email,
    build_verification_result_page,
    build_welcome_email,
)

MARKUP_NAME = '<a href="https://evil.example">Reset here</a>'


@pytest.mark.parametrize(
    "build",
    [
        lambda name: build_verification_email(name, "https://api.realtor.test/v1/auth/verify/email?token=abc"),
        lambda name: build_password_reset_email(name, "https://realtor.test/reset-password?token=abc"),
        lambda name: build_welcome_email(name, "tenant", "https://realtor.test", "support@realtorspace.co.ke"),
    ],
)
def test_first_name_is_escaped_in_html(build):
    html, text = build(MARKUP_NAME)

    assert MARKUP_NAME not in html
    assert "&lt;a href=&quot;https://evil.example&quot;&gt;Reset here&lt;/a&gt;" in html
    # plain-text part is not interpreted by mail clients
    assert MARKUP_NAME in text


def test_result_page_escapes_message():
    page = build_verification_result_page(False, "<script>alert(1)</script>", "https://realtor.test/login")
    assert "<script>" not in page
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page


def test_registration_email_does_not_carry_markup(client, mailer):
    resp = client.post("/v1/auth/register", json={
        "email": "victim@example.co.ke",
        "password": "Sup3rSecret!",
        "first_name": MARKUP_NAME,
        "last_name": "Otieno",
        "phone_number": "0722000111",
    })

    assert resp.status_code == 201
    assert 'href="https://evil.example"' not in mailer.sent[0]["html"]
