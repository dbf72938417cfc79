# tests/test_public_forms.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from blockcms.core.settings import settings
from blockcms.models.auth import PasswordResetToken
from blockcms.schemas.forms import check_password_policy
from blockcms.services import auth_service, email_service, newsletter_service
from blockcms.services.passwords import verify_password


@pytest.fixture()
def sent_emails(monkeypatch):
    """Configures the email API and captures outgoing requests."""
    outbox: list[dict] = []

    def fake_post(url, json=None, headers=None, timeout=None):
        outbox.append({"url": url, "json": json, "headers": headers})
        return httpx.Response(200, json={"id": f"msg_{len(outbox)}"})

    monkeypatch.setattr(settings, "EMAIL_API_KEY", "re_test")
    monkeypatch.setattr(email_service.httpx, "post", fake_post)
    return outbox


# ---------- Contact ----------
def test_contact_sends_email_with_cookie_industry(client: TestClient, sent_emails):
    client.cookies.set("persx_industry", "Healthcare")
    r = client.post("/api/contact", json={"name": "Ana <b>", "email": "ana@acme.io", "message": "Hello\nthere"})
    assert r.status_code == 200
    assert r.json()["success"] is True

    msg = sent_emails[0]["json"]
    assert msg["to"] == [settings.CONTACT_EMAIL_TO]
    assert msg["reply_to"] == "ana@acme.io"
    assert "Healthcare" in msg["html"]
    assert "Ana &lt;b&gt;" in msg["html"]
    assert "Hello<br>there" in msg["html"]
    assert sent_emails[0]["headers"]["Authorization"] == "Bearer re_test"


def test_contact_email_failure_is_502(client: TestClient, monkeypatch):
    def failing_post(*args, **kwargs):
        return httpx.Response(500, json={"message": "boom"})

    monkeypatch.setattr(settings, "EMAIL_API_KEY", "re_test")
    monkeypatch.setattr(email_service.httpx, "post", failing_post)
    r = client.post("/api/contact", json={"email": "ana@acme.io", "message": "Hi"})
    assert r.status_code == 502


def test_contact_without_email_configured_is_502(client: TestClient):
    r = client.post("/api/contact", json={"email": "ana@acme.io", "message": "Hi"})
    assert r.status_code == 502


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "message": "Hi"},
        {"email": "ana@acme.io", "message": "   "},
        {"email": "ana@acme.io", "message": "x" * 5001},
        {"email": "ana@acme.io", "message": "Hi", "name": "n" * 101},
    ],
)
def test_contact_validation(client: TestClient, payload):
    assert client.post("/api/contact", json=payload).status_code == 422


@pytest.mark.parametrize(
    "headers",
    [
        {"Origin": "https://www.acme-testing.io"},
        {"Referer": "https://www.acme-testing.io/contact?from=hero"},
        {"Origin": "https://evil.example", "Referer": "https://www.acme-testing.io/contact"},
    ],
)
def test_contact_accepts_site_origin(client: TestClient, sent_emails, headers):
    r = client.post("/api/contact", json={"email": "ana@acme.io", "message": "Hi"}, headers=headers)
    assert r.status_code == 200
    assert len(sent_emails) == 1


@pytest.mark.parametrize(
    "headers",
    [
        {"Origin": "https://evil.example"},
        {"Origin": "https://www.acme-testing.io.evil.example"},
        {"Referer": "http://www.acme-testing.io/contact"},
        {"Origin": "null"},
    ],
)
def test_contact_rejects_foreign_origin(client: TestClient, sent_emails, headers):
    r = client.post("/api/contact", json={"email": "ana@acme.io", "message": "Hi"}, headers=headers)
    assert r.status_code == 403
    assert sent_emails == []


def test_contact_requires_origin_outside_dev(client: TestClient, sent_emails, monkeypatch):
    monkeypatch.setattr(settings, "ENV", "production")
    r = client.post("/api/contact", json={"email": "ana@acme.io", "message": "Hi"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Missing origin and referer headers"

    ok = client.post(
        "/api/contact",
        json={"email": "ana@acme.io", "message": "Hi"},
        headers={"Origin": "https://www.acme-testing.io"},
    )
    assert ok.status_code == 200


# ---------- Newsletter ----------
def test_newsletter_not_configured(client: TestClient):
    r = client.post("/api/newsletter/subscribe", json={"email": "ana@acme.io"})
    assert r.status_code == 500
    assert r.json()["detail"] == "Newsletter subscription not configured"


def test_newsletter_subscribe(client: TestClient, monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        return httpx.Response(200, json={"subscription": {"id": 1}})

    monkeypatch.setattr(settings, "CONVERTKIT_API_KEY", "ck_test")
    monkeypatch.setattr(settings, "CONVERTKIT_NEWSLETTER_FORM_ID", "42")
    monkeypatch.setattr(newsletter_service.httpx, "post", fake_post)

    r = client.post("/api/newsletter/subscribe", json={"email": "ana@acme.io", "first_name": "Ana"})
    assert r.status_code == 200
    assert "Thank you for subscribing" in r.json()["message"]
    assert calls[0][0].endswith("/forms/42/subscribe")
    assert calls[0][1] == {"api_key": "ck_test", "email": "ana@acme.io", "first_name": "Ana"}


# ---------- Password reset ----------
def test_reset_request_is_generic_for_unknown_email(client: TestClient, sent_emails):
    r = client.post("/api/auth/reset-password", json={"email": "ghost@acme.io"})
    assert r.status_code == 200
    assert sent_emails == []


def test_reset_request_survives_email_failure(client: TestClient, admin, db: Session):
    # EMAIL_API_KEY is unset, so delivery fails
    known = client.post("/api/auth/reset-password", json={"email": admin.email})
    unknown = client.post("/api/auth/reset-password", json={"email": "ghost@acme.io"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    # the token is still stored
    assert db.scalars(select(PasswordResetToken)).all()


def test_reset_flow(client: TestClient, admin, db: Session, sent_emails):
    client.post("/api/auth/reset-password", json={"email": admin.email.upper()})
    html = sent_emails[0]["json"]["html"]
    token = html.split("/admin/reset?token=")[1].split('"')[0]

    weak = client.post("/api/auth/reset-password/confirm", json={"token": token, "password": "short"})
    assert weak.status_code == 422

    r = client.post("/api/auth/reset-password/confirm", json={"token": token, "password": "N3wPassword"})
    assert r.status_code == 200
    db.refresh(admin)
    assert verify_password("N3wPassword", admin.hashed_password)

    # single use
    again = client.post("/api/auth/reset-password/confirm", json={"token": token, "password": "An0therOne"})
    assert again.status_code == 400


def test_new_reset_request_invalidates_previous_token(db: Session, admin):
    first = auth_service.create_reset_token(db, admin)
    second = auth_service.create_reset_token(db, admin)
    db.commit()
    with pytest.raises(auth_service.ResetTokenError):
        auth_service.reset_password_with_token(db, first, "N3wPassword")
    assert auth_service.reset_password_with_token(db, second, "N3wPassword").id == admin.id


def test_expired_reset_token(db: Session, admin):
    raw = auth_service.create_reset_token(db, admin)
    row = db.scalar(select(PasswordResetToken).where(PasswordResetToken.used_at.is_(None)))
    row.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    db.commit()
    with pytest.raises(auth_service.ResetTokenError, match="expired"):
        auth_service.reset_password_with_token(db, raw, "N3wPassword")


@pytest.mark.parametrize(
    "password, ok",
    [("Abcdefg1", True), ("abcdefg1", False), ("ABCDEFG1", False), ("Abcdefgh", False), ("Ab1", False)],
)
def test_password_policy(password, ok):
    if ok:
        assert check_password_policy(password) == password
    else:
        with pytest.raises(ValueError):
            check_password_policy(password)
