# blockcms/services/email_service.py
# Transactional email over an HTTP API (Resend-compatible JSON payload)
from __future__ import annotations

import logging
from html import escape
from typing import Optional

import httpx

from blockcms.core.settings import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


def send_email(to: str, subject: str, html: str, *, reply_to: Optional[str] = None) -> str:
    """Send one message. Returns the provider message id; raises EmailDeliveryError."""
    if not settings.EMAIL_API_KEY:
        raise EmailDeliveryError("Email delivery is not configured")

    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    if reply_to:
        payload["reply_to"] = reply_to

    try:
        resp = httpx.post(
            settings.EMAIL_API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {settings.EMAIL_API_KEY}"},
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        raise EmailDeliveryError(f"Email API unreachable: {exc}") from exc

    if resp.status_code >= 400:
        raise EmailDeliveryError(f"Email API returned {resp.status_code}")

    try:
        message_id = str((resp.json() or {}).get("id") or "")
    except ValueError:
        message_id = ""
    logger.info("Email sent to %s (%s)", to, message_id or "no id")
    return message_id


# ---------- Messages ----------
def contact_email_html(*, name: Optional[str], email: str, message: str, industry: Optional[str]) -> str:
    body = escape(message).replace("\n", "<br>")
    return (
        "<h2>New Contact Form Submission</h2>"
        f"<p><strong>Name:</strong> {escape(name or 'Not provided')}</p>"
        f"<p><strong>Email:</strong> {escape(email)}</p>"
        f"<p><strong>Industry:</strong> {escape(industry or 'Not specified')}</p>"
        f"<p><strong>Message:</strong></p><p>{body}</p>"
    )


def send_contact_email(*, name: Optional[str], email: str, message: str, industry: Optional[str]) -> str:
    subject = f"New contact from {name or email}"
    html = contact_email_html(name=name, email=email, message=message, industry=industry)
    return send_email(settings.CONTACT_EMAIL_TO, subject, html, reply_to=email)


def send_password_reset_email(*, to: str, reset_url: str) -> str:
    html = (
        "<h2>Reset your password</h2>"
        f"<p>Follow <a href=\"{escape(reset_url)}\">this link</a> to choose a new password.</p>"
        f"<p>The link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
        "If you did not request a reset you can ignore this email.</p>"
    )
    return send_email(to, f"{settings.SITE_NAME} password reset", html)
