# blockcms/services/newsletter_service.py
# ConvertKit form subscriptions
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from blockcms.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class SubscribeResult:
    success: bool
    message: str


def subscribe(email: str, first_name: Optional[str] = None) -> SubscribeResult:
    if not settings.CONVERTKIT_API_KEY or not settings.CONVERTKIT_NEWSLETTER_FORM_ID:
        logger.warning("Newsletter subscription attempted but ConvertKit is not configured")
        return SubscribeResult(success=False, message="Newsletter subscription not configured")

    url = f"{settings.CONVERTKIT_BASE_URL.rstrip('/')}/forms/{settings.CONVERTKIT_NEWSLETTER_FORM_ID}/subscribe"
    payload = {"api_key": settings.CONVERTKIT_API_KEY, "email": email}
    if first_name:
        payload["first_name"] = first_name

    try:
        resp = httpx.post(url, json=payload, timeout=10.0)
    except httpx.HTTPError as exc:
        logger.warning("ConvertKit unreachable: %s", exc)
        return SubscribeResult(success=False, message="Failed to subscribe to newsletter")

    if resp.status_code >= 400:
        try:
            detail = (resp.json() or {}).get("message")
        except ValueError:
            detail = None
        logger.warning("ConvertKit rejected subscription (status=%s): %s", resp.status_code, detail)
        return SubscribeResult(success=False, message=detail or "Failed to subscribe to newsletter")

    return SubscribeResult(
        success=True,
        message="Thank you for subscribing! Check your inbox for confirmation.",
    )
