# blockcms/deps/origin.py
# Origin/Referer check for browser-posted public forms
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

from fastapi import HTTPException, Request, status

from blockcms.core.settings import settings

logger = logging.getLogger(__name__)

# Environments where header-less calls (curl, tests) are let through
LENIENT_ENVS = ("dev", "development", "local", "test")


def origin_of(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def trusted_origins() -> set[str]:
    """SITE_URL plus explicit CORS origins; a "*" CORS entry grants nothing here."""
    found = (origin_of(u) for u in (settings.SITE_BASE, *settings.CORS_ORIGINS))
    return {o for o in found if o}


def require_trusted_origin(request: Request) -> None:
    """FastAPI dependency. Origin wins; Referer is the fallback for browsers that omit it."""
    origin = request.headers.get("origin")
    referer = request.headers.get("referer")

    if not origin and not referer:
        if settings.ENV.lower() in LENIENT_ENVS:
            return
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Missing origin and referer headers")

    allowed = trusted_origins()
    if origin_of(origin) in allowed or origin_of(referer) in allowed:
        return

    logger.warning("Rejected form post: origin=%s referer=%s", origin, referer)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Request origin not allowed")
