# blockcms/services/indexnow_service.py
# Search-engine URL submission (IndexNow). Best effort: failures are logged, never raised.
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import urlparse

import httpx

from blockcms.core.settings import settings
from blockcms.utils.urls import absolute_url, content_url, site_host

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
BACKOFF_SECONDS = 0.5


@dataclass
class IndexNowResult:
    success: bool
    message: str
    status_code: Optional[int] = None
    urls: List[str] = field(default_factory=list)


def normalize_urls(urls: Iterable[str]) -> List[str]:
    """Absolute http(s) URLs only; relative paths are resolved against SITE_URL."""
    out: List[str] = []
    for raw in urls:
        if not isinstance(raw, str) or not raw.strip():
            continue
        url = absolute_url(raw.strip())
        parsed = urlparse(url)
        if parsed.scheme in ("http", "https") and parsed.netloc and url not in out:
            out.append(url)
    return out


def build_payload(urls: List[str]) -> dict:
    return {
        "host": site_host(),
        "key": settings.INDEXNOW_KEY,
        "keyLocation": absolute_url(f"/{settings.INDEXNOW_KEY}.txt"),
        "urlList": urls,
    }


async def _post_once(payload: dict) -> int:
    async with httpx.AsyncClient(timeout=settings.INDEXNOW_TIMEOUT_SECONDS) as client:
        resp = await client.post(
            settings.INDEXNOW_ENDPOINT,
            json=payload,
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        return resp.status_code


async def submit_urls(urls: Iterable[str]) -> IndexNowResult:
    if not settings.INDEXNOW_ENABLED or not settings.INDEXNOW_KEY:
        return IndexNowResult(success=False, message="IndexNow not configured")

    url_list = normalize_urls(urls)
    if not url_list:
        return IndexNowResult(success=False, message="No valid URLs to submit")

    payload = build_payload(url_list)
    status_code: Optional[int] = None
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            status_code = await _post_once(payload)
        except httpx.HTTPError as exc:
            logger.warning("IndexNow submission attempt %d failed: %s", attempt, exc)
            status_code = None
        else:
            # 200 = accepted, 202 = accepted and key validation pending
            if status_code in (200, 202):
                logger.info("IndexNow accepted %d URL(s)", len(url_list))
                return IndexNowResult(
                    success=True, message="Submitted", status_code=status_code, urls=url_list
                )
            if status_code < 500:
                break
        if attempt < MAX_ATTEMPTS:
            await asyncio.sleep(BACKOFF_SECONDS * attempt)

    logger.warning("IndexNow rejected %s (status=%s)", url_list, status_code)
    return IndexNowResult(
        success=False, message="Submission failed", status_code=status_code, urls=url_list
    )


async def submit_content(content_type: str, slug: str) -> IndexNowResult:
    """Background-task entry point used after publishing."""
    try:
        return await submit_urls([content_url(content_type, slug)])
    except Exception:  # never let indexing break a publish
        logger.exception("IndexNow submission crashed for %s/%s", content_type, slug)
        return IndexNowResult(success=False, message="Submission error")
