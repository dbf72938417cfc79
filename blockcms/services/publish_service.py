# blockcms/services/publish_service.py
# Status transitions + cache headers for rendered pages + HTTP-date helpers
from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Literal

from fastapi import Response
from sqlalchemy.orm import Session

from blockcms.models.content import ContentItem

logger = logging.getLogger(__name__)

Status = Literal["draft", "published", "archived"]


# -----------------------------
# Status transitions
# -----------------------------
def can_transition(src: Status, dst: Status) -> bool:
    if src == dst:
        return True
    if src == "draft" and dst in ("published", "archived"):
        return True
    if src == "published" and dst in ("draft", "archived"):
        return True
    if src == "archived" and dst in ("draft",):  # back to draft before publishing again
        return True
    return False


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def transition_status(db: Session, item: ContentItem, dst: Status) -> bool:
    """
    Moves ``item`` to ``dst``. Returns True when this call published it
    (the caller then schedules search-index submission).
    """
    src = item.status
    if not can_transition(src, dst):
        raise ValueError(f"Invalid transition {src} -> {dst}")
    if src == dst:
        return False

    item.status = dst
    if dst == "published":
        item.published_at = _now_utc()
    elif dst == "draft":
        item.published_at = None
    # archived keeps published_at as history

    db.flush()
    logger.info("Content %s (%s) %s -> %s", item.id, item.slug, src, dst)
    return dst == "published"


# -----------------------------
# Cache headers
# -----------------------------
def to_utc(dt: datetime) -> datetime:
    """Naive datetimes (sqlite) are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def httpdate(dt: datetime) -> str:
    return format_datetime(to_utc(dt), usegmt=True)


def apply_page_cache_headers(resp: Response, *, last_modified: datetime | None, preview: bool = False) -> None:
    """
    Rendered pages depend on the persx_* cookies, so shared caches must key on Cookie.
    Preview pages are never cached.
    """
    if preview:
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["X-Robots-Tag"] = "noindex, nofollow"
        return
    resp.headers["Cache-Control"] = "public, max-age=60, stale-while-revalidate=120"
    resp.headers["Vary"] = "Cookie"
    if last_modified:
        resp.headers["Last-Modified"] = httpdate(last_modified)
