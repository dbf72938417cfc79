# blockcms/services/preview_service.py
# Opaque, DB-backed preview links for unpublished content
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from blockcms.core.settings import settings
from blockcms.models.content import ContentItem, PreviewToken
from blockcms.schemas.personalization import PersonalizationState
from blockcms.services.page_service import RenderedPage, build_page
from blockcms.services.publish_service import to_utc
from blockcms.utils.urls import absolute_url

logger = logging.getLogger(__name__)

PreviewStatus = Literal["ok", "expired", "not_found"]


@dataclass
class PreviewResult:
    status: PreviewStatus
    token: Optional[PreviewToken] = None
    page: Optional[RenderedPage] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_token_value() -> str:
    # 32 random bytes, url-safe base64 (43 chars)
    return secrets.token_urlsafe(32)


def preview_url(token: str) -> str:
    return absolute_url(f"/preview/{token}")


def issue_token(db: Session, item: ContentItem) -> PreviewToken:
    """Replace any existing preview tokens for ``item`` with a fresh one."""
    db.execute(delete(PreviewToken).where(PreviewToken.content_id == item.id))
    tok = PreviewToken(
        content_id=item.id,
        token=new_token_value(),
        expires_at=_now() + timedelta(hours=settings.PREVIEW_TOKEN_TTL_HOURS),
        views_count=0,
    )
    db.add(tok)
    db.flush()
    logger.info("Preview token issued for content %s (expires %s)", item.id, tok.expires_at.isoformat())
    return tok


def revoke_token(db: Session, token: str) -> bool:
    tok = db.scalar(select(PreviewToken).where(PreviewToken.token == token))
    if tok is None:
        return False
    db.delete(tok)
    db.flush()
    logger.info("Preview token revoked for content %s", tok.content_id)
    return True


def is_expired(tok: PreviewToken, now: Optional[datetime] = None) -> bool:
    return to_utc(tok.expires_at) <= (now or _now())


def assemble_preview(
    db: Session, token: str, state: PersonalizationState | None = None
) -> PreviewResult:
    """
    Resolve a preview link. A valid token renders the record whatever its
    status and counts a view; an expired token renders nothing.
    """
    tok = db.scalar(select(PreviewToken).where(PreviewToken.token == token))
    if tok is None:
        return PreviewResult(status="not_found")
    if is_expired(tok):
        return PreviewResult(status="expired", token=tok)

    item = db.get(ContentItem, tok.content_id)
    if item is None:
        return PreviewResult(status="not_found")

    # read-then-write; concurrent views may undercount
    tok.views_count = (tok.views_count or 0) + 1
    tok.last_viewed_at = _now()
    db.flush()

    return PreviewResult(status="ok", token=tok, page=build_page(item, state))
