# blockcms/services/page_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from markupsafe import Markup
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from blockcms.models.content import NAVIGATION_GROUPS, ContentItem
from blockcms.schemas.blocks import coerce_block_list
from blockcms.schemas.personalization import PersonalizationState
from blockcms.services.seo_service import SeoMetadata, build_seo_metadata, build_structured_data
from blockcms.utils.html import markdown_to_html
from blockcms.utils.urls import content_path
from blockcms.web.ui.block_renderer import RenderedBlock, render_blocks

logger = logging.getLogger(__name__)

PageMode = Literal["blocks", "markdown", "empty"]


@dataclass
class RenderedPage:
    item: ContentItem
    mode: PageMode
    seo: SeoMetadata
    blocks: List[RenderedBlock] = field(default_factory=list)
    body_html: Optional[Markup] = None

    @property
    def is_empty(self) -> bool:
        return self.mode == "empty"


def get_published(db: Session, slug: str, content_type: Optional[str] = None) -> Optional[ContentItem]:
    stmt = select(ContentItem).where(ContentItem.slug == slug, ContentItem.status == "published")
    if content_type:
        stmt = stmt.where(ContentItem.content_type == content_type)
    return db.scalar(stmt)


def build_page(item: ContentItem, state: PersonalizationState | None = None) -> RenderedPage:
    """
    Blocks win over the markdown body when the stored block list is non-empty;
    a malformed block list counts as empty. Pure apart from reading ``item``.
    """
    blocks = coerce_block_list(item.content_blocks)
    seo = build_seo_metadata(item)

    if blocks:
        rendered = render_blocks(blocks, state)
        seo.structured_data = build_structured_data(item, rendered.structured_data)
        return RenderedPage(item=item, mode="blocks", seo=seo, blocks=rendered.nodes)

    seo.structured_data = build_structured_data(item)
    if item.content and item.content.strip():
        return RenderedPage(item=item, mode="markdown", seo=seo, body_html=markdown_to_html(item.content))

    return RenderedPage(item=item, mode="empty", seo=seo)


def assemble_page(
    db: Session,
    slug: str,
    content_type: Optional[str] = None,
    state: PersonalizationState | None = None,
) -> Optional[RenderedPage]:
    """Published page ready for the site templates, or None (not found / nothing to show)."""
    item = get_published(db, slug, content_type)
    if item is None:
        return None
    page = build_page(item, state)
    if page.is_empty:
        logger.info("Published %s %r has no body; treating as not found", item.content_type, slug)
        return None
    return page


# ===================== Listings =====================

def list_published(
    db: Session, content_type: str, *, limit: int = 20, offset: int = 0
) -> tuple[List[ContentItem], int]:
    base = select(ContentItem).where(
        ContentItem.content_type == content_type, ContentItem.status == "published"
    )
    total = db.scalar(select(func.count()).select_from(base.subquery())) or 0
    items = db.scalars(
        base.order_by(ContentItem.published_at.desc(), ContentItem.id.desc()).limit(limit).offset(offset)
    ).all()
    return list(items), int(total)


def all_published(db: Session) -> List[ContentItem]:
    return list(
        db.scalars(
            select(ContentItem)
            .where(ContentItem.status == "published")
            .order_by(ContentItem.content_type.asc(), ContentItem.slug.asc())
        ).all()
    )


def navigation(db: Session) -> Dict[str, List[Dict[str, Any]]]:
    items = db.scalars(
        select(ContentItem)
        .where(ContentItem.status == "published", ContentItem.show_in_navigation.is_(True))
        .order_by(ContentItem.navigation_order.asc(), ContentItem.title.asc())
    ).all()
    groups: Dict[str, List[Dict[str, Any]]] = {g: [] for g in NAVIGATION_GROUPS}
    for it in items:
        group = it.navigation_group if it.navigation_group in groups else "resources"
        groups[group].append(
            {
                "title": it.title,
                "slug": it.slug,
                "url": content_path(it.content_type, it.slug),
                "content_type": it.content_type,
                "navigation_order": it.navigation_order or 0,
            }
        )
    return groups
