# blockcms/services/content_service.py
# CRUD for content records; callers own the transaction (flush here, commit in routers)
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from slugify import slugify
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from blockcms.models.content import ContentItem
from blockcms.schemas.content import ContentCreate, ContentUpdate
from blockcms.services.publish_service import transition_status
from blockcms.services.tag_service import sync_usage


class ContentValidationError(ValueError):
    pass


class SlugConflictError(ContentValidationError):
    pass


# explicit null in a PATCH resets these columns instead of failing the NOT NULL
_NOT_NULL_DEFAULTS = {
    "industries": list,
    "tool_categories": list,
    "goals": list,
    "tags": list,
    "show_in_navigation": lambda: False,
    "navigation_order": lambda: 0,
}


# -------- Slugs --------
def slug_taken(db: Session, slug: str, *, exclude_id: Optional[int] = None) -> bool:
    stmt = select(ContentItem.id).where(ContentItem.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(ContentItem.id != exclude_id)
    return db.scalar(stmt) is not None


def unique_slug(db: Session, title: str) -> str:
    base = slugify(title, max_length=200) or "untitled"
    candidate, n = base, 2
    while slug_taken(db, candidate):
        candidate = f"{base}-{n}"
        n += 1
    return candidate


# -------- Reads --------
def get_content(db: Session, content_id: int) -> Optional[ContentItem]:
    return db.get(ContentItem, content_id)


def list_content(
    db: Session,
    *,
    content_type: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[Sequence[ContentItem], int]:
    stmt = select(ContentItem)
    if content_type:
        stmt = stmt.where(ContentItem.content_type == content_type)
    if status:
        stmt = stmt.where(ContentItem.status == status)
    if q:
        like = f"%{q.strip()}%"
        stmt = stmt.where(ContentItem.title.ilike(like) | ContentItem.slug.ilike(like))

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(
        stmt.order_by(ContentItem.updated_at.desc(), ContentItem.id.desc()).limit(limit).offset(offset)
    ).all()
    return items, int(total)


# -------- Writes --------
def create_content(db: Session, payload: ContentCreate) -> tuple[ContentItem, bool]:
    """Returns (item, published_now)."""
    data = payload.model_dump(exclude={"status", "slug"})
    if payload.slug:
        if slug_taken(db, payload.slug):
            raise SlugConflictError(f"Slug '{payload.slug}' already exists")
        slug = payload.slug
    else:
        slug = unique_slug(db, payload.title)

    item = ContentItem(slug=slug, status="draft", **data)
    db.add(item)
    db.flush()
    sync_usage(db, (), item.tags)

    published = False
    if payload.status != "draft":
        published = transition_status(db, item, payload.status)
    return item, published


def update_content(db: Session, item: ContentItem, payload: ContentUpdate) -> tuple[ContentItem, Dict[str, Any], bool]:
    """
    Applies only the fields present in ``payload``; no version check, last write wins.
    Returns (item, {field: (before, after)}, published_now).
    """
    changes: Dict[str, Any] = {}
    fields = payload.model_dump(exclude_unset=True)
    dst_status = fields.pop("status", None)

    if "slug" in fields and fields["slug"] != item.slug:
        if not fields["slug"]:
            raise ContentValidationError("Slug cannot be empty")
        if slug_taken(db, fields["slug"], exclude_id=item.id):
            raise SlugConflictError(f"Slug '{fields['slug']}' already exists")

    for key, value in fields.items():
        if key in ("title", "content_type") and value is None:
            raise ContentValidationError(f"{key} cannot be null")
        if value is None and key in _NOT_NULL_DEFAULTS:
            value = _NOT_NULL_DEFAULTS[key]()
        before = getattr(item, key)
        if before != value:
            changes[key] = {"before": before, "after": value}
            setattr(item, key, value)

    if "tags" in changes:
        sync_usage(db, changes["tags"]["before"], changes["tags"]["after"])

    published = False
    if dst_status and dst_status != item.status:
        before = item.status
        published = transition_status(db, item, dst_status)
        changes["status"] = {"before": before, "after": dst_status}

    db.flush()
    return item, changes, published


def delete_content(db: Session, item: ContentItem) -> None:
    """Hard delete; preview tokens go with it."""
    sync_usage(db, item.tags, ())
    db.delete(item)
    db.flush()
