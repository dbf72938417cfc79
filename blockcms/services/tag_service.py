# blockcms/services/tag_service.py
# Tag vocabulary CRUD and usage counting; callers own the transaction
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from blockcms.models.content import ContentItem
from blockcms.models.tag import Tag
from blockcms.schemas.tags import TagCreate, TagUpdate

logger = logging.getLogger(__name__)


class DuplicateTagError(ValueError):
    pass


def _key(name: str) -> str:
    return name.strip().lower()


def _names(tags: Optional[Iterable[str]]) -> set[str]:
    return {_key(t) for t in (tags or ()) if isinstance(t, str) and t.strip()}


# -------- Reads --------
def list_tags(db: Session, category: Optional[str] = None) -> Sequence[Tag]:
    """Most used first, then alphabetical. ``category="all"`` means no filter."""
    stmt = select(Tag)
    if category and category != "all":
        stmt = stmt.where(Tag.category == category)
    return db.scalars(stmt.order_by(Tag.usage_count.desc(), Tag.name.asc())).all()


def get_tag(db: Session, tag_id: int) -> Optional[Tag]:
    return db.get(Tag, tag_id)


def find_tag(db: Session, name: str, *, exclude_id: Optional[int] = None) -> Optional[Tag]:
    stmt = select(Tag).where(func.lower(Tag.name) == _key(name))
    if exclude_id is not None:
        stmt = stmt.where(Tag.id != exclude_id)
    return db.scalar(stmt)


def count_usage(db: Session, name: str) -> int:
    """Number of content records carrying ``name`` in their tags (case-insensitive)."""
    key = _key(name)
    return sum(1 for tags in db.scalars(select(ContentItem.tags)) if key in _names(tags))


# -------- Writes --------
def create_tag(db: Session, payload: TagCreate) -> Tag:
    if find_tag(db, payload.name):
        raise DuplicateTagError("Tag with this name already exists")
    tag = Tag(**payload.model_dump())
    tag.usage_count = count_usage(db, tag.name)
    db.add(tag)
    db.flush()
    return tag


def update_tag(db: Session, tag: Tag, payload: TagUpdate) -> Tag:
    fields = payload.model_dump(exclude_unset=True)
    name = fields.pop("name", None)
    if name is not None and name != tag.name:
        if find_tag(db, name, exclude_id=tag.id):
            raise DuplicateTagError("Another tag with this name already exists")
        tag.name = name
        tag.usage_count = count_usage(db, name)
    for key, value in fields.items():
        setattr(tag, key, value)
    db.flush()
    return tag


def delete_tag(db: Session, tag: Tag) -> None:
    # content keeps the plain string; only the vocabulary entry goes
    if tag.usage_count > 0:
        logger.warning("Deleting tag %r still used by %d content item(s)", tag.name, tag.usage_count)
    db.delete(tag)
    db.flush()


def sync_usage(db: Session, before: Optional[Iterable[str]], after: Optional[Iterable[str]]) -> None:
    """Adjust usage counts for a content record whose tags went from ``before`` to ``after``."""
    old, new = _names(before), _names(after)
    for key, delta in [(k, 1) for k in new - old] + [(k, -1) for k in old - new]:
        tag = find_tag(db, key)
        if tag is not None:
            tag.usage_count = max(0, (tag.usage_count or 0) + delta)
    db.flush()
