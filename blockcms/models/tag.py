# blockcms/models/tag.py
# Managed tag vocabulary; content records reference tags by name
from __future__ import annotations
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from blockcms.db.base import Base, utcnow

TAG_CATEGORIES = ("tactic", "tool", "industry", "topic", "content_type")

TagCategory = Enum(
    *TAG_CATEGORIES,
    name="tag_category",
    create_constraint=True,
    validate_strings=True,
    native_enum=False,
)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    category: Mapped[Optional[str]] = mapped_column(TagCategory, nullable=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    # number of content records whose ``tags`` list contains ``name``
    usage_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Tag id={self.id} name={self.name!r} used={self.usage_count}>"
