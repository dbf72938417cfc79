# blockcms/models/content.py
# Content records (JSON block bodies) and their preview tokens
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blockcms.db.base import Base, JSONType, utcnow

CONTENT_TYPES = (
    "blog",
    "case_study",
    "implementation_guide",
    "test_result",
    "best_practice",
    "tool_guide",
    "news",
    "static_page",
)

CONTENT_STATUSES = ("draft", "published", "archived")

NAVIGATION_GROUPS = ("insights", "company", "resources")

ContentType = Enum(
    *CONTENT_TYPES,
    name="content_type",
    create_constraint=True,
    validate_strings=True,
    native_enum=False,
)

ContentStatus = Enum(
    *CONTENT_STATUSES,
    name="content_status",
    create_constraint=True,
    validate_strings=True,
    native_enum=False,
)


class ContentItem(Base):
    __tablename__ = "content_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    content_type: Mapped[str] = mapped_column(ContentType, index=True)
    status: Mapped[str] = mapped_column(ContentStatus, default="draft", index=True)

    title: Mapped[str] = mapped_column(String(500))
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)       # markdown / HTML body
    content_blocks: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSONType, nullable=True)
    author: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    featured_image: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # SEO
    meta_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    canonical_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    og_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    og_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    og_image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    twitter_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    twitter_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    twitter_image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    article_schema: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    breadcrumb_schema: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    # Categorical arrays
    industries: Mapped[list[str]] = mapped_column(JSONType, default=list)
    tool_categories: Mapped[list[str]] = mapped_column(JSONType, default=list)
    goals: Mapped[list[str]] = mapped_column(JSONType, default=list)
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list)

    # Navigation
    show_in_navigation: Mapped[bool] = mapped_column(Boolean, default=False)
    navigation_group: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    navigation_order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    preview_tokens: Mapped[list["PreviewToken"]] = relationship(
        "PreviewToken", back_populates="content", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_content_items_type_status", "content_type", "status"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ContentItem id={self.id} slug={self.slug!r} status={self.status}>"


class PreviewToken(Base):
    __tablename__ = "content_preview_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content_id: Mapped[int] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"), index=True
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    views_count: Mapped[int] = mapped_column(Integer, default=0)
    last_viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    content: Mapped["ContentItem"] = relationship("ContentItem", back_populates="preview_tokens")
