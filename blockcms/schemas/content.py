# blockcms/schemas/content.py
# Pydantic requests/responses for content records and preview tokens
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blockcms.schemas.blocks import validate_blocks

ContentTypeName = Literal[
    "blog",
    "case_study",
    "implementation_guide",
    "test_result",
    "best_practice",
    "tool_guide",
    "news",
    "static_page",
]
ContentStatusName = Literal["draft", "published", "archived"]
NavigationGroup = Literal["insights", "company", "resources"]


class _SeoFields(BaseModel):
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)
    canonical_url: Optional[str] = Field(None, max_length=1024)
    og_title: Optional[str] = Field(None, max_length=255)
    og_description: Optional[str] = Field(None, max_length=500)
    og_image_url: Optional[str] = Field(None, max_length=1024)
    twitter_title: Optional[str] = Field(None, max_length=255)
    twitter_description: Optional[str] = Field(None, max_length=500)
    twitter_image_url: Optional[str] = Field(None, max_length=1024)
    article_schema: Optional[Dict[str, Any]] = None
    breadcrumb_schema: Optional[Dict[str, Any]] = None


# ---------- Content ----------
class ContentBase(_SeoFields):
    title: str = Field(..., min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    content_type: ContentTypeName
    status: ContentStatusName = "draft"
    excerpt: Optional[str] = None
    content: Optional[str] = None
    content_blocks: Optional[List[Dict[str, Any]]] = None
    author: Optional[str] = Field(None, max_length=160)
    featured_image: Optional[str] = Field(None, max_length=1024)

    industries: List[str] = Field(default_factory=list)
    tool_categories: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    show_in_navigation: bool = False
    navigation_group: Optional[NavigationGroup] = None
    navigation_order: int = 0


class ContentCreate(ContentBase):
    @field_validator("content_blocks")
    @classmethod
    def _check_blocks(cls, v):
        return validate_blocks(v) if v is not None else None


class ContentUpdate(_SeoFields):
    # Partial update: only fields present in the payload are written
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = Field(None, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    content_type: Optional[ContentTypeName] = None
    status: Optional[ContentStatusName] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    content_blocks: Optional[List[Dict[str, Any]]] = None
    author: Optional[str] = Field(None, max_length=160)
    featured_image: Optional[str] = Field(None, max_length=1024)
    industries: Optional[List[str]] = None
    tool_categories: Optional[List[str]] = None
    goals: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    show_in_navigation: Optional[bool] = None
    navigation_group: Optional[NavigationGroup] = None
    navigation_order: Optional[int] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("content_blocks")
    @classmethod
    def _check_blocks(cls, v):
        return validate_blocks(v) if v is not None else None


class ContentOut(ContentBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    slug: str
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None


class ContentListOut(BaseModel):
    items: List[ContentOut]
    total: int
    limit: int
    offset: int


# ---------- Preview tokens ----------
class PreviewTokenOut(BaseModel):
    token: str
    preview_url: str
    expires_at: datetime
    content_title: str


# ---------- Navigation ----------
class NavigationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    title: str
    slug: str
    url: str
    content_type: str
    navigation_order: int


class NavigationOut(BaseModel):
    insights: List[NavigationItem] = Field(default_factory=list)
    company: List[NavigationItem] = Field(default_factory=list)
    resources: List[NavigationItem] = Field(default_factory=list)
