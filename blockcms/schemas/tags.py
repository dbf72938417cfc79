# blockcms/schemas/tags.py
# Pydantic requests/responses for the tag vocabulary
from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TagCategoryName = Literal["tactic", "tool", "industry", "topic", "content_type"]


def _clean_name(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError("Tag name is required")
    return v


class TagCreate(BaseModel):
    name: str = Field(..., max_length=100)
    category: Optional[TagCategoryName] = None
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=16, pattern=r"^#[0-9a-fA-F]{3,8}$")

    @field_validator("name")
    @classmethod
    def _check_name(cls, v):
        return _clean_name(v)


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    category: Optional[TagCategoryName] = None
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=16, pattern=r"^#[0-9a-fA-F]{3,8}$")

    model_config = ConfigDict(extra="ignore")

    @field_validator("name")
    @classmethod
    def _check_name(cls, v):
        return _clean_name(v)


class TagOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    usage_count: int
    created_at: datetime
    updated_at: datetime


class TagListOut(BaseModel):
    tags: List[TagOut]
