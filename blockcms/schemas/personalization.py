# blockcms/schemas/personalization.py
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PersonalizationField = Literal["industry", "tool", "goal"]
PERSONALIZATION_FIELDS: tuple[str, ...] = ("industry", "tool", "goal")


class PersonalizationState(BaseModel):
    """Visitor state read from the persx_* cookies. Never validated against known values."""
    model_config = ConfigDict(frozen=True)

    industry: Optional[str] = None
    tool: Optional[str] = None
    goal: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.industry or self.tool or self.goal)


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class IndustryIn(BaseModel):
    industry: Optional[str] = Field(default=None, max_length=100)

    @field_validator("industry", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)


class OverrideIn(BaseModel):
    industry: Optional[str] = Field(default="Healthcare", max_length=100)
    tool: Optional[str] = Field(default="Optimizely", max_length=100)
    goal: Optional[str] = Field(default="Increase Conversion", max_length=100)

    @field_validator("industry", "tool", "goal", mode="before")
    @classmethod
    def _strip(cls, v):
        return _blank_to_none(v)


class ClearIn(BaseModel):
    scope: Literal["industry", "all"] = "all"


class ActionResult(BaseModel):
    success: bool
    message: str


class StateOut(BaseModel):
    success: bool = True
    data: PersonalizationState


class PageCoverage(BaseModel):
    id: int
    slug: str
    title: str
    total_blocks: int
    personalized_blocks: int
    industries: List[str]
    missing_industries: List[str]


class PersonalizationStats(BaseModel):
    total_pages: int
    pages_with_personalization: int
    total_blocks: int
    blocks_with_personalization: int
    coverage_by_industry: Dict[str, int]
    page_details: List[PageCoverage]
