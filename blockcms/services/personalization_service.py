# blockcms/services/personalization_service.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from blockcms.models.content import ContentItem
from blockcms.schemas.blocks import coerce_block_list
from blockcms.schemas.personalization import PageCoverage, PersonalizationState, PersonalizationStats

KNOWN_INDUSTRIES: tuple[str, ...] = (
    "eCommerce",
    "Healthcare",
    "Financial Services",
    "Education",
    "B2B/SaaS",
)


# ===================== Resolver =====================

def _variants_of(data: Mapping[str, Any]) -> Mapping[str, Any] | None:
    cfg = data.get("personalization")
    if not isinstance(cfg, Mapping) or not cfg.get("enabled"):
        return None
    variants = cfg.get("industryVariants")
    return variants if isinstance(variants, Mapping) else None


def resolve(block: Mapping[str, Any], state: PersonalizationState | None) -> Dict[str, Any]:
    """
    Effective data for one block given the visitor state.

    Default ``data`` is returned unless personalization is enabled, the visitor
    has an industry, and that industry has a variant with at least one key; in
    that case the variant is shallow-merged over the defaults. A variant key
    whose value is an empty string still overrides. Never raises.
    """
    data = block.get("data") if isinstance(block, Mapping) else None
    if not isinstance(data, Mapping):
        return {}
    default = dict(data)

    variants = _variants_of(data)
    if not variants:
        return default

    industry = state.industry if state else None
    if not industry:
        return default

    variant = variants.get(industry)
    if not isinstance(variant, Mapping) or not variant:
        return default

    return {**default, **variant}


# ===================== Coverage stats =====================

def _has_variant(variants: Mapping[str, Any], industry: str) -> bool:
    v = variants.get(industry)
    return isinstance(v, Mapping) and len(v) > 0


def personalization_stats(db: Session) -> PersonalizationStats:
    """Industry-variant coverage across block-based static pages (any status)."""
    pages = db.scalars(
        select(ContentItem)
        .where(ContentItem.content_type == "static_page")
        .order_by(ContentItem.id.asc())
    ).all()

    coverage: Dict[str, int] = {name: 0 for name in KNOWN_INDUSTRIES}
    details: List[PageCoverage] = []
    total_blocks = 0
    personalized_total = 0
    pages_with = 0

    for page in pages:
        blocks = coerce_block_list(page.content_blocks)
        if not blocks:
            continue

        page_industries: set[str] = set()
        personalized = 0
        for block in blocks:
            total_blocks += 1
            data = block.get("data")
            variants = _variants_of(data) if isinstance(data, Mapping) else None
            if not variants:
                continue
            personalized += 1
            for name in KNOWN_INDUSTRIES:
                if _has_variant(variants, name):
                    coverage[name] += 1
                    page_industries.add(name)

        personalized_total += personalized
        if personalized:
            pages_with += 1

        details.append(
            PageCoverage(
                id=page.id,
                slug=page.slug,
                title=page.title,
                total_blocks=len(blocks),
                personalized_blocks=personalized,
                industries=sorted(page_industries),
                missing_industries=[n for n in KNOWN_INDUSTRIES if n not in page_industries],
            )
        )

    details.sort(key=lambda d: d.personalized_blocks, reverse=True)

    return PersonalizationStats(
        total_pages=len(details),
        pages_with_personalization=pages_with,
        total_blocks=total_blocks,
        blocks_with_personalization=personalized_total,
        coverage_by_industry=coverage,
        page_details=details,
    )
