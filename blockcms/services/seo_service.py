# blockcms/services/seo_service.py
"""
SEO metadata and JSON-LD for a content record.

Every field resolves to the first non-empty value in its fallback chain;
chains are never merged (an og_description does not get the excerpt appended).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from blockcms.core.settings import settings
from blockcms.models.content import ContentItem
from blockcms.utils.urls import SECTION_TITLES, absolute_url, content_url, section_path

SCHEMA_CONTEXT = "https://schema.org"


@dataclass
class SeoMetadata:
    title: str
    description: Optional[str]
    canonical_url: str
    keywords: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    og_type: str = "website"
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    twitter_image: Optional[str] = None
    twitter_card: str = "summary"
    published_time: Optional[str] = None
    modified_time: Optional[str] = None
    structured_data: List[Dict[str, Any]] = field(default_factory=list)


def first_non_empty(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v
    return None


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def build_seo_metadata(item: ContentItem) -> SeoMetadata:
    title = first_non_empty(item.meta_title, item.title) or ""
    description = first_non_empty(item.meta_description, item.excerpt, item.title)
    og_title = first_non_empty(item.og_title, item.meta_title, item.title)
    og_description = first_non_empty(item.og_description, description)
    og_image = first_non_empty(item.og_image_url, item.featured_image)
    twitter_image = first_non_empty(item.twitter_image_url, og_image)
    is_article = item.content_type != "static_page"

    return SeoMetadata(
        title=title,
        description=description,
        canonical_url=first_non_empty(item.canonical_url) or content_url(item.content_type, item.slug),
        keywords=", ".join(t for t in (item.tags or []) if t) or None,
        og_title=og_title,
        og_description=og_description,
        og_image=og_image,
        og_type="article" if is_article else "website",
        twitter_title=first_non_empty(item.twitter_title, og_title),
        twitter_description=first_non_empty(item.twitter_description, og_description),
        twitter_image=twitter_image,
        twitter_card="summary_large_image" if twitter_image else "summary",
        published_time=_iso(item.published_at) if is_article else None,
        modified_time=_iso(item.updated_at) if is_article else None,
    )


# ===================== JSON-LD =====================

def _publisher() -> Dict[str, Any]:
    return {"@type": "Organization", "name": settings.SITE_NAME, "url": settings.SITE_BASE}


def _with_context(fragment: Dict[str, Any], default_type: str) -> Dict[str, Any]:
    out = dict(fragment)
    out.setdefault("@context", SCHEMA_CONTEXT)
    out.setdefault("@type", default_type)
    return out


def article_fragment(item: ContentItem) -> Dict[str, Any]:
    url = content_url(item.content_type, item.slug)
    fragment: Dict[str, Any] = {
        "@context": SCHEMA_CONTEXT,
        "@type": "Article",
        "headline": item.title,
        "description": first_non_empty(item.excerpt, item.title),
        "author": {"@type": "Person", "name": item.author or settings.ARTICLE_DEFAULT_AUTHOR},
        "publisher": _publisher(),
        "url": url,
        "mainEntityOfPage": {"@type": "WebPage", "@id": url},
    }
    if item.published_at:
        fragment["datePublished"] = item.published_at.isoformat()
    if item.updated_at:
        fragment["dateModified"] = item.updated_at.isoformat()
    image = first_non_empty(item.featured_image, item.og_image_url)
    if image:
        fragment["image"] = absolute_url(image)
    return fragment


def breadcrumb_fragment(item: ContentItem) -> Dict[str, Any]:
    crumbs = [("Home", absolute_url("/"))]
    section = section_path(item.content_type)
    if section:
        crumbs.append((SECTION_TITLES.get(item.content_type, section.strip("/")), absolute_url(section)))
    crumbs.append((item.title, content_url(item.content_type, item.slug)))
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": i, "name": name, "item": url}
            for i, (name, url) in enumerate(crumbs, start=1)
        ],
    }


def build_structured_data(
    item: ContentItem, block_fragments: Optional[List[Dict[str, Any]]] = None
) -> List[Dict[str, Any]]:
    """
    Explicit article/breadcrumb schema on the record wins; otherwise article
    types get derived Article + BreadcrumbList and static pages get none.
    Block-level fragments (HowTo) are appended after.
    """
    out: List[Dict[str, Any]] = []
    is_article = item.content_type != "static_page"

    if isinstance(item.article_schema, dict) and item.article_schema:
        fragment = _with_context(item.article_schema, "Article" if is_article else "WebPage")
        fragment.setdefault("publisher", _publisher())
        out.append(fragment)
    elif is_article:
        out.append(article_fragment(item))

    if isinstance(item.breadcrumb_schema, dict) and item.breadcrumb_schema:
        out.append(_with_context(item.breadcrumb_schema, "BreadcrumbList"))
    elif is_article:
        out.append(breadcrumb_fragment(item))

    out.extend(block_fragments or [])
    return out
