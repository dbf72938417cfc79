# blockcms/utils/urls.py
from __future__ import annotations

from urllib.parse import urljoin, urlparse

from blockcms.core.settings import settings

# content_type -> public path prefix (static pages live at the root)
CONTENT_TYPE_PATHS: dict[str, str] = {
    "blog": "blog",
    "case_study": "case-studies",
    "implementation_guide": "guides",
    "test_result": "test-results",
    "best_practice": "best-practices",
    "tool_guide": "tools",
    "news": "news",
}

SECTION_TITLES: dict[str, str] = {
    "blog": "Blog",
    "case_study": "Case Studies",
    "implementation_guide": "Implementation Guides",
    "test_result": "Test Results",
    "best_practice": "Best Practices",
    "tool_guide": "Tool Guides",
    "news": "News",
}

PATH_CONTENT_TYPES: dict[str, str] = {v: k for k, v in CONTENT_TYPE_PATHS.items()}


def content_path(content_type: str, slug: str) -> str:
    if content_type == "static_page":
        return "/" if slug == "home" else f"/{slug}"
    prefix = CONTENT_TYPE_PATHS.get(content_type, "blog")
    return f"/{prefix}/{slug}"


def section_path(content_type: str) -> str | None:
    prefix = CONTENT_TYPE_PATHS.get(content_type)
    return f"/{prefix}" if prefix else None


def absolute_url(path_or_url: str) -> str:
    if path_or_url.startswith(("http://", "https://")):
        return path_or_url
    return urljoin(settings.SITE_BASE + "/", path_or_url.lstrip("/"))


def content_url(content_type: str, slug: str) -> str:
    return absolute_url(content_path(content_type, slug))


def site_host() -> str:
    """Hostname of SITE_URL without a leading 'www.'."""
    host = urlparse(settings.SITE_BASE).hostname or ""
    return host[4:] if host.startswith("www.") else host
