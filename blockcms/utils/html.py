# blockcms/utils/html.py
# Markdown bodies and editor-supplied HTML fragments, cleaned before output
from __future__ import annotations

from urllib.parse import urlparse

import bleach
import markdown2
from markupsafe import Markup


ALLOWED_TAGS = [
    # structure
    "p",
    "br",
    "hr",
    "div",
    "blockquote",
    "pre",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "ul",
    "ol",
    "li",
    "figure",
    "figcaption",
    # inline
    "a",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "del",
    "code",
    "kbd",
    "sub",
    "sup",
    "span",
    # tables & images
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "img",
]
ALLOWED_ATTRS = {
    "*": ["class", "id"],
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title", "width", "height", "loading"],
    "th": ["colspan", "rowspan"],
    "td": ["colspan", "rowspan"],
}
ALLOWED_PROTOCOLS = ["http", "https", "mailto", "tel"]

MARKDOWN_EXTRAS = [
    "fenced-code-blocks",
    "tables",
    "strike",
    "cuddled-lists",
    "header-ids",
]


def _external_links(attrs, new=False):
    href = attrs.get((None, "href"), "")
    if href.startswith(("http://", "https://")):
        attrs[(None, "target")] = "_blank"
        attrs[(None, "rel")] = "noopener noreferrer"
    return attrs


def clean_html(html: str | None) -> Markup:
    """Strip anything outside the allow-list and mark the result safe for Jinja."""
    cleaned = bleach.clean(
        html or "",
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
    return Markup(cleaned)


def markdown_to_html(text_md: str | None) -> Markup:
    html = markdown2.markdown(text_md or "", extras=MARKDOWN_EXTRAS)
    html = bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
    html = bleach.linkify(html, callbacks=[_external_links])
    return Markup(html)


LINK_SCHEMES = ("http", "https", "mailto", "tel")
IMAGE_SCHEMES = ("http", "https")


def safe_url(url: str | None, schemes: tuple[str, ...] = LINK_SCHEMES) -> str:
    """
    ``url`` when it is site-relative or uses one of ``schemes``, otherwise "".
    Checked the way browsers read it: control characters and spaces dropped,
    backslashes taken as slashes. A leading "//" (another host) is refused.
    """
    value = (url or "").strip()
    if not value:
        return ""
    normalized = "".join(ch for ch in value if ch > " ").replace("\\", "/")
    if normalized.startswith("//"):
        return ""
    scheme = urlparse(normalized).scheme.lower()
    if scheme and scheme not in schemes:
        return ""
    return value


def safe_image_url(url: str | None) -> str:
    return safe_url(url, IMAGE_SCHEMES)
