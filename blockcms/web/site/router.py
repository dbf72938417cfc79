# blockcms/web/site/router.py
# Public, server-rendered pages. Registered last: "/{slug}" is a catch-all.
from __future__ import annotations

from typing import Optional
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.orm import Session

from blockcms.core.settings import settings
from blockcms.db.session import get_db
from blockcms.schemas.personalization import PersonalizationState
from blockcms.services.page_service import all_published, assemble_page, list_published
from blockcms.services.preview_service import assemble_preview
from blockcms.services.publish_service import apply_page_cache_headers
from blockcms.utils.urls import (
    CONTENT_TYPE_PATHS,
    PATH_CONTENT_TYPES,
    SECTION_TITLES,
    absolute_url,
    content_path,
)
from blockcms.web.session_state import get_personalization_state
from blockcms.web.templating import templates

router = APIRouter(include_in_schema=False)

PAGE_SIZE = 12


def _render_page(request: Request, page, state: PersonalizationState, *, preview=None, status_code: int = 200):
    resp = templates.TemplateResponse(
        request,
        "site/page.html",
        {"page": page, "seo": page.seo, "state": state, "preview": preview},
        status_code=status_code,
    )
    apply_page_cache_headers(resp, last_modified=page.item.updated_at, preview=preview is not None)
    return resp


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Page not found")


# ---------- Home ----------
@router.get("/")
def home(
    request: Request,
    db: Session = Depends(get_db),
    state: PersonalizationState = Depends(get_personalization_state),
):
    page = assemble_page(db, "home", "static_page", state)
    if page is not None:
        return _render_page(request, page, state)
    latest, _ = list_published(db, "blog", limit=6)
    return templates.TemplateResponse(request, "site/home_fallback.html", {"latest": latest})


# ---------- Preview ----------
@router.get("/preview/{token}")
def preview(
    token: str,
    request: Request,
    db: Session = Depends(get_db),
    state: PersonalizationState = Depends(get_personalization_state),
):
    result = assemble_preview(db, token, state)
    if result.status == "not_found":
        raise HTTPException(status_code=404, detail="Preview not found")
    if result.status == "expired":
        resp = templates.TemplateResponse(
            request,
            "site/preview_expired.html",
            {"token": result.token, "ttl_hours": settings.PREVIEW_TOKEN_TTL_HOURS},
            status_code=410,
        )
        apply_page_cache_headers(resp, last_modified=None, preview=True)
        db.commit()
        return resp

    db.commit()  # persist the view counter
    return _render_page(request, result.page, state, preview=result.token)


# ---------- Machine-readable ----------
@router.get("/sitemap.xml")
def sitemap(db: Session = Depends(get_db)):
    urls: list[tuple[str, Optional[str]]] = [(absolute_url("/"), None)]
    urls += [(absolute_url(f"/{prefix}"), None) for prefix in CONTENT_TYPE_PATHS.values()]
    for item in all_published(db):
        if item.content_type == "static_page" and item.slug == "home":
            continue
        lastmod = item.updated_at.date().isoformat() if item.updated_at else None
        urls.append((absolute_url(content_path(item.content_type, item.slug)), lastmod))

    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">']
    for loc, lastmod in urls:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(loc)}</loc>")
        if lastmod:
            lines.append(f"    <lastmod>{lastmod}</lastmod>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return Response("\n".join(lines), media_type="application/xml")


@router.get("/robots.txt")
def robots():
    body = "\n".join([
        "User-agent: *",
        "Allow: /",
        "Disallow: /admin",
        "Disallow: /preview/",
        "Disallow: /api/",
        f"Sitemap: {absolute_url('/sitemap.xml')}",
    ])
    return PlainTextResponse(body + "\n")


@router.get("/{key}.txt")
def indexnow_key_file(key: str):
    if not settings.INDEXNOW_KEY or key != settings.INDEXNOW_KEY:
        raise _not_found()
    return PlainTextResponse(settings.INDEXNOW_KEY)


# ---------- Articles ----------
@router.get("/{section}/{slug}")
def article(
    section: str,
    slug: str,
    request: Request,
    db: Session = Depends(get_db),
    state: PersonalizationState = Depends(get_personalization_state),
):
    content_type = PATH_CONTENT_TYPES.get(section)
    if content_type is None:
        raise _not_found()
    page = assemble_page(db, slug, content_type, state)
    if page is None:
        raise _not_found()
    return _render_page(request, page, state)


# ---------- Static pages & section listings ----------
@router.get("/{slug}")
def static_page_or_listing(
    slug: str,
    request: Request,
    page_no: int = Query(1, ge=1, alias="page"),
    db: Session = Depends(get_db),
    state: PersonalizationState = Depends(get_personalization_state),
):
    content_type = PATH_CONTENT_TYPES.get(slug)
    if content_type is not None:
        items, total = list_published(db, content_type, limit=PAGE_SIZE, offset=(page_no - 1) * PAGE_SIZE)
        return templates.TemplateResponse(
            request,
            "site/listing.html",
            {
                "section_title": SECTION_TITLES[content_type],
                "section": slug,
                "items": items,
                "page_no": page_no,
                "has_next": page_no * PAGE_SIZE < total,
            },
        )

    page = assemble_page(db, slug, "static_page", state)
    if page is None:
        raise _not_found()
    return _render_page(request, page, state)
