# blockcms/web/admin/router.py
# Server-rendered editor: content list, create/edit form, preview links, tags, personalization tester
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.deps.auth import session_admin
from blockcms.models.audit import AuditAction
from blockcms.models.auth import AdminUser
from blockcms.models.content import CONTENT_STATUSES, CONTENT_TYPES, NAVIGATION_GROUPS, ContentItem
from blockcms.models.tag import TAG_CATEGORIES
from blockcms.schemas.blocks import BLOCK_TYPES
from blockcms.schemas.content import ContentCreate, ContentUpdate
from blockcms.schemas.personalization import PERSONALIZATION_FIELDS
from blockcms.schemas.tags import TagCreate, TagUpdate
from blockcms.services.audit_service import audit_content
from blockcms.services.content_service import (
    create_content,
    delete_content,
    get_content,
    list_content,
    update_content,
)
from blockcms.services.indexnow_service import submit_content
from blockcms.services.personalization_service import KNOWN_INDUSTRIES, personalization_stats
from blockcms.services.preview_service import issue_token, preview_url
from blockcms.services.tag_service import create_tag, delete_tag, get_tag, list_tags, update_tag
from blockcms.utils.payload_guard import enforce_blocks_size
from blockcms.utils.urls import content_path
from blockcms.web.session_state import clear_field, read_state, set_field
from blockcms.web.templating import templates

router = APIRouter(include_in_schema=False)

LIST_PAGE_SIZE = 50

# Text inputs on the edit form that map 1:1 onto content columns
TEXT_FIELDS = (
    "title", "slug", "content_type", "status", "excerpt", "content", "author", "featured_image",
    "meta_title", "meta_description", "canonical_url", "og_title", "og_description", "og_image_url",
    "twitter_title", "twitter_description", "twitter_image_url", "navigation_group",
)
LIST_FIELDS = ("industries", "tool_categories", "goals", "tags")


# --------------------------- Helpers ---------------------------
class _LoginRequired(Exception):
    pass


def _require_web_user(request: Request, db: Session) -> AdminUser:
    user = session_admin(request, db)
    if not user:
        raise _LoginRequired()
    return user


def _login_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(url=f"/admin/login?next={request.url.path}", status_code=302)


def _load_item_or_404(db: Session, content_id: int) -> ContentItem:
    item = get_content(db, content_id)
    if not item:
        raise HTTPException(status_code=404, detail="Content not found")
    return item


def _split_list(raw: Optional[str]) -> list[str]:
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


def _parse_blocks(raw: Optional[str]) -> Optional[list]:
    raw = (raw or "").strip()
    if not raw:
        return None
    parsed = json.loads(raw)
    if not isinstance(parsed, list):
        raise ValueError("Blocks must be a JSON array.")
    return parsed


def _fields_from_form(form) -> Dict[str, Any]:
    """
    Raw form -> payload dict. Empty text inputs become None; blocks JSON is parsed
    here so syntax errors surface before schema validation.
    """
    data: Dict[str, Any] = {}
    for key in TEXT_FIELDS:
        value = (form.get(key) or "").strip()
        data[key] = value or None
    for key in LIST_FIELDS:
        data[key] = _split_list(form.get(key))
    data["show_in_navigation"] = form.get("show_in_navigation") in ("on", "true", "1")
    try:
        data["navigation_order"] = int(form.get("navigation_order") or 0)
    except ValueError:
        raise ValueError("Navigation order must be a whole number.")
    try:
        data["content_blocks"] = _parse_blocks(form.get("content_blocks"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid blocks JSON: {e}")
    return data


def _error_text(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
        return "; ".join(parts)
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    return str(exc)


def _form_context(user: AdminUser, item: Optional[ContentItem], form: Optional[dict] = None, **extra) -> dict:
    if form is None:
        form = {}
        if item is not None:
            for key in TEXT_FIELDS:
                form[key] = getattr(item, key) or ""
            for key in LIST_FIELDS:
                form[key] = ", ".join(getattr(item, key) or [])
            form["show_in_navigation"] = bool(item.show_in_navigation)
            form["navigation_order"] = item.navigation_order or 0
            form["content_blocks"] = (
                json.dumps(item.content_blocks, ensure_ascii=False, indent=2) if item.content_blocks else ""
            )
        else:
            form = {"content_type": "static_page", "status": "draft", "navigation_order": 0}
    ctx = {
        "user": user,
        "item": item,
        "form": form,
        "content_types": CONTENT_TYPES,
        "statuses": CONTENT_STATUSES,
        "navigation_groups": NAVIGATION_GROUPS,
        "block_types": BLOCK_TYPES,
        "public_path": content_path(item.content_type, item.slug) if item is not None else None,
        "error": None,
        "ok_message": None,
        "preview_link": None,
    }
    ctx.update(extra)
    return ctx


def _echo_form(form) -> dict:
    echo = {key: form.get(key) or "" for key in TEXT_FIELDS + LIST_FIELDS}
    echo["content_blocks"] = form.get("content_blocks") or ""
    echo["show_in_navigation"] = form.get("show_in_navigation") in ("on", "true", "1")
    echo["navigation_order"] = form.get("navigation_order") or 0
    return echo


# --------------------------- Dashboard / list ---------------------------
@router.get("/admin")
def admin_dashboard(
    request: Request,
    content_type: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    items, total = list_content(
        db,
        content_type=content_type if content_type in CONTENT_TYPES else None,
        status=status if status in CONTENT_STATUSES else None,
        q=q or None,
        limit=LIST_PAGE_SIZE,
    )
    return templates.TemplateResponse(
        request,
        "admin/list.html",
        {
            "user": user,
            "items": items,
            "total": total,
            "filters": {"content_type": content_type or "", "status": status or "", "q": q or ""},
            "content_types": CONTENT_TYPES,
            "statuses": CONTENT_STATUSES,
            "content_path": content_path,
        },
    )


# --------------------------- Create ---------------------------
@router.get("/admin/content/new")
def content_new_get(request: Request, db: Session = Depends(get_db)):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)
    return templates.TemplateResponse(request, "admin/edit.html", _form_context(user, None))


@router.post("/admin/content/new")
async def content_new_post(request: Request, background: BackgroundTasks, db: Session = Depends(get_db)):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    form = await request.form()
    try:
        fields = _fields_from_form(form)
        enforce_blocks_size(fields["content_blocks"])
        payload = ContentCreate(**fields)
        item, published = create_content(db, payload)
    except (ValueError, HTTPException) as e:
        db.rollback()
        ctx = _form_context(user, None, form=_echo_form(form), error=_error_text(e))
        return templates.TemplateResponse(request, "admin/edit.html", ctx, status_code=400)

    audit_content(db, item=item, action=AuditAction.CONTENT_CREATE, actor=user, request=request,
                  details={"status": item.status, "via": "web"})
    if published:
        audit_content(db, item=item, action=AuditAction.CONTENT_PUBLISH, actor=user, request=request)
    db.commit()
    if published:
        background.add_task(submit_content, item.content_type, item.slug)
    return RedirectResponse(url=f"/admin/content/{item.id}?saved=1", status_code=303)


# --------------------------- Edit ---------------------------
@router.get("/admin/content/{content_id}")
def content_edit_get(
    content_id: int,
    request: Request,
    saved: bool = Query(False),
    preview_token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    item = _load_item_or_404(db, content_id)
    ctx = _form_context(
        user,
        item,
        ok_message="Saved." if saved else None,
        preview_link=preview_url(preview_token) if preview_token else None,
    )
    return templates.TemplateResponse(request, "admin/edit.html", ctx)


@router.post("/admin/content/{content_id}")
async def content_edit_post(
    content_id: int,
    request: Request,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    item = _load_item_or_404(db, content_id)
    form = await request.form()
    try:
        fields = _fields_from_form(form)
        if not fields["slug"]:
            fields.pop("slug")  # keep the current slug
        enforce_blocks_size(fields["content_blocks"])
        payload = ContentUpdate(**fields)
        item, changes, published = update_content(db, item, payload)
    except (ValueError, HTTPException) as e:
        db.rollback()
        ctx = _form_context(user, item, form=_echo_form(form), error=_error_text(e))
        return templates.TemplateResponse(request, "admin/edit.html", ctx, status_code=400)

    if changes:
        details: Dict[str, Any] = {"changed_keys": sorted(changes), "via": "web"}
        if "status" in changes:
            details["status"] = changes["status"]
        audit_content(db, item=item, action=AuditAction.CONTENT_UPDATE, actor=user, request=request, details=details)
    if published:
        audit_content(db, item=item, action=AuditAction.CONTENT_PUBLISH, actor=user, request=request)
    elif changes.get("status", {}).get("before") == "published":
        audit_content(db, item=item, action=AuditAction.CONTENT_UNPUBLISH, actor=user, request=request)
    db.commit()
    if published:
        background.add_task(submit_content, item.content_type, item.slug)
    return RedirectResponse(url=f"/admin/content/{item.id}?saved=1", status_code=303)


@router.post("/admin/content/{content_id}/delete")
def content_delete_post(content_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    item = _load_item_or_404(db, content_id)
    audit_content(db, item=item, action=AuditAction.CONTENT_DELETE, actor=user, request=request,
                  details={"via": "web"})
    delete_content(db, item)
    db.commit()
    return RedirectResponse(url="/admin", status_code=303)


@router.post("/admin/content/{content_id}/preview-link")
def content_preview_link_post(content_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    item = _load_item_or_404(db, content_id)
    tok = issue_token(db, item)
    token = tok.token
    db.commit()
    return RedirectResponse(url=f"/admin/content/{item.id}?preview_token={token}", status_code=303)


# --------------------------- Personalization tester ---------------------------
@router.get("/admin/personalization")
def personalization_get(request: Request, db: Session = Depends(get_db)):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    return templates.TemplateResponse(
        request,
        "admin/personalization.html",
        {
            "user": user,
            "state": read_state(request.cookies),
            "stats": personalization_stats(db),
            "industries": KNOWN_INDUSTRIES,
        },
    )


@router.post("/admin/personalization/set")
def personalization_set_post(
    request: Request,
    industry: str = Form(""),
    tool: str = Form(""),
    goal: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    resp = RedirectResponse(url="/admin/personalization", status_code=303)
    values = {"industry": industry, "tool": tool, "goal": goal}
    for field in PERSONALIZATION_FIELDS:
        value = (values.get(field) or "").strip()
        if value:
            set_field(resp, field, value)
    return resp


@router.post("/admin/personalization/clear")
def personalization_clear_post(
    request: Request,
    scope: str = Form("all"),
    db: Session = Depends(get_db),
):
    try:
        _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    resp = RedirectResponse(url="/admin/personalization", status_code=303)
    fields = ("industry",) if scope == "industry" else PERSONALIZATION_FIELDS
    for field in fields:
        clear_field(resp, field)
    return resp


# --------------------------- Tags ---------------------------
def _tag_fields(name: str, category: str, description: str, color: str) -> Dict[str, Any]:
    return {
        "name": name,
        "category": category.strip() or None,
        "description": description.strip() or None,
        "color": color.strip() or None,
    }


def _render_tags(request: Request, db: Session, user: AdminUser, category: str = "",
                 error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "admin/tags.html",
        {
            "user": user,
            "tags": list_tags(db, category if category in TAG_CATEGORIES else None),
            "categories": TAG_CATEGORIES,
            "category": category,
            "error": error,
        },
        status_code=status_code,
    )


@router.get("/admin/tags")
def tags_get(request: Request, category: str = Query(""), db: Session = Depends(get_db)):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)
    return _render_tags(request, db, user, category)


@router.post("/admin/tags")
def tags_create_post(
    request: Request,
    name: str = Form(""),
    category: str = Form(""),
    description: str = Form(""),
    color: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    try:
        create_tag(db, TagCreate(**_tag_fields(name, category, description, color)))
    except ValueError as e:
        db.rollback()
        return _render_tags(request, db, user, error=_error_text(e), status_code=400)
    db.commit()
    return RedirectResponse(url="/admin/tags", status_code=303)


@router.post("/admin/tags/{tag_id}")
def tags_update_post(
    tag_id: int,
    request: Request,
    name: str = Form(""),
    category: str = Form(""),
    description: str = Form(""),
    color: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        user = _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    tag = get_tag(db, tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    try:
        update_tag(db, tag, TagUpdate(**_tag_fields(name, category, description, color)))
    except ValueError as e:
        db.rollback()
        return _render_tags(request, db, user, error=_error_text(e), status_code=400)
    db.commit()
    return RedirectResponse(url="/admin/tags", status_code=303)


@router.post("/admin/tags/{tag_id}/delete")
def tags_delete_post(tag_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        _require_web_user(request, db)
    except _LoginRequired:
        return _login_redirect(request)

    tag = get_tag(db, tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    delete_tag(db, tag)
    db.commit()
    return RedirectResponse(url="/admin/tags", status_code=303)
