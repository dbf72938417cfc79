# =============================================================================
# Content Endpoints (CRUD, status transitions, preview tokens)
# blockcms/api/v1/endpoints/content.py
# =============================================================================
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.deps.auth import get_current_admin
from blockcms.models.audit import AuditAction
from blockcms.models.auth import AdminUser
from blockcms.models.content import ContentItem
from blockcms.schemas.content import (
    ContentCreate,
    ContentListOut,
    ContentOut,
    ContentStatusName,
    ContentTypeName,
    ContentUpdate,
    PreviewTokenOut,
)
from blockcms.services.audit_service import audit_content
from blockcms.services.content_service import (
    ContentValidationError,
    SlugConflictError,
    create_content,
    delete_content,
    get_content,
    list_content,
    update_content,
)
from blockcms.services.indexnow_service import submit_content
from blockcms.services.preview_service import issue_token, preview_url, revoke_token
from blockcms.services.publish_service import transition_status
from blockcms.utils.payload_guard import enforce_blocks_size

router = APIRouter(dependencies=[Depends(get_current_admin)])


def _get_content_or_404(db: Session, content_id: int) -> ContentItem:
    item = get_content(db, content_id)
    if not item:
        raise HTTPException(status_code=404, detail="Content not found")
    return item


def _schedule_indexing(background: BackgroundTasks, item: ContentItem) -> None:
    background.add_task(submit_content, item.content_type, item.slug)


# ---------- Collection ----------
@router.get("", response_model=ContentListOut)
def list_items(
    content_type: Optional[ContentTypeName] = Query(None),
    status: Optional[ContentStatusName] = Query(None),
    q: Optional[str] = Query(None, max_length=200),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    items, total = list_content(db, content_type=content_type, status=status, q=q, limit=limit, offset=offset)
    return ContentListOut(
        items=[ContentOut.model_validate(i) for i in items], total=total, limit=limit, offset=offset
    )


@router.post("", response_model=ContentOut, status_code=201)
def create_item(
    payload: ContentCreate,
    request: Request,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    enforce_blocks_size(payload.content_blocks)
    try:
        item, published = create_content(db, payload)
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ContentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    audit_content(db, item=item, action=AuditAction.CONTENT_CREATE, actor=admin, request=request,
                  details={"status": item.status})
    if published:
        audit_content(db, item=item, action=AuditAction.CONTENT_PUBLISH, actor=admin, request=request)
    db.commit()
    db.refresh(item)

    if published:
        _schedule_indexing(background, item)
    return item


# ---------- Preview token revocation ----------
# Declared before /{content_id} routes so "preview-token" is never parsed as an id.
@router.delete("/preview-token", status_code=204)
def revoke_preview_token(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    if not revoke_token(db, token):
        raise HTTPException(status_code=404, detail="Preview token not found")
    db.commit()
    return Response(status_code=204)


# ---------- Item ----------
@router.get("/{content_id}", response_model=ContentOut)
def get_item(content_id: int, db: Session = Depends(get_db)):
    return _get_content_or_404(db, content_id)


@router.patch("/{content_id}", response_model=ContentOut)
def update_item(
    content_id: int,
    payload: ContentUpdate,
    request: Request,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    item = _get_content_or_404(db, content_id)
    if "content_blocks" in payload.model_fields_set:
        enforce_blocks_size(payload.content_blocks)

    try:
        item, changes, published = update_content(db, item, payload)
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if changes:
        details = {"changed_keys": sorted(changes)}
        if "status" in changes:
            details["status"] = changes["status"]
        audit_content(db, item=item, action=AuditAction.CONTENT_UPDATE, actor=admin, request=request, details=details)
    if published:
        audit_content(db, item=item, action=AuditAction.CONTENT_PUBLISH, actor=admin, request=request)
    elif changes.get("status", {}).get("before") == "published":
        audit_content(db, item=item, action=AuditAction.CONTENT_UNPUBLISH, actor=admin, request=request)
    db.commit()
    db.refresh(item)

    if published:
        _schedule_indexing(background, item)
    return item


@router.delete("/{content_id}", status_code=204)
def delete_item(
    content_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    item = _get_content_or_404(db, content_id)
    audit_content(db, item=item, action=AuditAction.CONTENT_DELETE, actor=admin, request=request)
    delete_content(db, item)
    db.commit()
    return Response(status_code=204)


# ---------- Status transitions ----------
def _transition(db: Session, item: ContentItem, dst: ContentStatusName) -> tuple[str, bool]:
    before = item.status
    try:
        published = transition_status(db, item, dst)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return before, published


@router.post("/{content_id}/publish", response_model=ContentOut)
def publish_item(
    content_id: int,
    request: Request,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    item = _get_content_or_404(db, content_id)
    _, published = _transition(db, item, "published")
    if published:
        audit_content(db, item=item, action=AuditAction.CONTENT_PUBLISH, actor=admin, request=request)
    db.commit()
    db.refresh(item)
    if published:
        _schedule_indexing(background, item)
    return item


@router.post("/{content_id}/unpublish", response_model=ContentOut)
def unpublish_item(
    content_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    item = _get_content_or_404(db, content_id)
    before, _ = _transition(db, item, "draft")
    if before == "published":
        audit_content(db, item=item, action=AuditAction.CONTENT_UNPUBLISH, actor=admin, request=request)
    db.commit()
    db.refresh(item)
    return item


@router.post("/{content_id}/archive", response_model=ContentOut)
def archive_item(
    content_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    item = _get_content_or_404(db, content_id)
    before, _ = _transition(db, item, "archived")
    if before != "archived":
        audit_content(
            db, item=item, action=AuditAction.CONTENT_UPDATE, actor=admin, request=request,
            details={"changed_keys": ["status"], "status": {"before": before, "after": "archived"}},
        )
        if before == "published":
            audit_content(db, item=item, action=AuditAction.CONTENT_UNPUBLISH, actor=admin, request=request)
    db.commit()
    db.refresh(item)
    return item


# ---------- Preview tokens ----------
@router.post("/{content_id}/preview-token", response_model=PreviewTokenOut)
def create_preview_token(content_id: int, db: Session = Depends(get_db)):
    item = _get_content_or_404(db, content_id)
    tok = issue_token(db, item)
    out = PreviewTokenOut(
        token=tok.token,
        preview_url=preview_url(tok.token),
        expires_at=tok.expires_at,
        content_title=item.title,
    )
    db.commit()
    return out
