# =============================================================================
# Tag Endpoints (public list, admin CRUD)
# blockcms/api/v1/endpoints/tags.py
# =============================================================================
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.deps.auth import get_current_admin
from blockcms.models.tag import Tag
from blockcms.schemas.tags import TagCreate, TagListOut, TagOut, TagUpdate
from blockcms.services.tag_service import (
    DuplicateTagError,
    create_tag,
    delete_tag,
    get_tag,
    list_tags,
    update_tag,
)

router = APIRouter()
admin_only = [Depends(get_current_admin)]


def _get_tag_or_404(db: Session, tag_id: int) -> Tag:
    tag = get_tag(db, tag_id)
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    return tag


@router.get("", response_model=TagListOut)
def list_items(
    category: Optional[str] = Query(None, max_length=32),
    db: Session = Depends(get_db),
):
    return TagListOut(tags=[TagOut.model_validate(t) for t in list_tags(db, category)])


@router.post("", response_model=TagOut, status_code=201, dependencies=admin_only)
def create_item(payload: TagCreate, db: Session = Depends(get_db)):
    try:
        tag = create_tag(db, payload)
    except DuplicateTagError as e:
        raise HTTPException(status_code=409, detail=str(e))
    db.commit()
    db.refresh(tag)
    return tag


@router.put("/{tag_id}", response_model=TagOut, dependencies=admin_only)
@router.patch("/{tag_id}", response_model=TagOut, dependencies=admin_only)
def update_item(tag_id: int, payload: TagUpdate, db: Session = Depends(get_db)):
    tag = _get_tag_or_404(db, tag_id)
    try:
        tag = update_tag(db, tag, payload)
    except DuplicateTagError as e:
        raise HTTPException(status_code=409, detail=str(e))
    db.commit()
    db.refresh(tag)
    return tag


@router.delete("/{tag_id}", status_code=204, dependencies=admin_only)
def delete_item(tag_id: int, db: Session = Depends(get_db)):
    delete_tag(db, _get_tag_or_404(db, tag_id))
    db.commit()
    return Response(status_code=204)
