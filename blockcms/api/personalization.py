# blockcms/api/personalization.py
# Cookie personalization: visitors may only pick an industry; everything else is admin-only.
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.deps.auth import get_current_admin
from blockcms.models.auth import AdminUser
from blockcms.schemas.personalization import (
    PERSONALIZATION_FIELDS,
    ActionResult,
    ClearIn,
    IndustryIn,
    OverrideIn,
    PersonalizationStats,
    StateOut,
)
from blockcms.services.personalization_service import personalization_stats
from blockcms.web.session_state import clear_field, read_state, set_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/personalization", tags=["personalization"])


# ---------- Public ----------
@router.get("/state", response_model=StateOut)
def get_state(request: Request):
    return StateOut(data=read_state(request.cookies))


@router.post("/industry", response_model=ActionResult)
def set_industry(payload: IndustryIn, response: Response):
    if not payload.industry:
        raise HTTPException(status_code=400, detail="Industry is required")
    set_field(response, "industry", payload.industry)
    return ActionResult(success=True, message=f"Industry set to {payload.industry}")


# ---------- Admin ----------
@router.post("/test-set", response_model=ActionResult)
def override_state(
    response: Response,
    payload: Optional[OverrideIn] = None,
    admin: AdminUser = Depends(get_current_admin),
):
    payload = payload or OverrideIn()
    applied = {}
    for field in PERSONALIZATION_FIELDS:
        value = getattr(payload, field)
        if value:
            set_field(response, field, value)
            applied[field] = value
    if not applied:
        raise HTTPException(status_code=400, detail="Nothing to set")
    logger.info("Admin %s set personalization cookies %s", admin.email, applied)
    summary = ", ".join(f"{k}={v}" for k, v in applied.items())
    return ActionResult(success=True, message=f"Personalization set: {summary}")


@router.post("/clear", response_model=ActionResult)
def clear_state(
    request: Request,
    response: Response,
    payload: Optional[ClearIn] = None,
    admin: AdminUser = Depends(get_current_admin),
):
    scope = (payload or ClearIn()).scope
    state = read_state(request.cookies)

    if scope == "industry":
        if not state.industry:
            return ActionResult(success=True, message="Nothing to clear.")
        clear_field(response, "industry")
        return ActionResult(success=True, message="Industry cleared. Showing default content.")

    if state.is_empty():
        return ActionResult(success=True, message="Nothing to clear.")
    for field in PERSONALIZATION_FIELDS:
        clear_field(response, field)
    return ActionResult(success=True, message="Personalization cleared. Showing default content.")


@router.get("/stats", response_model=PersonalizationStats)
def get_stats(
    db: Session = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
):
    return personalization_stats(db)
