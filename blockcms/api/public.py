# blockcms/api/public.py
# Public JSON endpoints: contact form, newsletter, navigation, password reset
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.deps.origin import require_trusted_origin
from blockcms.models.audit import AuditAction
from blockcms.schemas.content import NavigationOut
from blockcms.schemas.forms import (
    ContactIn,
    MessageOut,
    NewsletterIn,
    PasswordResetConfirmIn,
    PasswordResetRequestIn,
)
from blockcms.services import email_service, newsletter_service
from blockcms.services.audit_service import log_action
from blockcms.services.auth_service import (
    ResetTokenError,
    deliver_reset_email,
    reset_password_with_token,
    start_password_reset,
)
from blockcms.services.page_service import navigation
from blockcms.web.session_state import read_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["public"])

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a password reset link has been sent."


# ---------- Contact ----------
@router.post("/contact", response_model=MessageOut, dependencies=[Depends(require_trusted_origin)])
def contact(payload: ContactIn, request: Request):
    industry = payload.industry or read_state(request.cookies).industry
    try:
        email_service.send_contact_email(
            name=payload.name,
            email=payload.email,
            message=payload.message,
            industry=industry,
        )
    except email_service.EmailDeliveryError as e:
        logger.error("Contact form email failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to send message. Please try again later.")
    return MessageOut(message="Thanks for reaching out! We'll get back to you soon.")


# ---------- Newsletter ----------
@router.post("/newsletter/subscribe", response_model=MessageOut)
def newsletter_subscribe(payload: NewsletterIn):
    result = newsletter_service.subscribe(payload.email, payload.first_name)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return MessageOut(message=result.message)


# ---------- Navigation ----------
@router.get("/navigation", response_model=NavigationOut)
def get_navigation(db: Session = Depends(get_db)):
    return NavigationOut(**navigation(db))


# ---------- Password reset ----------
@router.post("/auth/reset-password", response_model=MessageOut)
def request_password_reset(payload: PasswordResetRequestIn, db: Session = Depends(get_db)):
    """
    Always answers the same way: neither unknown emails nor email-delivery
    failures are observable by the caller.
    """
    started = start_password_reset(db, payload.email)
    if started:
        db.commit()
        deliver_reset_email(*started)
    return MessageOut(message=RESET_REQUESTED_MESSAGE)


@router.post("/auth/reset-password/confirm", response_model=MessageOut)
def confirm_password_reset(payload: PasswordResetConfirmIn, request: Request, db: Session = Depends(get_db)):
    try:
        user = reset_password_with_token(db, payload.token, payload.password)
    except ResetTokenError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action(db, action=AuditAction.PASSWORD_RESET, actor=user, resource_type="admin",
               resource_id=user.id, request=request)
    db.commit()
    return MessageOut(message="Password updated. You can now sign in.")
