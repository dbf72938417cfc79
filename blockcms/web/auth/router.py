# blockcms/web/auth/router.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from blockcms.api.public import RESET_REQUESTED_MESSAGE
from blockcms.db.session import get_db
from blockcms.deps.auth import SESSION_ADMIN_KEY, session_admin
from blockcms.models.audit import AuditAction
from blockcms.schemas.forms import check_password_policy
from blockcms.services.audit_service import log_action
from blockcms.services.auth_service import (
    ResetTokenError,
    authenticate,
    deliver_reset_email,
    reset_password_with_token,
    start_password_reset,
)
from blockcms.web.templating import templates

router = APIRouter(include_in_schema=False)


def _safe_next(target: str | None) -> str:
    # only relative paths; browsers drop tabs/newlines and read "\" as "/",
    # so "/\host" and "/\t/host" are "//host" and would leave the site
    if not target:
        return "/admin"
    normalized = "".join(ch for ch in target if ch > " ").replace("\\", "/")
    if not normalized.startswith("/") or normalized.startswith("//"):
        return "/admin"
    return normalized


@router.get("/admin/login")
def login_get(request: Request, next: str | None = Query(default=None), db: Session = Depends(get_db)):
    if session_admin(request, db):
        return RedirectResponse(url=_safe_next(next), status_code=302)
    return templates.TemplateResponse(request, "auth/login.html", {"next": next or ""})


@router.post("/admin/login")
def login_post(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: str | None = Form(default=None),
    db: Session = Depends(get_db),
):
    user = authenticate(db, email, password)
    if not user:
        ctx = {"error": "Invalid credentials or inactive user.", "next": next or ""}
        return templates.TemplateResponse(request, "auth/login.html", ctx, status_code=401)

    # compact web-session user
    request.session[SESSION_ADMIN_KEY] = {
        "id": int(user.id),
        "email": user.email,
        "full_name": user.full_name or "",
    }
    log_action(db, action=AuditAction.ADMIN_LOGIN, actor=user, resource_type="admin",
               resource_id=user.id, details={"via": "web"}, request=request)
    db.commit()
    return RedirectResponse(url=_safe_next(next), status_code=302)


def _logout(request: Request, db: Session) -> RedirectResponse:
    user = session_admin(request, db)
    if user:
        log_action(db, action=AuditAction.ADMIN_LOGOUT, actor=user, resource_type="admin",
                   resource_id=user.id, request=request)
        db.commit()
    request.session.clear()
    return RedirectResponse(url="/admin/login", status_code=302)


@router.post("/admin/logout")
def logout_post(request: Request, db: Session = Depends(get_db)):
    return _logout(request, db)


@router.get("/admin/logout")
def logout_get(request: Request, db: Session = Depends(get_db)):
    return _logout(request, db)


# ---------- Password reset ----------
@router.get("/admin/forgot")
def forgot_get(request: Request):
    return templates.TemplateResponse(request, "auth/forgot.html", {})


@router.post("/admin/forgot")
def forgot_post(request: Request, email: str = Form(...), db: Session = Depends(get_db)):
    started = start_password_reset(db, email)
    if started:
        db.commit()
        deliver_reset_email(*started)
    return templates.TemplateResponse(request, "auth/forgot.html", {"message": RESET_REQUESTED_MESSAGE})


@router.get("/admin/reset")
def reset_get(request: Request, token: str = Query(default="")):
    return templates.TemplateResponse(request, "auth/reset.html", {"token": token})


@router.post("/admin/reset")
def reset_post(
    request: Request,
    token: str = Form(...),
    password: str = Form(...),
    confirm: str = Form(...),
    db: Session = Depends(get_db),
):
    error = None
    if password != confirm:
        error = "Passwords do not match."
    else:
        try:
            check_password_policy(password)
        except ValueError as e:
            error = str(e)

    if error is None:
        try:
            user = reset_password_with_token(db, token, password)
        except ResetTokenError as e:
            error = str(e)
        else:
            log_action(db, action=AuditAction.PASSWORD_RESET, actor=user, resource_type="admin",
                       resource_id=user.id, details={"via": "web"}, request=request)
            db.commit()
            return RedirectResponse(url="/admin/login?reset=1", status_code=302)

    return templates.TemplateResponse(
        request, "auth/reset.html", {"token": token, "error": error}, status_code=400
    )
