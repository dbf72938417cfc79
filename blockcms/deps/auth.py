# blockcms/deps/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.models.auth import AdminUser
from blockcms.security.jwt import decode_token

# Web-session key written by the admin login form
SESSION_ADMIN_KEY = "admin"

# Reusable HTTP bearer scheme (non-fatal if header is missing)
_bearer = HTTPBearer(auto_error=False)


# -----------------------------
# Helpers
# -----------------------------
def _load_active_admin(db: Session, sub) -> Optional[AdminUser]:
    try:
        uid = int(sub)
    except (TypeError, ValueError):
        return None
    user = db.get(AdminUser, uid)
    if not user or not user.is_active:
        return None
    return user


def _admin_from_bearer(db: Session, token: str) -> AdminUser:
    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = _load_active_admin(db, payload.get("sub"))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


def session_admin(request: Request, db: Session) -> Optional[AdminUser]:
    """Admin stored in the signed session cookie, if any (and still active)."""
    data = (request.session or {}).get(SESSION_ADMIN_KEY) if "session" in request.scope else None
    if not data:
        return None
    return _load_active_admin(db, data.get("id"))


# -----------------------------
# Public dependencies
# -----------------------------
def get_current_admin(
    request: Request,
    db: Session = Depends(get_db),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> AdminUser:
    """Bearer token first (API clients), then the admin web session (editor UI)."""
    if creds and creds.credentials:
        return _admin_from_bearer(db, creds.credentials)
    user = session_admin(request, db)
    if user:
        return user
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")


def get_current_admin_optional(
    request: Request,
    db: Session = Depends(get_db),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[AdminUser]:
    try:
        return get_current_admin(request, db, creds)
    except HTTPException:
        return None
