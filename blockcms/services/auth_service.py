# blockcms/services/auth_service.py
# Admin credentials and password-reset tokens
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from blockcms.core.settings import settings
from blockcms.models.auth import AdminUser, PasswordResetToken
from blockcms.services import email_service
from blockcms.services.passwords import hash_password, verify_password
from blockcms.services.publish_service import to_utc
from blockcms.utils.urls import absolute_url

logger = logging.getLogger(__name__)


class ResetTokenError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_admin_by_email(db: Session, email: str) -> Optional[AdminUser]:
    return db.scalar(select(AdminUser).where(AdminUser.email == normalize_email(email)))


def authenticate(db: Session, email: str, password: str) -> Optional[AdminUser]:
    user = get_admin_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password or "", user.hashed_password or ""):
        return None
    return user


def create_admin(db: Session, *, email: str, password: str, full_name: Optional[str] = None) -> AdminUser:
    if get_admin_by_email(db, email):
        raise ValueError(f"Admin {email} already exists")
    user = AdminUser(
        email=normalize_email(email),
        hashed_password=hash_password(password),
        full_name=full_name,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


# ---------- Password reset ----------
def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_reset_token(db: Session, user: AdminUser) -> str:
    """Invalidates outstanding tokens for ``user`` and returns a new raw token."""
    db.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.user_id == user.id, PasswordResetToken.used_at.is_(None))
        .values(used_at=_now())
    )
    raw = secrets.token_urlsafe(32)
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=_hash_token(raw),
            expires_at=_now() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        )
    )
    db.flush()
    return raw


def start_password_reset(db: Session, email: str) -> Optional[tuple[AdminUser, str]]:
    """(user, raw token) for an active admin, None otherwise. Caller commits, then delivers."""
    user = get_admin_by_email(db, email)
    if not user or not user.is_active:
        return None
    return user, create_reset_token(db, user)


def deliver_reset_email(user: AdminUser, raw_token: str) -> bool:
    """
    Email failures are logged and swallowed so the reset endpoint answers the
    same for delivered, undelivered and unknown addresses.
    """
    try:
        email_service.send_password_reset_email(
            to=user.email, reset_url=absolute_url(f"/admin/reset?token={raw_token}")
        )
    except email_service.EmailDeliveryError as e:
        logger.warning("Password reset email to admin %s failed: %s", user.id, e)
        return False
    return True


def reset_password_with_token(db: Session, token: str, new_password: str) -> AdminUser:
    row = db.scalar(select(PasswordResetToken).where(PasswordResetToken.token_hash == _hash_token(token)))
    if row is None or row.used_at is not None:
        raise ResetTokenError("Invalid or already used reset token")
    if to_utc(row.expires_at) <= _now():
        raise ResetTokenError("Reset token has expired")

    user = db.get(AdminUser, row.user_id)
    if user is None or not user.is_active:
        raise ResetTokenError("Invalid reset token")

    user.hashed_password = hash_password(new_password)
    row.used_at = _now()
    db.flush()
    logger.info("Password reset for admin %s", user.id)
    return user
