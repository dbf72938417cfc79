# blockcms/security/jwt.py
# Bearer tokens for the admin JSON API
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt

from blockcms.core.settings import settings

ALGO = settings.JWT_ALGORITHM or "HS256"
SECRET = settings.JWT_SECRET_KEY or "dev-secret"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _exp_ts(minutes: int) -> int:
    return int((_utcnow() + timedelta(minutes=minutes)).timestamp())


def create_access_token(subject: int | str, extra: Dict[str, Any] | None = None) -> str:
    payload: Dict[str, Any] = {
        "sub": str(subject),
        "type": "access",
        "iat": int(_utcnow().timestamp()),
        "exp": _exp_ts(settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, SECRET, algorithm=ALGO)


def decode_token(token: str) -> Dict[str, Any]:
    """Raises jose.JWTError (ExpiredSignatureError for expired tokens); callers turn it into 401."""
    return jwt.decode(
        token,
        SECRET,
        algorithms=[ALGO],
        options={"verify_aud": False, "verify_iss": False},
    )
