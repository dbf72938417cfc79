# blockcms/web/session_state.py
"""
Visitor personalization state carried in three cookies
(``persx_industry``, ``persx_tool``, ``persx_goal``).

Reading is pure. Writing only happens through ``set_field``/``clear_field``;
who may call them is decided by the routers (visitors may set only
``industry``, admins may set or clear everything).
"""
from __future__ import annotations

from typing import Mapping, Optional

from fastapi import Request
from starlette.responses import Response

from blockcms.core.settings import settings
from blockcms.schemas.personalization import PERSONALIZATION_FIELDS, PersonalizationState


def cookie_name(field: str) -> str:
    if field not in PERSONALIZATION_FIELDS:
        raise ValueError(f"Unknown personalization field: {field}")
    return f"{settings.PERSONALIZATION_COOKIE_PREFIX}{field}"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def read_state(cookies: Mapping[str, str]) -> PersonalizationState:
    return PersonalizationState(
        **{f: _clean(cookies.get(cookie_name(f))) for f in PERSONALIZATION_FIELDS}
    )


def get_personalization_state(request: Request) -> PersonalizationState:
    """FastAPI dependency."""
    return read_state(request.cookies)


def set_field(response: Response, field: str, value: str) -> None:
    response.set_cookie(
        key=cookie_name(field),
        value=value,
        max_age=settings.PERSONALIZATION_COOKIE_MAX_AGE,
        path="/",
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=False,
    )


def clear_field(response: Response, field: str) -> None:
    response.delete_cookie(key=cookie_name(field), path="/", samesite="lax")
