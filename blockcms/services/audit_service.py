# blockcms/services/audit_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from fastapi import Request
from sqlalchemy.orm import Session

from blockcms.models.audit import AuditAction, AuditLog
from blockcms.models.auth import AdminUser
from blockcms.models.content import ContentItem

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    # ProxyHeadersMiddleware has already resolved X-Forwarded-For for trusted proxies
    if request is None or request.client is None:
        return None
    return request.client.host


def log_action(
    db: Session,
    *,
    action: Union[AuditAction, str],
    actor: Optional[AdminUser] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[Union[int, str]] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    if isinstance(action, str):
        action = AuditAction(action.lower())

    log = AuditLog(
        action=action,
        actor_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details or {},
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent") if request else None,
    )
    db.add(log)
    logger.info(
        "audit %s by %s on %s:%s",
        action.value,
        actor.email if actor else "system",
        resource_type or "-",
        resource_id if resource_id is not None else "-",
    )
    return log


def audit_content(
    db: Session,
    *,
    item: ContentItem,
    action: Union[AuditAction, str],
    actor: Optional[AdminUser],
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    base = {"slug": item.slug, "title": item.title, "content_type": item.content_type}
    base.update(details or {})
    return log_action(
        db,
        action=action,
        actor=actor,
        resource_type="content",
        resource_id=item.id,
        details=base,
        request=request,
    )
