# blockcms/api/v1/auth.py
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from blockcms.db.session import get_db
from blockcms.deps.auth import get_current_admin
from blockcms.models.audit import AuditAction
from blockcms.models.auth import AdminUser
from blockcms.schemas.forms import LoginIn, TokenOut
from blockcms.security.jwt import create_access_token
from blockcms.services.audit_service import log_action
from blockcms.services.auth_service import authenticate

router = APIRouter(tags=["auth"])  # prefix set in api/v1/router.py


class MeOut(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    log_action(db, action=AuditAction.ADMIN_LOGIN, actor=user, resource_type="admin",
               resource_id=user.id, details={"via": "api"}, request=request)
    db.commit()
    return TokenOut(access_token=create_access_token(user.id, {"email": user.email}))


@router.get("/me", response_model=MeOut)
def me(admin: AdminUser = Depends(get_current_admin)):
    return MeOut(id=admin.id, email=admin.email, full_name=admin.full_name)
