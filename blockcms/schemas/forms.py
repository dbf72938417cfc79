# blockcms/schemas/forms.py
# Public forms (contact, newsletter) and admin auth payloads
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class ContactIn(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)
    industry: Optional[str] = Field(None, max_length=100)

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message is required")
        return v


class NewsletterIn(BaseModel):
    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)


class MessageOut(BaseModel):
    success: bool = True
    message: str


# ---------- Admin auth ----------
class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PasswordResetRequestIn(BaseModel):
    email: EmailStr


def check_password_policy(v: str) -> str:
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(v) > 100:
        raise ValueError("Password must be at most 100 characters")
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain an uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain a lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain a number")
    return v


class PasswordResetConfirmIn(BaseModel):
    token: str = Field(..., min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def _policy(cls, v: str) -> str:
        return check_password_policy(v)
