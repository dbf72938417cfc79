# blockcms/core/settings.py
from __future__ import annotations

import json
from typing import List, Union
from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ============== App / API ==============
    APP_NAME: str = "Block CMS"
    API_V1_STR: str = "/api/v1"
    ENV: str = "dev"
    DEBUG: bool = True

    # ================= Site =================
    SITE_URL: str = "http://localhost:8000"
    SITE_NAME: str = "Block CMS"
    ARTICLE_DEFAULT_AUTHOR: str = "Organization Team"

    @property
    def SITE_BASE(self) -> str:
        return (self.SITE_URL or "").rstrip("/")

    # ============== Auth / JWT =============
    JWT_SECRET_KEY: str = "dev-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60)
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # ================== DB ==================
    DATABASE_URL: str

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        """
        Normalize Postgres URLs to the psycopg2 driver:
          postgres://...            -> postgresql+psycopg2://...
          postgresql://...          -> postgresql+psycopg2://...
          postgresql+psycopg://...  -> postgresql+psycopg2://...
        Any other URL (e.g. sqlite) is returned untouched.
        """
        url = self.DATABASE_URL or ""
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+psycopg2://", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+psycopg2://", 1)
        if url.startswith("postgresql+psycopg://"):
            return url.replace("postgresql+psycopg://", "postgresql+psycopg2://", 1)
        return url

    # ================= CORS =================
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v):
        """
        Accepts:
        - a JSON list: '["https://a","http://b"]'
        - brackets without quotes: [https://a,http://b]
        - plain CSV: 'https://a,http://b'
        - empty / None -> []
        """
        if v in (None, "", [], ()):
            return []
        if isinstance(v, (list, tuple)):
            return list(v)

        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("[") and s.endswith("]"):
                try:
                    parsed = json.loads(s)
                    if isinstance(parsed, list):
                        return parsed
                except ValueError:
                    inner = s[1:-1].strip()
                    if not inner:
                        return []
                    return [item.strip().strip('"').strip("'") for item in inner.split(",") if item.strip()]
            return [item.strip() for item in s.split(",") if item.strip()]

        return v

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return [str(x) for x in (self.BACKEND_CORS_ORIGINS or [])]

    # ========= Personalization cookies =========
    PERSONALIZATION_COOKIE_PREFIX: str = "persx_"
    PERSONALIZATION_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 7  # 7 days

    # ========= Preview tokens =========
    PREVIEW_TOKEN_TTL_HOURS: int = 24

    # ====== Payload size ======
    MAX_CONTENT_BLOCKS_KB: int = 512

    # ====== Rate limit ======
    RATELIMIT_ENABLED: bool = True
    RATELIMIT_REDIS_URL: str | None = None
    RATELIMIT_SWEEP_SECONDS: int = 300

    # ====== Reverse proxy ======
    # Comma-separated IPs/CIDRs whose X-Forwarded-* headers are honoured; "*" trusts everyone
    FORWARDED_ALLOW_IPS: str = "127.0.0.1"

    # ====== Search indexing (IndexNow) ======
    INDEXNOW_ENABLED: bool = False
    INDEXNOW_KEY: str | None = None
    INDEXNOW_ENDPOINT: str = "https://api.indexnow.org/indexnow"
    INDEXNOW_TIMEOUT_SECONDS: float = 5.0

    # ====== Email (HTTP API) ======
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str | None = None
    EMAIL_FROM: str = "Block CMS <noreply@example.com>"
    CONTACT_EMAIL_TO: str = "hello@example.com"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # ====== Newsletter (ConvertKit) ======
    CONVERTKIT_BASE_URL: str = "https://api.convertkit.com/v3"
    CONVERTKIT_API_KEY: str | None = None
    CONVERTKIT_NEWSLETTER_FORM_ID: str | None = None

    # ======== Web session cookie (admin UI) ========
    SESSION_COOKIE_NAME: str = "blockcms_session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: str = "lax"

    # ============== Pydantic v2 ==============
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
