# tests/conftest.py
from __future__ import annotations

import os

# Must be set before blockcms.core.settings is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["RATELIMIT_ENABLED"] = "false"
os.environ["INDEXNOW_ENABLED"] = "false"
os.environ["SITE_URL"] = "https://www.acme-testing.io"
os.environ["SITE_NAME"] = "Acme Testing"

from typing import Any, Callable, Dict  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from blockcms.db.base import Base  # noqa: E402
from blockcms.db.session import SessionLocal, engine, get_db  # noqa: E402
from blockcms.main import app  # noqa: E402
from blockcms.models.auth import AdminUser  # noqa: E402
from blockcms.models.content import ContentItem  # noqa: E402
from blockcms.schemas.content import ContentCreate  # noqa: E402
from blockcms.security.jwt import create_access_token  # noqa: E402
from blockcms.services.auth_service import create_admin  # noqa: E402
from blockcms.services.content_service import create_content  # noqa: E402
from helpers import ADMIN_EMAIL, ADMIN_PASSWORD  # noqa: E402

Base.metadata.create_all(bind=engine)


@pytest.fixture()
def db() -> Session:
    """
    One session per test. Endpoints commit, so instead of rolling back a
    wrapping transaction every table is emptied afterwards.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture(autouse=True)
def _override_get_db(db: Session):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def client() -> TestClient:
    # fresh cookie jar per test
    return TestClient(app)


@pytest.fixture()
def admin(db: Session) -> AdminUser:
    user = create_admin(db, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, full_name="Edith Editor")
    db.commit()
    return user


@pytest.fixture()
def auth_headers(admin: AdminUser) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin.id)}"}


@pytest.fixture()
def make_content(db: Session) -> Callable[..., ContentItem]:
    def _make(**fields: Any) -> ContentItem:
        fields.setdefault("title", "Untitled")
        fields.setdefault("content_type", "static_page")
        item, _ = create_content(db, ContentCreate(**fields))
        db.commit()
        db.refresh(item)
        return item

    return _make

