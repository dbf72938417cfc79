# tests/test_admin_web.py
from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient
from helpers import ADMIN_EMAIL, ADMIN_PASSWORD, hero_block
from sqlalchemy import select
from sqlalchemy.orm import Session

from blockcms.models.audit import AuditAction, AuditLog
from blockcms.models.content import ContentItem, PreviewToken
from blockcms.web.admin import router as admin_router


@pytest.fixture()
def web(client: TestClient, admin) -> TestClient:
    r = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "next": "/admin"},
        follow_redirects=False,
    )
    assert r.status_code == 302
    return client


def _form(**overrides):
    data = {
        "title": "Landing",
        "slug": "",
        "content_type": "static_page",
        "status": "draft",
        "content_blocks": "",
        "navigation_order": "0",
    }
    data.update(overrides)
    return data


def test_admin_requires_login(client: TestClient):
    r = client.get("/admin", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"].startswith("/admin/login")


def test_login_failure_rerenders_form(client: TestClient, admin):
    r = client.post("/admin/login", data={"email": ADMIN_EMAIL, "password": "nope"})
    assert r.status_code == 401
    assert "Invalid credentials" in r.text


@pytest.mark.parametrize(
    "target",
    ["//evil.example", "/\\evil.example", "\\\\evil.example", "/\t/evil.example", "https://evil.example/admin"],
)
def test_login_rejects_offsite_next(client: TestClient, admin, target):
    r = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "next": target},
        follow_redirects=False,
    )
    assert r.headers["location"] == "/admin"


def test_login_keeps_local_next(client: TestClient, admin):
    r = client.post(
        "/admin/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "next": "/admin/personalization"},
        follow_redirects=False,
    )
    assert r.headers["location"] == "/admin/personalization"


def test_session_also_authorizes_json_api(web: TestClient):
    assert web.get("/api/v1/auth/me").json()["email"] == ADMIN_EMAIL


def test_create_and_edit_through_form(web: TestClient, db: Session):
    blocks = [hero_block(title="From the form")]
    r = web.post(
        "/admin/content/new",
        data=_form(content_blocks=json.dumps(blocks), tags="a, b ,", show_in_navigation="on"),
        follow_redirects=False,
    )
    assert r.status_code == 303
    item = db.scalar(select(ContentItem).where(ContentItem.slug == "landing"))
    assert item.content_blocks == blocks
    assert item.tags == ["a", "b"]
    assert item.show_in_navigation is True

    page = web.get(r.headers["location"])
    assert page.status_code == 200
    assert "From the form" in page.text
    assert "Saved." in page.text

    r = web.post(f"/admin/content/{item.id}", data=_form(title="Landing v2", content_blocks=json.dumps(blocks)),
                 follow_redirects=False)
    assert r.status_code == 303
    db.refresh(item)
    assert item.title == "Landing v2"
    assert item.slug == "landing"  # blank slug keeps the current one
    assert item.tags == []


def test_invalid_json_and_blocks_rerender_with_400(web: TestClient, db: Session):
    r = web.post("/admin/content/new", data=_form(content_blocks="[{not json"))
    assert r.status_code == 400
    assert "Invalid blocks JSON" in r.text
    assert "[{not json" in r.text

    bad = json.dumps([{"id": "x", "type": "hero", "data": {}}])
    r = web.post("/admin/content/new", data=_form(content_blocks=bad))
    assert r.status_code == 400
    assert db.scalars(select(ContentItem)).all() == []


def test_publish_from_form_schedules_indexing(web: TestClient, monkeypatch, db: Session):
    submitted = []

    async def fake_submit(content_type, slug):
        submitted.append((content_type, slug))

    monkeypatch.setattr(admin_router, "submit_content", fake_submit)
    web.post("/admin/content/new", data=_form(title="Launch", content_type="news", status="published"))
    assert submitted == [("news", "launch")]

    actions = db.scalars(select(AuditLog.action).where(AuditLog.resource_type == "content")).all()
    assert AuditAction.CONTENT_PUBLISH in actions


def test_preview_link_and_delete(web: TestClient, make_content, db: Session):
    item = make_content(title="Draft", slug="draft", content="x")
    r = web.post(f"/admin/content/{item.id}/preview-link", follow_redirects=True)
    assert r.status_code == 200
    assert "/preview/" in r.text
    assert db.scalars(select(PreviewToken)).first() is not None

    r = web.post(f"/admin/content/{item.id}/delete", follow_redirects=False)
    assert r.status_code == 303
    db.expire_all()
    assert db.get(ContentItem, item.id) is None


def test_list_filters(web: TestClient, make_content):
    make_content(title="A blog post", slug="a-blog-post", content_type="blog", content="x")
    make_content(title="A page", slug="a-page", content="x")
    r = web.get("/admin", params={"content_type": "blog"})
    assert "A blog post" in r.text
    assert "A page<" not in r.text


def test_personalization_tester(web: TestClient):
    r = web.post("/admin/personalization/set", data={"industry": "Education", "tool": "", "goal": ""},
                 follow_redirects=False)
    assert r.status_code == 303
    assert any(c.startswith("persx_industry=Education") for c in r.headers.get_list("set-cookie"))

    page = web.get("/admin/personalization")
    assert page.status_code == 200
    assert "Education" in page.text

    r = web.post("/admin/personalization/clear", data={"scope": "all"}, follow_redirects=False)
    cleared = [c for c in r.headers.get_list("set-cookie") if c.startswith("persx_")]
    assert len(cleared) == 3


def test_logout_clears_session(web: TestClient, db: Session):
    r = web.post("/admin/logout", follow_redirects=False)
    assert r.status_code == 302
    assert web.get("/admin", follow_redirects=False).status_code == 302
    actions = db.scalars(select(AuditLog.action).order_by(AuditLog.id)).all()
    assert actions == [AuditAction.ADMIN_LOGIN, AuditAction.ADMIN_LOGOUT]


def test_forgot_and_reset_pages(client: TestClient, admin, db: Session):
    r = client.post("/admin/forgot", data={"email": ADMIN_EMAIL})
    assert r.status_code == 200
    assert "If an account exists" in r.text

    r = client.post("/admin/reset", data={"token": "bogus", "password": "N3wPassword", "confirm": "N3wPassword"})
    assert r.status_code == 400
    r = client.post("/admin/reset", data={"token": "bogus", "password": "N3wPassword", "confirm": "different"})
    assert "Passwords do not match" in r.text
