# tests/test_preview.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from helpers import hero_block
from sqlalchemy import select
from sqlalchemy.orm import Session

from blockcms.core.settings import settings
from blockcms.models.content import PreviewToken


def _issue(client: TestClient, auth_headers, content_id: int) -> dict:
    r = client.post(f"{settings.API_V1_STR}/content/{content_id}/preview-token", headers=auth_headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_issue_token_shape(client: TestClient, auth_headers, make_content):
    item = make_content(title="Draft page", slug="draft-page", content_blocks=[hero_block()])
    body = _issue(client, auth_headers, item.id)
    assert len(body["token"]) >= 43
    assert body["preview_url"] == f"https://www.acme-testing.io/preview/{body['token']}"
    assert body["content_title"] == "Draft page"


def test_preview_renders_draft_and_counts_views(client: TestClient, auth_headers, make_content, db: Session):
    item = make_content(title="Draft page", slug="draft-page", content_blocks=[hero_block(title="Secret launch")])
    token = _issue(client, auth_headers, item.id)["token"]

    r = client.get(f"/preview/{token}")
    assert r.status_code == 200
    assert "Secret launch" in r.text
    assert "Preview Mode" in r.text
    assert "Draft Content" in r.text
    assert r.headers["cache-control"] == "no-store"
    assert "noindex" in r.headers["x-robots-tag"]

    client.get(f"/preview/{token}")
    tok = db.scalar(select(PreviewToken).where(PreviewToken.token == token))
    db.refresh(tok)
    assert tok.views_count == 2
    assert tok.last_viewed_at is not None


def test_preview_of_empty_draft_still_renders(client: TestClient, auth_headers, make_content):
    item = make_content(title="Blank", slug="blank")
    token = _issue(client, auth_headers, item.id)["token"]
    r = client.get(f"/preview/{token}")
    assert r.status_code == 200
    assert "Preview Mode" in r.text


def test_expired_token_shows_expired_page(client: TestClient, auth_headers, make_content, db: Session):
    item = make_content(title="Old", slug="old", content="x")
    token = _issue(client, auth_headers, item.id)["token"]
    tok = db.scalar(select(PreviewToken).where(PreviewToken.token == token))
    tok.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    r = client.get(f"/preview/{token}")
    assert r.status_code == 410
    assert "Preview Link Expired" in r.text
    assert "valid for 24 hours" in r.text


def test_unknown_token_is_404(client: TestClient):
    assert client.get("/preview/does-not-exist").status_code == 404


def test_regenerating_replaces_previous_token(client: TestClient, auth_headers, make_content):
    item = make_content(title="Draft", slug="draft", content="x")
    first = _issue(client, auth_headers, item.id)["token"]
    second = _issue(client, auth_headers, item.id)["token"]
    assert first != second
    assert client.get(f"/preview/{first}").status_code == 404
    assert client.get(f"/preview/{second}").status_code == 200


def test_revoke_token(client: TestClient, auth_headers, make_content):
    item = make_content(title="Draft", slug="draft", content="x")
    token = _issue(client, auth_headers, item.id)["token"]

    r = client.delete(f"{settings.API_V1_STR}/content/preview-token", params={"token": token}, headers=auth_headers)
    assert r.status_code == 204
    assert client.get(f"/preview/{token}").status_code == 404

    r = client.delete(f"{settings.API_V1_STR}/content/preview-token", params={"token": token}, headers=auth_headers)
    assert r.status_code == 404


def test_deleting_content_removes_its_tokens(client: TestClient, auth_headers, make_content, db: Session):
    item = make_content(title="Draft", slug="draft", content="x")
    _issue(client, auth_headers, item.id)
    assert client.delete(f"{settings.API_V1_STR}/content/{item.id}", headers=auth_headers).status_code == 204
    db.expire_all()
    assert db.scalars(select(PreviewToken)).all() == []
