# tests/test_indexnow.py
from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from blockcms.core.settings import settings
from blockcms.services import indexnow_service
from blockcms.services.indexnow_service import build_payload, normalize_urls, submit_content, submit_urls


@pytest.fixture()
def indexnow_on(monkeypatch):
    monkeypatch.setattr(settings, "INDEXNOW_ENABLED", True)
    monkeypatch.setattr(settings, "INDEXNOW_KEY", "abc123key")
    monkeypatch.setattr(indexnow_service, "BACKOFF_SECONDS", 0)


def _run(coro):
    return asyncio.run(coro)


def test_disabled_is_a_noop(monkeypatch):
    async def boom(payload):
        raise AssertionError("should not post")

    monkeypatch.setattr(indexnow_service, "_post_once", boom)
    result = _run(submit_urls(["/blog/x"]))
    assert not result.success
    assert result.message == "IndexNow not configured"


def test_normalize_and_payload(indexnow_on):
    urls = normalize_urls(["/blog/a", "https://www.acme-testing.io/blog/a", "", "ftp://nope", 7])
    assert urls == ["https://www.acme-testing.io/blog/a"]
    payload = build_payload(urls)
    assert payload["host"] == "acme-testing.io"
    assert payload["key"] == "abc123key"
    assert payload["keyLocation"] == "https://www.acme-testing.io/abc123key.txt"
    assert payload["urlList"] == urls


@pytest.mark.parametrize("status", [200, 202])
def test_accepted(indexnow_on, monkeypatch, status):
    posted = []

    async def fake_post(payload):
        posted.append(payload)
        return status

    monkeypatch.setattr(indexnow_service, "_post_once", fake_post)
    result = _run(submit_content("blog", "hello"))
    assert result.success
    assert result.urls == ["https://www.acme-testing.io/blog/hello"]
    assert len(posted) == 1


def test_server_error_retried_once_then_logged(indexnow_on, monkeypatch, caplog):
    attempts = []

    async def flaky(payload):
        attempts.append(1)
        return 503

    monkeypatch.setattr(indexnow_service, "_post_once", flaky)
    with caplog.at_level(logging.WARNING, logger="blockcms.services.indexnow_service"):
        result = _run(submit_urls(["/news/x"]))
    assert not result.success
    assert result.status_code == 503
    assert len(attempts) == indexnow_service.MAX_ATTEMPTS
    assert "IndexNow rejected" in caplog.text


def test_client_error_not_retried(indexnow_on, monkeypatch):
    attempts = []

    async def rejected(payload):
        attempts.append(1)
        return 422

    monkeypatch.setattr(indexnow_service, "_post_once", rejected)
    assert not _run(submit_urls(["/news/x"])).success
    assert len(attempts) == 1


def test_network_errors_never_raise(indexnow_on, monkeypatch):
    async def unreachable(payload):
        raise httpx.ConnectError("down")

    monkeypatch.setattr(indexnow_service, "_post_once", unreachable)
    result = _run(submit_content("blog", "x"))
    assert not result.success
    assert result.status_code is None


def test_unexpected_errors_are_swallowed(indexnow_on, monkeypatch, caplog):
    async def broken(payload):
        raise RuntimeError("bug")

    monkeypatch.setattr(indexnow_service, "_post_once", broken)
    with caplog.at_level(logging.ERROR, logger="blockcms.services.indexnow_service"):
        result = _run(submit_content("blog", "x"))
    assert result.message == "Submission error"
    assert "crashed" in caplog.text


def test_key_file_served_only_for_configured_key(client, indexnow_on):
    r = client.get("/abc123key.txt")
    assert r.status_code == 200
    assert r.text == "abc123key"
    assert client.get("/otherkey.txt").status_code == 404
