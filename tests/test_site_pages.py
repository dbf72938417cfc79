# tests/test_site_pages.py
from __future__ import annotations

import json
import re

from fastapi.testclient import TestClient
from helpers import hero_block, steps_block

LD_JSON = re.compile(r'<script type="application/ld\+json">(.*?)</script>', re.S)


def _json_ld(html: str) -> list[dict]:
    return [json.loads(m) for m in LD_JSON.findall(html)]


def test_draft_page_is_not_public(client: TestClient, make_content):
    make_content(title="About", slug="about", content_blocks=[hero_block()])
    assert client.get("/about").status_code == 404


def test_published_page_renders_blocks_and_variant(client: TestClient, make_content):
    make_content(
        title="About",
        slug="about",
        status="published",
        content_blocks=[hero_block(variants={"Healthcare": {"title": "Testing for clinics"}})],
    )

    r = client.get("/about")
    assert r.status_code == 200
    assert "Default headline" in r.text
    assert r.headers["vary"] == "Cookie"
    assert "max-age=60" in r.headers["cache-control"]
    assert "last-modified" in r.headers

    client.cookies.set("persx_industry", "Healthcare")
    r = client.get("/about")
    assert "Testing for clinics" in r.text
    assert "Default headline" not in r.text


def test_home_uses_static_home_page_or_fallback(client: TestClient, make_content):
    r = client.get("/")
    assert r.status_code == 200
    assert "Acme Testing" in r.text

    make_content(title="Home", slug="home", status="published", content_blocks=[hero_block(title="Welcome home")])
    assert "Welcome home" in client.get("/").text


def test_markdown_body_used_when_no_blocks(client: TestClient, make_content):
    make_content(
        title="Why we test",
        slug="why-we-test",
        content_type="blog",
        status="published",
        content="## Heading\n\nSee [docs](https://docs.example.org) <script>alert(1)</script>",
        content_blocks=[],
    )
    r = client.get("/blog/why-we-test")
    assert r.status_code == 200
    assert "<h2" in r.text and "Heading" in r.text
    assert 'target="_blank"' in r.text
    assert "<script>alert(1)</script>" not in r.text


def test_empty_published_page_is_not_found(client: TestClient, make_content):
    make_content(title="Placeholder", slug="placeholder", status="published")
    assert client.get("/placeholder").status_code == 404


def test_article_requires_matching_section(client: TestClient, make_content):
    make_content(title="Win", slug="big-win", content_type="case_study", status="published", content="Body")
    assert client.get("/case-studies/big-win").status_code == 200
    assert client.get("/blog/big-win").status_code == 404
    assert client.get("/nonsense/big-win").status_code == 404


def test_seo_precedence_and_meta_tags(client: TestClient, make_content):
    make_content(
        title="Pricing",
        slug="pricing",
        status="published",
        content="Plans",
        excerpt="Short excerpt",
        og_title="OG Pricing",
        featured_image="https://cdn.acme.io/pricing.png",
        tags=["pricing", "plans"],
    )
    html = client.get("/pricing").text
    assert "<title>Pricing</title>" in html
    assert '<meta name="description" content="Short excerpt">' in html
    assert '<meta property="og:title" content="OG Pricing">' in html
    assert '<meta name="twitter:title" content="OG Pricing">' in html
    assert '<meta property="og:image" content="https://cdn.acme.io/pricing.png">' in html
    assert '<meta name="twitter:card" content="summary_large_image">' in html
    assert '<link rel="canonical" href="https://www.acme-testing.io/pricing">' in html
    assert '<meta name="keywords" content="pricing, plans">' in html
    # static pages carry no derived article schema
    assert _json_ld(html) == []


def test_article_json_ld_and_block_fragments(client: TestClient, make_content):
    make_content(
        title="Checkout tests",
        slug="checkout-tests",
        content_type="implementation_guide",
        status="published",
        content_blocks=[steps_block()],
    )
    fragments = _json_ld(client.get("/guides/checkout-tests").text)
    types = [f["@type"] for f in fragments]
    assert types == ["Article", "BreadcrumbList", "HowTo"]

    article = fragments[0]
    assert article["headline"] == "Checkout tests"
    assert article["author"]["name"] == "Organization Team"
    assert article["url"] == "https://www.acme-testing.io/guides/checkout-tests"

    crumbs = fragments[1]["itemListElement"]
    assert [c["name"] for c in crumbs] == ["Home", "Implementation Guides", "Checkout tests"]


def test_explicit_article_schema_wins(client: TestClient, make_content):
    make_content(
        title="Launch",
        slug="launch",
        content_type="news",
        status="published",
        content="Body",
        article_schema={"@type": "NewsArticle", "headline": "Custom headline"},
    )
    fragments = _json_ld(client.get("/news/launch").text)
    assert fragments[0]["@type"] == "NewsArticle"
    assert fragments[0]["@context"] == "https://schema.org"
    assert fragments[0]["headline"] == "Custom headline"


def test_section_listing(client: TestClient, make_content):
    make_content(title="First post", slug="first-post", content_type="blog", status="published", content="x")
    make_content(title="Hidden draft", slug="hidden-draft", content_type="blog", content="x")
    r = client.get("/blog")
    assert r.status_code == 200
    assert "First post" in r.text
    assert "Hidden draft" not in r.text


def test_sitemap_and_robots(client: TestClient, make_content):
    make_content(title="Home", slug="home", status="published", content="x")
    make_content(title="Post", slug="post", content_type="blog", status="published", content="x")
    make_content(title="Draft", slug="draft-post", content_type="blog", content="x")

    r = client.get("/sitemap.xml")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    assert "<loc>https://www.acme-testing.io/blog/post</loc>" in r.text
    assert "draft-post" not in r.text
    assert r.text.count("<loc>https://www.acme-testing.io/</loc>") == 1

    robots = client.get("/robots.txt").text
    assert "Disallow: /admin" in robots
    assert "Sitemap: https://www.acme-testing.io/sitemap.xml" in robots


def test_navigation_groups(client: TestClient, make_content):
    make_content(title="Team", slug="team", status="published", content="x",
                 show_in_navigation=True, navigation_group="company", navigation_order=2)
    make_content(title="Careers", slug="careers", status="published", content="x",
                 show_in_navigation=True, navigation_group="company", navigation_order=1)
    make_content(title="Ungrouped", slug="ungrouped", status="published", content="x", show_in_navigation=True)
    make_content(title="Draft nav", slug="draft-nav", content="x", show_in_navigation=True, navigation_group="company")

    body = client.get("/api/navigation").json()
    assert [i["title"] for i in body["company"]] == ["Careers", "Team"]
    assert [i["url"] for i in body["resources"]] == ["/ungrouped"]
    assert body["insights"] == []
