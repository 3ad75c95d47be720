"""End-to-end tests for the HTTP surface.

Each test gets fresh seeded repositories through dependency overrides, and
WordPress is disabled so no network access is needed.
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from app import config
from app.main import app
from app.services.repository import (
    InMemoryRepository,
    default_blocks,
    default_categories,
    default_locales,
    get_block_repository,
    get_category_repository,
    get_locale_repository,
)

client = TestClient(app)

_SITE = "https://www.example.com"


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counter before every test."""
    app.state.limiter._storage.reset()
    yield


@pytest.fixture(autouse=True)
def repositories(monkeypatch):
    blocks = InMemoryRepository("id", default_blocks())
    categories = InMemoryRepository("id", default_categories())
    locales = InMemoryRepository("code", default_locales())
    app.dependency_overrides[get_block_repository] = lambda: blocks
    app.dependency_overrides[get_category_repository] = lambda: categories
    app.dependency_overrides[get_locale_repository] = lambda: locales

    monkeypatch.setattr(config, "SITE_URL", _SITE)
    monkeypatch.setattr(config, "BUILD_SHA", "test-build")
    monkeypatch.setattr(config, "DEFAULT_LOCALE", "en")
    monkeypatch.setattr(config, "WORDPRESS_URL", "")
    monkeypatch.setattr(config, "MAX_BLOCKS_PER_SLOT", 3)
    yield
    app.dependency_overrides.clear()


def _new_block(**overrides) -> dict:
    data = {
        "id": "info-history",
        "type": "info",
        "title": "A short history of the euro",
        "body": "The euro became legal tender in 2002.",
        "weight": 5,
        "locale": "en",
        "reviewed": True,
        "constraints": {"slots": ["info"], "categories": ["currency"], "mutually_exclusive": []},
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:
    def test_root(self):
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

class TestPages:
    def test_resolves_page_and_selects_blocks(self):
        response = client.get("/api/pages/en/currency/usd-eur")
        assert response.status_code == 200
        data = response.json()

        assert data["path"] == "/currency/usd-eur"
        assert data["canonical"] == f"{_SITE}/currency/usd-eur"
        assert data["title"] == "Currency Converter - usd eur"
        assert data["identifier"]["params"] == {"base": "usd", "quote": "eur"}
        assert list(data["blocks"]) == ["benefits", "cta", "faq", "promo", "info"]
        assert [b["id"] for b in data["blocks"]["benefits"]] == ["benefit-fast", "benefit-secure"]
        assert [b["id"] for b in data["blocks"]["cta"]] == ["cta-convert"]
        assert data["blocks"]["info"] == []

    def test_hreflang_has_every_locale_and_x_default(self):
        data = client.get("/api/pages/fr/currency/usd-eur").json()
        assert data["path"] == "/fr/currency/usd-eur"
        assert data["hreflang"]["en"] == f"{_SITE}/currency/usd-eur"
        assert data["hreflang"]["de"] == f"{_SITE}/de/currency/usd-eur"
        assert data["hreflang"]["x-default"] == f"{_SITE}/currency/usd-eur"

    def test_blocks_are_locale_specific(self):
        data = client.get("/api/pages/fr/currency/usd-eur").json()
        assert all(blocks == [] for blocks in data["blocks"].values())

    def test_same_page_same_blocks(self):
        first = client.get("/api/pages/en/currency/gbp-usd").json()
        second = client.get("/api/pages/en/currency/gbp-usd").json()
        assert first["blocks"] == second["blocks"]

    def test_max_per_slot_query(self):
        data = client.get("/api/pages/en/currency/usd-eur", params={"max_per_slot": 1}).json()
        assert [b["id"] for b in data["blocks"]["benefits"]] == ["benefit-fast"]

    def test_unreviewed_blocks_are_never_shown(self):
        client.post("/api/admin/blocks", json=_new_block(reviewed=False))
        data = client.get("/api/pages/en/currency/usd-eur").json()
        assert data["blocks"]["info"] == []

    def test_unknown_locale(self):
        assert client.get("/api/pages/xx/currency/usd-eur").status_code == 404

    def test_unknown_category(self):
        assert client.get("/api/pages/en/crypto/btc-eth").status_code == 404

    def test_identifier_not_matching_pattern(self):
        assert client.get("/api/pages/en/currency/usdeur").status_code == 404


# ---------------------------------------------------------------------------
# Sitemaps
# ---------------------------------------------------------------------------

class TestSitemaps:
    def test_index_lists_chunks(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_URLS_PER_SITEMAP", 50)
        response = client.get("/sitemap.xml")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "max-age=3600" in response.headers["cache-control"]
        body = response.text
        assert "<sitemapindex" in body
        for index in range(4):
            assert f"{_SITE}/sitemaps/sitemap-{index}.xml" in body
        assert "sitemap-4.xml" not in body

    def test_chunk_contents(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_URLS_PER_SITEMAP", 50)
        first = client.get("/sitemaps/sitemap-0.xml")
        last = client.get("/sitemaps/sitemap-3.xml")
        assert first.status_code == 200
        assert first.text.count("<url>") == 50
        assert last.text.count("<url>") == 28
        assert f"<loc>{_SITE}/contact</loc>" in last.text

    def test_chunk_out_of_range(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_URLS_PER_SITEMAP", 50)
        assert client.get("/sitemaps/sitemap-4.xml").status_code == 404

    def test_invalid_chunk_name(self):
        assert client.get("/sitemaps/sitemap-a.xml").status_code == 400

    def test_zero_padded_chunk_name_is_rejected(self):
        assert client.get("/sitemaps/sitemap-01.xml").status_code == 400
        assert client.get("/sitemaps/sitemap-000.xml").status_code == 400
        assert client.get("/sitemaps/sitemap-0.xml").status_code == 200

    def test_single_chunk_by_default(self):
        body = client.get("/sitemap.xml").text
        assert "sitemap-0.xml" in body
        assert "sitemap-1.xml" not in body

    def test_invalid_site_url_fails_closed(self, monkeypatch):
        monkeypatch.setattr(config, "SITE_URL", "not-a-url")
        response = client.get("/sitemap.xml")
        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["error"] == "Sitemap validation failed"
        assert detail["details"][0].startswith("Invalid URL format")

    def test_robots(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_URLS_PER_SITEMAP", 100)
        response = client.get("/robots.txt")
        assert response.status_code == 200
        lines = response.text.splitlines()
        assert lines[0] == "User-agent: *"
        assert "Disallow: /api/" in lines
        assert f"Sitemap: {_SITE}/sitemap.xml" in lines
        assert f"Sitemap: {_SITE}/sitemaps/sitemap-1.xml" in lines


# ---------------------------------------------------------------------------
# Block administration
# ---------------------------------------------------------------------------

class TestBlockAdmin:
    def test_list_and_filter(self):
        data = client.get("/api/admin/blocks", params={"type": "benefit"}).json()
        assert data["total"] == 2
        assert data["slots"] == ["benefits", "cta", "faq", "promo", "info"]

    def test_create(self):
        response = client.post("/api/admin/blocks", json=_new_block())
        assert response.status_code == 201
        assert response.json()["block"]["id"] == "info-history"

    def test_create_sanitizes_body(self):
        response = client.post(
            "/api/admin/blocks",
            json=_new_block(body="<p>Safe</p><script>alert(1)</script>"),
        )
        assert response.status_code == 201
        assert response.json()["block"]["body"] == "<p>Safe</p>"

    def test_body_limit_applies_to_submitted_text(self):
        response = client.post("/api/admin/blocks", json=_new_block(body="R&D " * 200))
        assert response.status_code == 201
        assert "R&amp;D" in response.json()["block"]["body"]

    def test_create_rejects_markup_only_body(self):
        response = client.post("/api/admin/blocks", json=_new_block(body="<script>x</script>"))
        assert response.status_code == 400
        assert response.json()["detail"]["details"] == [
            "Block body is empty after removing disallowed markup"
        ]
        assert client.get("/api/admin/blocks", params={"type": "info"}).json()["total"] == 0

    def test_create_invalid(self):
        response = client.post("/api/admin/blocks", json=_new_block(id="Bad Id", weight=0))
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "Validation failed"
        assert len(detail["details"]) == 2

    def test_create_duplicate(self):
        response = client.post("/api/admin/blocks", json=_new_block(id="cta-convert"))
        assert response.status_code == 409

    def test_create_slot_conflict(self):
        response = client.post(
            "/api/admin/blocks",
            json=_new_block(id="benefit-cheap", type="benefit", constraints={"slots": ["benefits"], "categories": ["currency"]}),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Constraint validation failed"

    def test_update(self):
        response = client.put("/api/admin/blocks", json={"id": "cta-convert", "weight": 50})
        assert response.status_code == 200
        assert response.json()["block"]["weight"] == 50
        assert response.json()["block"]["title"] == "Start Converting Now"

    def test_update_missing(self):
        assert client.put("/api/admin/blocks", json={"id": "nope", "weight": 5}).status_code == 404

    def test_delete(self):
        assert client.delete("/api/admin/blocks", params={"id": "cta-convert"}).status_code == 200
        assert client.delete("/api/admin/blocks", params={"id": "cta-convert"}).status_code == 404

    def test_stats(self):
        data = client.get("/api/admin/blocks/stats").json()
        assert data["total"] == 5
        assert data["by_category"] == {"currency": 5}
        assert data["reviewed"] == 5

    def test_export_then_import_skips_existing(self):
        exported = client.get("/api/admin/blocks/export")
        assert exported.status_code == 200
        blocks = json.loads(exported.text)
        blocks.append(_new_block())

        response = client.post("/api/admin/blocks/import", content=json.dumps(blocks))
        assert response.status_code == 200
        assert response.json()["imported"] == 1
        assert len(response.json()["skipped"]) == 5

    def test_import_rejects_markup_only_body(self):
        payload = [_new_block(id="info-x", body="<script>x</script>")]
        response = client.post("/api/admin/blocks/import", content=json.dumps(payload))
        assert response.status_code == 400
        assert response.json()["detail"]["details"] == [
            "Block info-x: Block body is empty after removing disallowed markup"
        ]
        assert client.get("/api/admin/blocks").json()["total"] == 5

    def test_import_sanitizes_body(self):
        payload = [_new_block(body="<p>Kept</p><iframe src='https://x.test'></iframe>")]
        response = client.post("/api/admin/blocks/import", content=json.dumps(payload))
        assert response.json()["imported"] == 1
        blocks = client.get("/api/admin/blocks", params={"type": "info"}).json()["blocks"]
        assert blocks[0]["body"] == "<p>Kept</p>"

    def test_import_rejects_invalid(self):
        response = client.post("/api/admin/blocks/import", content="not json")
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Category and locale administration
# ---------------------------------------------------------------------------

class TestCategoryAdmin:
    _NEWS = {
        "slug": "news",
        "name": "Country News",
        "url_pattern": ":country",
        "template_type": "news",
        "locales": ["en"],
    }

    def test_list(self):
        assert client.get("/api/admin/categories").json()["total"] == 2

    def test_create_defaults_id_to_slug(self):
        response = client.post("/api/admin/categories", json=self._NEWS)
        assert response.status_code == 201
        assert response.json()["category"]["id"] == "news"

    def test_new_category_pages_resolve(self):
        client.post("/api/admin/categories", json=self._NEWS)
        assert client.get("/api/pages/en/news/germany").status_code == 200

    def test_create_duplicate_pattern(self):
        response = client.post("/api/admin/categories", json={**self._NEWS, "url_pattern": ":code"})
        assert response.status_code == 400

    def test_create_invalid(self):
        response = client.post("/api/admin/categories", json={**self._NEWS, "url_pattern": "static"})
        assert response.status_code == 400

    def test_deactivated_category_disappears(self):
        response = client.put("/api/admin/categories", json={"id": "swift", "is_active": False})
        assert response.status_code == 200
        assert client.get("/api/pages/en/swift/DEUTDEFF").status_code == 404
        assert "/swift/" not in client.get("/sitemaps/sitemap-0.xml").text

    def test_update_missing(self):
        assert client.put("/api/admin/categories", json={"id": "nope"}).status_code == 404

    def test_delete(self):
        assert client.delete("/api/admin/categories", params={"id": "swift"}).status_code == 200
        assert client.delete("/api/admin/categories", params={"id": "swift"}).status_code == 404


class TestLocaleAdmin:
    def test_list(self):
        assert client.get("/api/admin/locales").json()["total"] == 5

    def test_create(self):
        response = client.post(
            "/api/admin/locales", json={"code": "IT", "name": "Italian", "native_name": "Italiano"}
        )
        assert response.status_code == 201
        assert response.json()["locale"]["code"] == "it"

    def test_create_duplicate(self):
        response = client.post(
            "/api/admin/locales", json={"code": "fr", "name": "French", "native_name": "Français"}
        )
        assert response.status_code == 409

    def test_create_bad_code(self):
        response = client.post(
            "/api/admin/locales", json={"code": "fra", "name": "French", "native_name": "Français"}
        )
        assert response.status_code == 422

    def test_set_default(self):
        assert client.put("/api/admin/locales/default", json={"code": "fr"}).status_code == 200
        locales = client.get("/api/admin/locales").json()["locales"]
        assert [loc["code"] for loc in locales if loc["is_default"]] == ["fr"]

    def test_set_default_unknown(self):
        assert client.put("/api/admin/locales/default", json={"code": "zz"}).status_code == 404


# ---------------------------------------------------------------------------
# SEO
# ---------------------------------------------------------------------------

class TestSeoEndpoints:
    def test_validate(self):
        response = client.post("/api/admin/seo/validate", json={"title": "Rates"})
        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is False
        assert "Title too short: 5 characters (min: 10)" in data["errors"]

    def test_consistency(self):
        response = client.post(
            "/api/admin/seo/consistency",
            json=[{"title": "Same Title Here"}, {"title": "same title here"}],
        )
        assert response.status_code == 200
        assert response.json()["is_valid"] is False


# ---------------------------------------------------------------------------
# Ops
# ---------------------------------------------------------------------------

_URLSET = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
    "<url><loc>https://www.example.com/</loc></url></urlset>"
)


async def _fake_fetch(url: str) -> str:
    if url.endswith("/missing.xml"):
        raise httpx.HTTPStatusError(
            "not found", request=httpx.Request("GET", url), response=httpx.Response(404)
        )
    if url.endswith("/page.html"):
        return "<html><body>Not a sitemap</body></html>"
    return _URLSET


class TestOps:
    def test_list(self):
        response = client.get("/api/ops/sitemaps/list")
        assert response.status_code == 200
        data = response.json()
        assert data["index"] == f"{_SITE}/sitemap.xml"
        assert data["stats"]["total_urls"] == 178
        assert data["chunks"][0]["filename"] == "sitemap-0.xml"

    def test_validate_all_ok(self):
        with patch("app.services.fetcher.fetch_sitemap", new=AsyncMock(side_effect=_fake_fetch)):
            response = client.post("/api/ops/sitemaps/validate", json={"files": ["/sitemap.xml"]})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "issues": []}

    def test_validate_reports_issues(self):
        fetch = AsyncMock(side_effect=_fake_fetch)
        with patch("app.services.fetcher.fetch_sitemap", new=fetch):
            response = client.post(
                "/api/ops/sitemaps/validate",
                json={"files": ["/sitemap.xml", "/missing.xml", "https://other.example.com/page.html"]},
            )

        fetch.assert_any_await(f"{_SITE}/missing.xml")
        fetch.assert_any_await("https://other.example.com/page.html")
        data = response.json()
        assert data["ok"] is False
        assert data["issues"] == [
            {"file": "/missing.xml", "problem": "HTTP 404"},
            {"file": "https://other.example.com/page.html", "problem": "Not a valid sitemap or index"},
        ]

    def test_validate_rejects_paths_without_leading_slash(self):
        fetch = AsyncMock(side_effect=_fake_fetch)
        with patch("app.services.fetcher.fetch_sitemap", new=fetch):
            response = client.post("/api/ops/sitemaps/validate", json={"files": [".evil.com/x", "sitemap.xml"]})

        fetch.assert_not_awaited()
        issues = response.json()["issues"]
        assert [issue["file"] for issue in issues] == [".evil.com/x", "sitemap.xml"]
        assert all(issue["problem"] == "Expected an absolute URL or a path starting with /" for issue in issues)

    def test_validate_rate_limit(self):
        with patch("app.services.fetcher.fetch_sitemap", new=AsyncMock(side_effect=_fake_fetch)):
            statuses = [
                client.post("/api/ops/sitemaps/validate", json={"files": []}).status_code
                for _ in range(6)
            ]
        assert statuses[:5] == [200] * 5
        assert statuses[5] == 429
