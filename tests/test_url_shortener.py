"""
Tests for short link helpers, management routes and redirects
"""
import random
from datetime import datetime, timedelta

import pytest
from werkzeug.exceptions import BadRequest, Conflict, Forbidden

from toolhub.services import url_shortener

from .conftest import register_user


class TestCodeGeneration:
    """Test short code and alias helpers"""

    def test_short_code_length_and_alphabet(self):
        code = url_shortener.generate_short_code(8, random.Random(1))
        assert len(code) == 8
        assert all(ch in url_shortener.CODE_ALPHABET for ch in code)

    @pytest.mark.parametrize("length", [0, 21])
    def test_short_code_length_bounds(self, length):
        with pytest.raises(ValueError):
            url_shortener.generate_short_code(length)

    def test_memorable_code_shape(self):
        code = url_shortener.generate_memorable_code(random.Random(7))
        assert code[-3:].isdigit()
        assert any(code.startswith(adjective) for adjective in url_shortener.ADJECTIVES)

    def test_unique_code_falls_back_when_crowded(self, db):
        urls = db["shortened_urls"]

        class SameChoice(random.Random):
            def choice(self, seq):
                return seq[0]

            def randrange(self, *args):
                return 0

        urls.insert_one({"shortCode": url_shortener.generate_memorable_code(SameChoice())})
        code = url_shortener.generate_unique_short_code(urls, True, SameChoice())
        assert code.startswith("aaaa")
        assert len(code) > 4

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com/path", True),
            ("example.com", True),
            ("ftp://example.com", False),
            ("", False),
            ("https://", False),
            (None, False),
        ],
    )
    def test_is_valid_url(self, url, expected):
        assert url_shortener.is_valid_url(url) is expected

    def test_normalize_url(self):
        assert url_shortener.normalize_url("  example.com/a ") == "https://example.com/a"
        assert url_shortener.normalize_url("http://example.com") == "http://example.com"
        with pytest.raises(ValueError):
            url_shortener.normalize_url("   ")

    @pytest.mark.parametrize(
        "alias,expected",
        [("my-link", True), ("ab", False), ("a" * 21, False), ("has space", False), ("admin", False), ("API", False)],
    )
    def test_custom_alias(self, alias, expected):
        assert url_shortener.is_valid_custom_alias(alias) is expected

    def test_expiration(self):
        now = datetime(2024, 1, 1)
        assert url_shortener.generate_expiration_date(10, now) == datetime(2024, 1, 11)
        with pytest.raises(ValueError):
            url_shortener.generate_expiration_date(0, now)
        with pytest.raises(ValueError):
            url_shortener.generate_expiration_date(3651, now)
        assert url_shortener.is_url_expired({"expiresAt": now}, now + timedelta(seconds=1))
        assert not url_shortener.is_url_expired({"expiresAt": None}, now)

    def test_calculate_url_stats(self):
        now = datetime(2024, 1, 10)
        docs = [
            {"clicks": 3, "isActive": True},
            {"clicks": 2, "isActive": True, "expiresAt": datetime(2024, 1, 1)},
            {"clicks": 1, "isActive": False},
        ]
        assert url_shortener.calculate_url_stats(docs, now) == {
            "totalUrls": 3,
            "totalClicks": 6,
            "activeUrls": 1,
            "expiredUrls": 1,
        }


class TestCreateShortUrl:
    """Test persistence rules for new links"""

    def test_custom_alias_conflict_and_inactive_reuse(self, db):
        urls = db["shortened_urls"]
        first = url_shortener.create_short_url(urls, {"originalUrl": "example.com", "customAlias": "promo"}, "u1")
        assert first["originalUrl"] == "https://example.com"
        with pytest.raises(Conflict):
            url_shortener.create_short_url(urls, {"originalUrl": "example.org", "customAlias": "promo"}, "u2")

        url_shortener.soft_delete(urls, str(first["_id"]))
        second = url_shortener.create_short_url(urls, {"originalUrl": "example.org", "customAlias": "promo"}, "u2")
        assert second["shortCode"] == "promo"
        assert urls.count_documents({"shortCode": "promo"}) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            {"originalUrl": "not a url"},
            {"originalUrl": "example.com", "customAlias": "login"},
            {"originalUrl": "example.com", "expiresInDays": 0},
            {"originalUrl": "example.com", "expiresInDays": "soon"},
        ],
    )
    def test_invalid_payloads(self, db, payload):
        with pytest.raises(BadRequest):
            url_shortener.create_short_url(db["shortened_urls"], payload)

    def test_anonymous_owner_only_without_user(self, db):
        urls = db["shortened_urls"]
        anon = url_shortener.create_short_url(urls, {"url": "example.com", "anonymousUserId": "anon-1"})
        assert anon["userId"] is None and anon["anonymousUserId"] == "anon-1"
        owned = url_shortener.create_short_url(urls, {"url": "example.com", "anonymousUserId": "anon-1"}, "u1")
        assert owned["anonymousUserId"] is None

    def test_bulk_update_requires_ownership(self, db):
        urls = db["shortened_urls"]
        mine = url_shortener.create_short_url(urls, {"url": "example.com"}, "u1")
        theirs = url_shortener.create_short_url(urls, {"url": "example.com"}, "u2")
        with pytest.raises(Forbidden):
            url_shortener.bulk_update(urls, [str(mine["_id"]), str(theirs["_id"])], "u1", "deactivate")
        with pytest.raises(BadRequest):
            url_shortener.bulk_update(urls, [str(mine["_id"])], "u1", "extend", 0)

        now = datetime(2024, 1, 1)
        assert url_shortener.bulk_update(urls, [str(mine["_id"])], "u1", "extend", 5, now) == 1
        assert urls.find_one({"_id": mine["_id"]})["expiresAt"] == datetime(2024, 1, 6)


class TestUrlRoutes:
    """Test the HTTP surface and redirects"""

    def test_create_list_and_redirect(self, user_client):
        created = user_client.post("/api/url-shortener", json={"originalUrl": "https://example.com/page", "customAlias": "docs-link"})
        assert created.status_code == 201
        body = created.get_json()["url"]
        assert body["shortenedUrl"] == "http://short.test/r/docs-link"

        listing = user_client.get("/api/url-shortener").get_json()
        assert listing["total"] == 1

        redirect = user_client.get("/r/docs-link")
        assert redirect.status_code == 302
        assert redirect.headers["Location"] == "https://example.com/page"
        assert user_client.get("/docs-link").status_code == 302

        details = user_client.get(f"/api/url-shortener/{body['id']}").get_json()
        assert details["url"]["clicks"] == 2
        assert details["analytics"]["domain"] == "example.com"

    def test_unknown_or_expired_code_is_404(self, client, db):
        assert client.get("/r/nothing-here").status_code == 404
        db["shortened_urls"].insert_one(
            {"shortCode": "old", "originalUrl": "https://example.com", "isActive": True, "expiresAt": datetime(2000, 1, 1)}
        )
        assert client.get("/r/old").status_code == 404

    def test_anonymous_listing(self, client):
        client.post("/api/url-shortener", json={"originalUrl": "example.com", "anonymousUserId": "anon-9"})
        assert client.get("/api/url-shortener").get_json()["total"] == 0
        assert client.get("/api/url-shortener?anonymousUserId=anon-9").get_json()["total"] == 1

    def test_stats_and_delete(self, user_client):
        url_id = user_client.post("/api/url-shortener", json={"originalUrl": "example.com"}).get_json()["url"]["id"]
        stats = user_client.get("/api/url-shortener/stats").get_json()
        assert stats["totalUrls"] == 1
        assert len(stats["recentActivity"]) == 7
        assert stats["recentActivity"][-1]["newUrls"] == 1

        assert user_client.delete(f"/api/url-shortener/{url_id}").status_code == 200
        assert user_client.get("/api/url-shortener").get_json()["total"] == 0

    def test_other_users_cannot_read(self, app, user_client):
        url_id = user_client.post("/api/url-shortener", json={"originalUrl": "example.com"}).get_json()["url"]["id"]
        other = app.test_client()
        register_user(other, email="bob@example.com", name="Bob")
        assert other.get(f"/api/url-shortener/{url_id}").status_code == 403

    def test_bulk_route(self, user_client):
        ids = [
            user_client.post("/api/url-shortener", json={"originalUrl": f"example.com/{n}"}).get_json()["url"]["id"]
            for n in range(2)
        ]
        response = user_client.post("/api/url-shortener/bulk", json={"urlIds": ids, "operation": "deactivate"})
        assert response.get_json()["modifiedCount"] == 2
        bad = user_client.post("/api/url-shortener/bulk", json={"urlIds": ids, "operation": "explode"})
        assert bad.status_code == 400
