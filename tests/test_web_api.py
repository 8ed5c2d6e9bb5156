"""Integration tests for the PremiseHub web API endpoints."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from premisehub.config import Config
from premisehub.ingestion.reddit_adapter import RedditAdapter
from premisehub.ingestion.youtube_adapter import YouTubeAdapter
from premisehub.ingestion.youtube_client import YouTubeClient
from premisehub.platforms import Platform
from premisehub.storage.schema import init_db
from premisehub.web.app import create_app

_ABOUT = {"kind": "t5", "data": {"id": "t5x", "display_name": "WritingPrompts"}}


def _post(post_id, selftext, ups, created_utc):
    return {
        "kind": "t3",
        "data": {
            "id": post_id,
            "title": f"Title {post_id}",
            "selftext": selftext,
            "ups": ups,
            "num_comments": ups // 10,
            "created_utc": created_utc,
            "author": "writer",
            "permalink": f"/r/WritingPrompts/comments/{post_id}/t/",
        },
    }


_LISTING = {
    "kind": "Listing",
    "data": {
        "children": [
            _post("p1", "She finds a door in the sea.", 120, 1740830400),  # 2025-03-01
            _post("p2", "A clock that runs on secrets!", 40, 1741003200),  # 2025-03-03
        ]
    },
}


def _reddit_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/about.json"):
        return httpx.Response(200, json=_ABOUT)
    if "/comments/" in path:
        return httpx.Response(200, json=[_LISTING, {"data": {"children": []}}])
    return httpx.Response(200, json=_LISTING)


@pytest.fixture()
def db_path(tmp_path):
    path = str(tmp_path / "test.db")
    init_db(path)
    return path


@pytest.fixture()
def client(db_path):
    reddit = RedditAdapter(httpx.Client(transport=httpx.MockTransport(_reddit_handler)))
    app = create_app(Config(database_path=db_path), {Platform.REDDIT: reddit})
    return TestClient(app)


@pytest.fixture()
def source(client):
    resp = client.post(
        "/api/sources/reddit", json={"url": "https://www.reddit.com/r/WritingPrompts/"}
    )
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.fixture()
def extracted(client, source):
    resp = client.post(f"/api/sources/{source['id']}/extract")
    assert resp.status_code == 200
    return resp.json()["data"]


class TestSources:
    def test_register_canonicalizes_url(self, source):
        assert source["platform"] == "reddit"
        assert source["url"] == "https://www.reddit.com/r/writingprompts"
        assert source["name"] == "writingprompts"
        assert source["last_extraction_at"] is None

    def test_register_with_name(self, client):
        resp = client.post(
            "/api/sources/reddit",
            json={"url": "https://www.reddit.com/r/nosleep", "name": "No Sleep"},
        )
        assert resp.json()["data"]["name"] == "No Sleep"

    def test_duplicate_url_rejected(self, client, source):
        resp = client.post("/api/sources/reddit", json={"url": "https://reddit.com/r/writingprompts"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "conflict"

    def test_invalid_url(self, client):
        resp = client.post("/api/sources/reddit", json={"url": "https://www.reddit.com/user/x"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    def test_disabled_platform(self, client):
        resp = client.post(
            "/api/sources/youtube", json={"url": "https://www.youtube.com/channel/UC1"}
        )
        assert resp.status_code == 503
        assert resp.json()["error"] == "platform_disabled"

    def test_youtube_name_defaults_to_channel_title(self, db_path):
        def handler(request):
            return httpx.Response(
                200, json={"items": [{"id": "UC1", "snippet": {"title": "Story Channel"}}]}
            )

        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        youtube = YouTubeAdapter(http_client, YouTubeClient("k", http_client))
        app = create_app(Config(database_path=db_path), {Platform.YOUTUBE: youtube})
        client = TestClient(app)

        resp = client.post(
            "/api/sources/youtube", json={"url": "https://www.youtube.com/channel/UC1"}
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["name"] == "Story Channel"

    def test_unknown_platform(self, client):
        resp = client.post("/api/sources/myspace", json={"url": "https://myspace.com/x"})
        assert resp.status_code == 400

    def test_list_and_get(self, client, source, extracted):
        listed = client.get("/api/sources").json()["data"]
        assert [s["id"] for s in listed] == [source["id"]]
        assert listed[0]["premise_count"] == 2

        assert client.get("/api/sources?platform=tiktok").json()["data"] == []

        resp = client.get(f"/api/sources/{source['id']}")
        assert resp.json()["data"]["last_extraction_at"] == extracted["last_extraction_at"]

    def test_get_missing(self, client):
        resp = client.get("/api/sources/missing")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Source not found", "error": "not_found"}

    def test_delete_cascades(self, client, source, extracted):
        resp = client.delete(f"/api/sources/{source['id']}")
        assert resp.status_code == 200
        assert resp.json()["data"]["removed_premises"] == 2
        assert client.get("/api/premises").json()["data"]["total"] == 0
        assert client.delete(f"/api/sources/{source['id']}").status_code == 404


class TestExtraction:
    def test_extract_inserts_then_dedups(self, client, source, extracted):
        assert extracted["inserted_count"] == 2
        assert extracted["inserted"][0]["first_person"] == "Eu she finds a door in the sea."

        again = client.post(f"/api/sources/{source['id']}/extract").json()["data"]
        assert again["inserted_count"] == 0
        assert again["duplicate_count"] == 2

    def test_extract_with_options(self, client, source):
        resp = client.post(f"/api/sources/{source['id']}/extract?sort_order=new&limit=1")
        assert resp.status_code == 200
        assert resp.json()["data"]["inserted_count"] == 1

    def test_invalid_sort_order(self, client, source):
        resp = client.post(f"/api/sources/{source['id']}/extract?sort_order=best")
        assert resp.status_code == 400

    def test_platform_route(self, client, source):
        resp = client.post(f"/api/reddit/extract/{source['id']}")
        assert resp.status_code == 200
        assert resp.json()["data"]["inserted_count"] == 2

    def test_platform_mismatch(self, client, source):
        resp = client.post(f"/api/tiktok/extract/{source['id']}")
        assert resp.status_code == 400
        assert resp.json()["error"] == "type_mismatch"
        assert client.get("/api/premises").json()["data"]["total"] == 0

    def test_extract_missing_source(self, client):
        assert client.post("/api/sources/missing/extract").status_code == 404

    def test_analyze_preview(self, client):
        resp = client.post(
            "/api/reddit/analyze", json={"url": "https://www.reddit.com/r/WritingPrompts"}
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["source"]["name"] == "WritingPrompts"
        assert len(data["premises"]) == 2
        assert client.get("/api/premises").json()["data"]["total"] == 0

    def test_item_preview(self, client):
        resp = client.post(
            "/api/reddit/item",
            json={"url": "https://www.reddit.com/r/WritingPrompts/comments/p1/t/"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["body"] == "She finds a door in the sea."

    def test_item_preview_disabled_platform(self, client):
        resp = client.post("/api/youtube/item", json={"url": "https://youtu.be/x"})
        assert resp.status_code == 503


class TestPremises:
    def test_list_default_sort_and_paging(self, client, extracted):
        resp = client.get("/api/premises?page_size=1")
        data = resp.json()["data"]
        assert data["total"] == 2
        assert data["total_pages"] == 2
        assert data["page_size"] == 1
        assert len(data["premises"]) == 1

    def test_sort_by_likes(self, client, extracted):
        data = client.get("/api/premises?sort=likes&order=asc").json()["data"]
        assert [p["metrics"]["likes"] for p in data["premises"]] == [40, 120]

    def test_filters(self, client, extracted):
        data = client.get("/api/premises?min_likes=100").json()["data"]
        assert [p["metrics"]["likes"] for p in data["premises"]] == [120]

        data = client.get("/api/premises?max_likes=100").json()["data"]
        assert [p["metrics"]["likes"] for p in data["premises"]] == [40]

        data = client.get("/api/premises?date_to=2025-03-01").json()["data"]
        assert data["total"] == 1

        data = client.get("/api/premises?platform=reddit&used=false").json()["data"]
        assert data["total"] == 2

    def test_bad_date_filter(self, client):
        resp = client.get("/api/premises?date_from=soon")
        assert resp.status_code == 400

    def test_curation_flow(self, client, extracted):
        premise_id = extracted["inserted"][0]["id"]

        used = client.patch(f"/api/premises/{premise_id}/used", json={"used": True})
        assert used.json()["data"]["used"] is True

        cat = client.patch(
            f"/api/premises/{premise_id}/category", json={"niche": "Fantasy", "sub_niche": "Sea"}
        )
        assert cat.json()["data"]["niche"] == "Fantasy"

        cat = client.patch(f"/api/premises/{premise_id}/category", json={"sub_niche": "Ocean"})
        assert (cat.json()["data"]["niche"], cat.json()["data"]["sub_niche"]) == ("Fantasy", "Ocean")

        data = client.get("/api/premises?used=true&niche=Fantasy").json()["data"]
        assert [p["id"] for p in data["premises"]] == [premise_id]

        fp = client.get(f"/api/premises/{premise_id}/first-person").json()["data"]
        assert fp["first_person"] == "Eu she finds a door in the sea."

        assert client.delete(f"/api/premises/{premise_id}").status_code == 200
        assert client.get(f"/api/premises/{premise_id}").status_code == 404

    def test_missing_premise(self, client):
        assert client.patch("/api/premises/nope/used", json={"used": True}).status_code == 404
        assert client.get("/api/premises/nope/first-person").status_code == 404

    def test_malformed_body(self, client, extracted):
        premise_id = extracted["inserted"][0]["id"]
        resp = client.patch(f"/api/premises/{premise_id}/used", json={"used": "perhaps"})
        assert resp.status_code == 422
        assert resp.json()["success"] is False


class TestNiches:
    def test_crud(self, client):
        created = client.post("/api/niches", json={"name": "Horror", "sub_niches": ["Gothic"]})
        assert created.status_code == 201
        niche_id = created.json()["data"]["id"]

        added = client.post(f"/api/niches/{niche_id}/subniches", json={"name": "Cosmic"})
        assert added.json()["data"]["sub_niches"] == ["Gothic", "Cosmic"]

        dup = client.post(f"/api/niches/{niche_id}/subniches", json={"name": "Cosmic"})
        assert dup.status_code == 400

        renamed = client.put(f"/api/niches/{niche_id}", json={"name": "Terror"})
        assert renamed.json()["data"]["name"] == "Terror"

        assert [n["name"] for n in client.get("/api/niches").json()["data"]] == ["Terror"]

        assert client.delete(f"/api/niches/{niche_id}").status_code == 200
        assert client.delete(f"/api/niches/{niche_id}").status_code == 404

    def test_duplicate_name(self, client):
        client.post("/api/niches", json={"name": "Horror"})
        resp = client.post("/api/niches", json={"name": "Horror"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "conflict"

    def test_update_missing(self, client):
        assert client.put("/api/niches/missing", json={"name": "x"}).status_code == 404


class TestUnexpectedErrors:
    def test_generic_500_without_internals(self, db_path):
        app = create_app(Config(database_path=db_path))
        client = TestClient(app, raise_server_exceptions=False)
        with patch(
            "premisehub.web.routes.niche_store.list_niches",
            side_effect=RuntimeError("secret detail"),
        ):
            resp = client.get("/api/niches")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "secret" not in body["message"]
