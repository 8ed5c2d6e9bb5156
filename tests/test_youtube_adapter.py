"""Tests for the YouTube Data API client and adapter."""

from __future__ import annotations

import httpx
import pytest

from premisehub.config import Config
from premisehub.errors import NotFoundError, UpstreamError, ValidationError
from premisehub.ingestion.youtube_adapter import YouTubeAdapter
from premisehub.ingestion.youtube_client import YouTubeClient

_CHANNEL_ID = "UC_x5XG1OV2P6uZZ5FSM9Ttw"

_CHANNEL = {
    "id": _CHANNEL_ID,
    "snippet": {
        "title": "Story Channel",
        "description": "Short stories every week.",
        "thumbnails": {"high": {"url": "https://i.ytimg.com/high.jpg"}},
    },
    "statistics": {"subscriberCount": "1200", "viewCount": "99000", "videoCount": "42"},
}


def _video(video_id, description="A robot learns to paint.", views="1000", likes="50",
           comments="4", title="Robot"):
    return {
        "id": video_id,
        "snippet": {
            "title": title,
            "description": description,
            "channelTitle": "Story Channel",
            "publishedAt": "2025-02-01T10:00:00Z",
        },
        "statistics": {"viewCount": views, "likeCount": likes, "commentCount": comments},
    }


def _handler(channels=None, search_ids=(), videos=(), seen=None):
    channels = [_CHANNEL] if channels is None else channels

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        resource = request.url.path.rsplit("/", 1)[-1]
        if resource == "channels":
            return httpx.Response(200, json={"items": channels})
        if resource == "search":
            return httpx.Response(
                200, json={"items": [{"id": {"kind": "youtube#video", "videoId": v}}
                                     for v in search_ids]}
            )
        if resource == "videos":
            wanted = request.url.params["id"].split(",")
            return httpx.Response(
                200, json={"items": [v for v in videos if v["id"] in wanted]}
            )
        return httpx.Response(404)
    return handler


def _adapter(handler) -> YouTubeAdapter:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return YouTubeAdapter(http_client, YouTubeClient("test-key", http_client))


class TestParseLocator:
    def test_channel_url(self):
        adapter = _adapter(_handler())
        url = f"https://www.youtube.com/channel/{_CHANNEL_ID}/videos"
        assert adapter.parse_locator(url) == _CHANNEL_ID

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/c/StoryChannel",
            "https://www.youtube.com/user/storychannel",
            "https://www.youtube.com/@storychannel",
        ],
    )
    def test_vanity_forms_rejected(self, url):
        with pytest.raises(ValidationError, match="not supported"):
            _adapter(_handler()).parse_locator(url)

    def test_other_urls_rejected(self):
        with pytest.raises(ValidationError):
            _adapter(_handler()).parse_locator("https://vimeo.com/123")


class TestFetchItems:
    def test_maps_videos_in_search_order(self):
        seen: list[httpx.Request] = []
        videos = [_video("v1", views="10"), _video("v2", views="20", description="")]
        adapter = _adapter(_handler(search_ids=("v2", "v1"), videos=videos, seen=seen))

        result = adapter.fetch_items(f"https://www.youtube.com/channel/{_CHANNEL_ID}")

        assert result.success is True
        info = result.source_info
        assert info.name == "Story Channel"
        assert info.url == f"https://www.youtube.com/channel/{_CHANNEL_ID}"
        assert info.extra["subscribers"] == 1200
        assert info.extra["total_videos"] == 42

        assert [i.external_id for i in result.items] == ["v2", "v1"]
        v2, v1 = result.items
        assert v1.link == "https://www.youtube.com/watch?v=v1"
        assert v1.body_text == "A robot learns to paint."
        assert (v1.view_count, v1.like_count, v1.comment_count) == (10, 50, 4)
        assert v1.published_at == "2025-02-01T10:00:00Z"
        assert v2.body_text == "Robot"

        search = next(r for r in seen if r.url.path.endswith("/search"))
        assert search.url.params["channelId"] == _CHANNEL_ID
        assert search.url.params["order"] == "viewCount"
        assert search.url.params["maxResults"] == "20"
        assert search.url.params["type"] == "video"
        assert all(r.url.params["key"] == "test-key" for r in seen)

    def test_sort_and_limit(self):
        seen: list[httpx.Request] = []
        adapter = _adapter(_handler(seen=seen))
        adapter.fetch_items(
            f"https://www.youtube.com/channel/{_CHANNEL_ID}",
            {"sort_order": "date", "limit": 80},
        )
        search = next(r for r in seen if r.url.path.endswith("/search"))
        assert search.url.params["order"] == "date"
        assert search.url.params["maxResults"] == "50"

    def test_missing_statistics_default_to_zero(self):
        video = _video("v1")
        del video["statistics"]
        adapter = _adapter(_handler(search_ids=("v1",), videos=[video]))
        item = adapter.fetch_items(f"https://www.youtube.com/channel/{_CHANNEL_ID}").items[0]
        assert (item.view_count, item.like_count, item.comment_count) == (0, 0, 0)

    def test_unknown_channel(self):
        adapter = _adapter(_handler(channels=[]))
        result = adapter.fetch_items(f"https://www.youtube.com/channel/{_CHANNEL_ID}")
        assert isinstance(result.error, NotFoundError)

    def test_list_payload_is_upstream_error(self):
        adapter = _adapter(lambda request: httpx.Response(200, json=[_CHANNEL]))
        result = adapter.fetch_items(f"https://www.youtube.com/channel/{_CHANNEL_ID}")
        assert result.success is False
        assert isinstance(result.error, UpstreamError)

    def test_quota_error(self):
        adapter = _adapter(lambda request: httpx.Response(403, json={"error": "quota"}))
        result = adapter.fetch_items(f"https://www.youtube.com/channel/{_CHANNEL_ID}")
        assert isinstance(result.error, UpstreamError)
        assert "403" in result.message

    def test_search_without_items_is_upstream_error(self):
        def handler(request):
            if request.url.path.endswith("/channels"):
                return httpx.Response(200, json={"items": [_CHANNEL]})
            return httpx.Response(200, json={"kind": "youtube#searchListResponse"})

        result = _adapter(handler).fetch_items(f"https://www.youtube.com/channel/{_CHANNEL_ID}")
        assert isinstance(result.error, UpstreamError)


class TestFetchItem:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=abc123",
            "https://www.youtube.com/watch?feature=share&v=abc123",
            "https://youtu.be/abc123",
            "https://www.youtube.com/shorts/abc123",
        ],
    )
    def test_video_url_forms(self, url):
        adapter = _adapter(_handler(videos=[_video("abc123")]))
        result = adapter.fetch_item(url)
        assert result.success is True
        assert result.items[0].link == "https://www.youtube.com/watch?v=abc123"

    def test_unknown_video(self):
        result = _adapter(_handler()).fetch_item("https://youtu.be/missing")
        assert isinstance(result.error, NotFoundError)

    def test_invalid_video_url(self):
        result = _adapter(_handler()).fetch_item("https://www.youtube.com/feed/trending")
        assert isinstance(result.error, ValidationError)


class TestFromConfig:
    def test_disabled_without_api_key(self):
        config = Config(database_path="x.db")
        assert YouTubeAdapter.from_config(config, httpx.Client()) is None

    def test_built_with_api_key(self):
        config = Config(database_path="x.db", youtube_api_key="k")
        assert isinstance(YouTubeAdapter.from_config(config, httpx.Client()), YouTubeAdapter)


class TestSourceName:
    def test_uses_channel_title(self):
        assert _adapter(_handler()).source_name(_CHANNEL_ID) == "Story Channel"

    def test_untitled_channel_falls_back_to_id(self):
        channel = {"id": _CHANNEL_ID, "snippet": {}}
        assert _adapter(_handler(channels=[channel])).source_name(_CHANNEL_ID) == _CHANNEL_ID

    def test_unknown_channel(self):
        with pytest.raises(NotFoundError):
            _adapter(_handler(channels=[])).source_name(_CHANNEL_ID)

    def test_list_payload(self):
        adapter = _adapter(lambda request: httpx.Response(200, json=[_CHANNEL]))
        with pytest.raises(UpstreamError):
            adapter.source_name(_CHANNEL_ID)
