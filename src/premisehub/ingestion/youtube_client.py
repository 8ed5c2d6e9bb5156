"""Thin client for the YouTube Data API v3.

Built once at startup from configuration and handed to the YouTube adapter,
so the API key and HTTP session are explicit dependencies.
"""

from __future__ import annotations

import httpx

from premisehub.ingestion.adapter import http_get_json

DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"
MAX_RESULTS_PER_PAGE = 50


class YouTubeClient:
    """Read-only access to the channels, search, and videos resources."""

    def __init__(
        self,
        api_key: str,
        http_client: httpx.Client,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    def _call(self, resource: str, params: dict, not_found: str) -> dict:
        return http_get_json(
            self._http,
            f"{self._base_url}/{resource}",
            service="YouTube API",
            params={**params, "key": self._api_key},
            not_found=not_found,
        )

    def get_channel(self, channel_id: str) -> dict | None:
        """Return the channel resource (snippet + statistics), or None if unknown."""
        data = self._call(
            "channels",
            {"part": "snippet,statistics,contentDetails", "id": channel_id},
            not_found="Channel not found",
        )
        items = data.get("items") or []
        return items[0] if items else None

    def search_channel_videos(self, channel_id: str, max_results: int, order: str) -> list[str]:
        """Return video ids from a channel, ranked by ``order``."""
        data = self._call(
            "search",
            {
                "part": "snippet",
                "channelId": channel_id,
                "maxResults": min(max_results, MAX_RESULTS_PER_PAGE),
                "order": order,
                "type": "video",
            },
            not_found="Channel not found",
        )
        if "items" not in data:
            raise ValueError("search response has no items")
        ids: list[str] = []
        for item in data["items"]:
            video_id = (item.get("id") or {}).get("videoId")
            if video_id:
                ids.append(video_id)
        return ids

    def get_videos(self, video_ids: list[str]) -> list[dict]:
        """Return video resources (snippet + statistics) for the given ids."""
        if not video_ids:
            return []
        data = self._call(
            "videos",
            {"part": "snippet,statistics,contentDetails", "id": ",".join(video_ids)},
            not_found="Video not found",
        )
        return data.get("items") or []
