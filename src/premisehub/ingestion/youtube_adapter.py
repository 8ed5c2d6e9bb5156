"""YouTube source adapter: fetches a channel's videos through the Data API."""

from __future__ import annotations

import logging
import re

import httpx

from premisehub.config import Config
from premisehub.errors import NotFoundError, UpstreamError, ValidationError
from premisehub.ingestion.adapter import FetchOptions, SourceAdapter, SourceInfo
from premisehub.ingestion.normalize import RawItem
from premisehub.ingestion.youtube_client import MAX_RESULTS_PER_PAGE, YouTubeClient
from premisehub.platforms import Platform

logger = logging.getLogger(__name__)

_CHANNEL_RE = re.compile(r"youtube\.com/channel/([A-Za-z0-9_-]+)")
_VANITY_RE = re.compile(r"youtube\.com/(?:c/|user/|@)")
_VIDEO_RES = (
    re.compile(r"youtube\.com/watch\?(?:.*&)?v=([A-Za-z0-9_-]+)"),
    re.compile(r"youtu\.be/([A-Za-z0-9_-]+)"),
    re.compile(r"youtube\.com/shorts/([A-Za-z0-9_-]+)"),
)


def _int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _video_to_item(video: dict) -> RawItem:
    video_id = video["id"]
    snippet = video["snippet"]
    stats = video.get("statistics") or {}
    title = (snippet.get("title") or "").strip()
    description = (snippet.get("description") or "").strip()
    return RawItem(
        external_id=video_id,
        link=f"https://www.youtube.com/watch?v={video_id}",
        body_text=description or title,
        title=title,
        author=snippet.get("channelTitle") or "",
        published_at=snippet.get("publishedAt"),
        like_count=_int(stats.get("likeCount")),
        comment_count=_int(stats.get("commentCount")),
        view_count=_int(stats.get("viewCount")),
    )


class YouTubeAdapter(SourceAdapter):
    """Adapter for YouTube channels."""

    platform = Platform.YOUTUBE
    sort_orders = ("viewCount", "date", "rating", "relevance")
    default_sort = "viewCount"
    default_limit = 20
    max_limit = MAX_RESULTS_PER_PAGE

    def __init__(self, http_client: httpx.Client, client: YouTubeClient) -> None:
        super().__init__(http_client)
        self._client = client

    @classmethod
    def from_config(cls, config: Config, http_client: httpx.Client) -> YouTubeAdapter | None:
        if not config.youtube_api_key:
            logger.warning("YOUTUBE_API_KEY is not set; YouTube is disabled")
            return None
        client = YouTubeClient(config.youtube_api_key, http_client, config.youtube_api_base_url)
        return cls(http_client, client)

    def parse_locator(self, url: str) -> str:
        url = url or ""
        match = _CHANNEL_RE.search(url)
        if match is not None:
            return match.group(1)
        if _VANITY_RE.search(url):
            raise ValidationError(
                "Custom YouTube channel URLs are not supported; use the full channel URL "
                "in the form https://www.youtube.com/channel/<channel id>"
            )
        raise ValidationError(
            "Invalid YouTube URL; expected https://www.youtube.com/channel/<channel id>"
        )

    def canonical_url(self, locator: str) -> str:
        return f"https://www.youtube.com/channel/{locator}"

    def _fetch(self, locator: str, options: FetchOptions) -> tuple[SourceInfo, list[RawItem]]:
        channel = self._client.get_channel(locator)
        if channel is None:
            raise NotFoundError(f"YouTube channel {locator} not found")
        source_info = self._channel_info(channel)

        video_ids = self._client.search_channel_videos(
            locator, options.limit, options.sort_order
        )
        videos = self._client.get_videos(video_ids)

        # videos.list does not promise search order; keep the ranking
        rank = {vid: i for i, vid in enumerate(video_ids)}
        videos.sort(key=lambda v: rank.get(v.get("id"), len(rank)))

        items: list[RawItem] = []
        for video in videos:
            try:
                items.append(_video_to_item(video))
            except KeyError:
                logger.warning("Skipping YouTube video without id/snippet on %s", locator)
        return source_info, items

    def _lookup_name(self, locator: str) -> str | None:
        channel = self._client.get_channel(locator)
        if channel is None:
            raise NotFoundError(f"YouTube channel {locator} not found")
        return (channel.get("snippet") or {}).get("title")

    def _channel_info(self, channel: dict) -> SourceInfo:
        snippet = channel.get("snippet") or {}
        stats = channel.get("statistics") or {}
        thumbnail = ((snippet.get("thumbnails") or {}).get("high") or {}).get("url")
        return SourceInfo(
            platform=self.platform,
            external_id=channel["id"],
            name=snippet.get("title") or channel["id"],
            url=self.canonical_url(channel["id"]),
            description=snippet.get("description") or "",
            extra={
                "subscribers": _int(stats.get("subscriberCount")),
                "total_views": _int(stats.get("viewCount")),
                "total_videos": _int(stats.get("videoCount")),
                "thumbnail": thumbnail,
            },
        )

    def _fetch_single(self, url: str) -> RawItem:
        video_id = None
        for pattern in _VIDEO_RES:
            match = pattern.search(url or "")
            if match is not None:
                video_id = match.group(1)
                break
        if video_id is None:
            raise ValidationError(
                "Invalid YouTube video URL; expected a watch?v=, youtu.be/ or /shorts/ URL"
            )
        videos = self._client.get_videos([video_id])
        if not videos:
            raise NotFoundError(f"YouTube video {video_id} not found")
        try:
            return _video_to_item(videos[0])
        except KeyError:
            raise UpstreamError("Could not read the YouTube video") from None
