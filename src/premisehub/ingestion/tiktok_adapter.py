"""TikTok source adapter: reads profile and video pages and their embedded JSON state.

TikTok has no public content API. Profile pages ship the initial render
state as JSON inside a ``<script>`` tag (``__UNIVERSAL_DATA_FOR_REHYDRATION__``
on current markup, ``SIGI_STATE`` on older markup); the adapter reads videos
from there. When the page exposes no videos the adapter fails, unless
simulated data is explicitly allowed.
"""

from __future__ import annotations

import json
import logging
import random
import re
from datetime import datetime, timedelta, timezone

import httpx
from bs4 import BeautifulSoup

from premisehub.config import Config
from premisehub.errors import UpstreamError, ValidationError
from premisehub.ingestion.adapter import FetchOptions, SourceAdapter, SourceInfo
from premisehub.ingestion.normalize import RawItem
from premisehub.platforms import Platform

logger = logging.getLogger(__name__)

_TIKTOK_BASE = "https://www.tiktok.com"
_HANDLE_RE = re.compile(r"@([A-Za-z0-9_.]+)")
_VIDEO_RE = re.compile(r"/video/(\d+)")
_STATE_SCRIPT_IDS = ("__UNIVERSAL_DATA_FOR_REHYDRATION__", "SIGI_STATE")


def _int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _load_state(html: str) -> tuple[BeautifulSoup, dict]:
    """Parse the page and return it with the first decodable state blob."""
    soup = BeautifulSoup(html, "html.parser")
    for script_id in _STATE_SCRIPT_IDS:
        tag = soup.find("script", id=script_id)
        if tag is None or not tag.string:
            continue
        try:
            state = json.loads(tag.string)
        except ValueError:
            logger.warning("Could not decode TikTok %s state", script_id)
            continue
        if isinstance(state, dict):
            return soup, state
    return soup, {}


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name}) or soup.find("meta", attrs={"property": name})
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def _profile_items(state: dict) -> list[dict]:
    """Collect raw video records from either state layout."""
    module = state.get("ItemModule")
    if isinstance(module, dict):
        return [v for v in module.values() if isinstance(v, dict)]
    scope = state.get("__DEFAULT_SCOPE__") or {}
    detail = scope.get("webapp.user-detail") or {}
    items = detail.get("itemList")
    return [v for v in items if isinstance(v, dict)] if isinstance(items, list) else []


def _profile_user(state: dict, handle: str) -> tuple[dict, dict]:
    """Return ``(user, stats)`` for the profile, empty dicts when absent."""
    scope = state.get("__DEFAULT_SCOPE__") or {}
    info = (scope.get("webapp.user-detail") or {}).get("userInfo")
    if isinstance(info, dict):
        return info.get("user") or {}, info.get("stats") or {}
    users = (state.get("UserModule") or {}).get("users") or {}
    stats = (state.get("UserModule") or {}).get("stats") or {}
    for key, user in users.items():
        if key.lower() == handle:
            return user, stats.get(key) or {}
    return {}, {}


def _video_item(state: dict, video_id: str) -> dict | None:
    module = state.get("ItemModule")
    if isinstance(module, dict) and isinstance(module.get(video_id), dict):
        return module[video_id]
    scope = state.get("__DEFAULT_SCOPE__") or {}
    detail = scope.get("webapp.video-detail") or {}
    struct = (detail.get("itemInfo") or {}).get("itemStruct")
    return struct if isinstance(struct, dict) else None


def _video_to_item(video: dict, fallback_author: str) -> RawItem:
    video_id = str(video["id"])
    author = video.get("author")
    if isinstance(author, dict):
        author = author.get("uniqueId")
    author = author or fallback_author
    stats = video.get("stats") or {}
    desc = (video.get("desc") or "").strip()

    published_at = None
    create_time = _int(video.get("createTime"))
    if create_time:
        published_at = datetime.fromtimestamp(create_time, tz=timezone.utc).isoformat()

    return RawItem(
        external_id=video_id,
        link=f"{_TIKTOK_BASE}/@{author}/video/{video_id}",
        body_text=desc or f"TikTok video {video_id} by @{author}",
        author=author,
        published_at=published_at,
        like_count=_int(stats.get("diggCount")),
        comment_count=_int(stats.get("commentCount")),
        view_count=_int(stats.get("playCount")),
    )


def simulated_items(handle: str, count: int, now: datetime | None = None) -> list[RawItem]:
    """Build placeholder videos for a profile.

    Ids and counters come from a generator seeded with the handle, so repeated
    runs yield the same links and re-ingestion stays idempotent.
    """
    now = now or datetime.now(timezone.utc)
    rng = random.Random(handle)
    items: list[RawItem] = []
    for i in range(count):
        video_id = str(rng.randrange(10**18, 10**19))
        published = now - timedelta(days=rng.randrange(30))
        items.append(
            RawItem(
                external_id=video_id,
                link=f"{_TIKTOK_BASE}/@{handle}/video/{video_id}",
                body_text=(
                    f"Vídeo #{i + 1} do perfil @{handle}. Este é um exemplo de descrição "
                    "que seria extraída do TikTok. Hashtags populares: #tiktok #viral #trending"
                ),
                short_description=(
                    f"Vídeo #{i + 1} do perfil @{handle}. Este é um exemplo de descrição..."
                ),
                author=handle,
                published_at=published.isoformat(),
                like_count=rng.randint(100, 10_099),
                comment_count=rng.randint(10, 1_009),
                simulated=True,
            )
        )
    return items


class TikTokAdapter(SourceAdapter):
    """Adapter for TikTok profiles."""

    platform = Platform.TIKTOK
    sort_orders = ("likes", "date")
    default_sort = "likes"
    default_limit = 10
    max_limit = 50

    def __init__(self, http_client: httpx.Client, allow_simulated: bool = False) -> None:
        super().__init__(http_client)
        self._allow_simulated = allow_simulated

    @classmethod
    def from_config(cls, config: Config, http_client: httpx.Client) -> TikTokAdapter:
        return cls(http_client, allow_simulated=config.tiktok_allow_simulated)

    def parse_locator(self, url: str) -> str:
        match = _HANDLE_RE.search(url or "")
        if match is None:
            raise ValidationError(
                "Invalid TikTok URL; expected a profile URL like https://www.tiktok.com/@<user>"
            )
        return match.group(1).lower()

    def canonical_url(self, locator: str) -> str:
        return f"{_TIKTOK_BASE}/@{locator}"

    def _fetch(self, locator: str, options: FetchOptions) -> tuple[SourceInfo, list[RawItem]]:
        resp = self._get(
            self.canonical_url(locator),
            not_found=f"TikTok profile @{locator} not found",
        )
        soup, state = _load_state(resp.text)
        source_info = self._profile_info(soup, state, locator)

        items: list[RawItem] = []
        for video in _profile_items(state):
            try:
                items.append(_video_to_item(video, locator))
            except KeyError:
                logger.warning("Skipping TikTok video without id on @%s", locator)

        if not items:
            if not self._allow_simulated:
                raise UpstreamError(f"TikTok did not expose any videos for @{locator}")
            logger.warning(
                "No videos exposed for @%s; returning %d simulated item(s)",
                locator, options.limit,
            )
            items = simulated_items(locator, options.limit)

        if options.sort_order == "likes":
            items.sort(key=lambda item: item.like_count, reverse=True)
        else:
            items.sort(key=lambda item: item.published_at or "", reverse=True)
        return source_info, items[: options.limit]

    def _profile_info(self, soup: BeautifulSoup, state: dict, locator: str) -> SourceInfo:
        user, stats = _profile_user(state, locator)
        description = (
            (user.get("signature") or "").strip()
            or _meta_content(soup, "description")
            or f"TikTok profile of @{locator}"
        )
        return SourceInfo(
            platform=self.platform,
            external_id=str(user.get("id") or locator),
            name=user.get("nickname") or locator,
            url=self.canonical_url(locator),
            description=description,
            extra={
                "username": locator,
                "followers": stats.get("followerCount"),
                "following": stats.get("followingCount"),
                "likes": stats.get("heartCount"),
                "videos": stats.get("videoCount"),
            },
        )

    def _fetch_single(self, url: str) -> RawItem:
        match = _VIDEO_RE.search(url or "")
        if match is None:
            raise ValidationError(
                "Invalid TikTok video URL; expected a URL containing /video/<id>"
            )
        video_id = match.group(1)
        handle = self.parse_locator(url)
        link = f"{_TIKTOK_BASE}/@{handle}/video/{video_id}"

        resp = self._get(link, not_found=f"TikTok video {video_id} not found")
        soup, state = _load_state(resp.text)
        video = _video_item(state, video_id)
        if video is not None:
            return _video_to_item(video, handle)

        description = _meta_content(soup, "og:description") or _meta_content(soup, "description")
        if description:
            return RawItem(
                external_id=video_id,
                link=link,
                body_text=description,
                author=handle,
            )
        raise UpstreamError(f"TikTok did not expose data for video {video_id}")
