"""Reddit source adapter: fetches posts from a subreddit's public JSON listing."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from premisehub.errors import NotFoundError, UpstreamError, ValidationError
from premisehub.ingestion.adapter import FetchOptions, SourceAdapter, SourceInfo
from premisehub.ingestion.normalize import RawItem
from premisehub.platforms import Platform

logger = logging.getLogger(__name__)

_REDDIT_BASE = "https://www.reddit.com"
_SUBREDDIT_RE = re.compile(r"/r/([A-Za-z0-9_]+)")


def _post_to_item(post: dict) -> RawItem:
    permalink = post["permalink"]
    title = (post.get("title") or "").strip()
    selftext = (post.get("selftext") or "").strip()

    published_at = None
    created_utc = post.get("created_utc")
    if created_utc:
        published_at = datetime.fromtimestamp(created_utc, tz=timezone.utc).isoformat()

    return RawItem(
        external_id=post["id"],
        link=f"{_REDDIT_BASE}{permalink}",
        body_text=selftext or title,
        title=title,
        author=post.get("author") or "",
        published_at=published_at,
        like_count=post.get("ups") or 0,
        comment_count=post.get("num_comments") or 0,
    )


class RedditAdapter(SourceAdapter):
    """Adapter for Reddit communities (subreddits)."""

    platform = Platform.REDDIT
    sort_orders = ("hot", "new", "top")
    default_sort = "hot"
    default_limit = 25
    max_limit = 100

    def parse_locator(self, url: str) -> str:
        match = _SUBREDDIT_RE.search(url or "")
        if match is None:
            raise ValidationError(
                "Invalid Reddit URL; expected a community URL like https://www.reddit.com/r/<name>"
            )
        return match.group(1).lower()

    def canonical_url(self, locator: str) -> str:
        return f"{_REDDIT_BASE}/r/{locator}"

    def _fetch(self, locator: str, options: FetchOptions) -> tuple[SourceInfo, list[RawItem]]:
        source_info = self._fetch_about(locator)

        listing = self._get_json(
            f"{_REDDIT_BASE}/r/{locator}/{options.sort_order}.json",
            params={"limit": options.limit},
            not_found=f"Subreddit r/{locator} not found",
        )
        children = (listing.get("data") or {}).get("children")
        if not isinstance(children, list):
            raise UpstreamError(f"Could not read posts of r/{locator}")

        items: list[RawItem] = []
        for child in children[: options.limit]:
            post = child.get("data") or {}
            try:
                items.append(_post_to_item(post))
            except KeyError:
                logger.warning("Skipping Reddit post without id/permalink in r/%s", locator)
        return source_info, items

    def _fetch_about(self, locator: str) -> SourceInfo:
        about = self._get_json(
            f"{_REDDIT_BASE}/r/{locator}/about.json",
            not_found=f"Subreddit r/{locator} not found",
        )
        # Reddit answers unknown communities with a search listing instead of a t5 record
        if about.get("kind") != "t5" or not about.get("data"):
            raise NotFoundError(f"Subreddit r/{locator} not found")
        data = about["data"]
        display_name = data.get("display_name") or locator
        created_utc = data.get("created_utc")
        return SourceInfo(
            platform=self.platform,
            external_id=data.get("id") or locator,
            name=display_name,
            url=self.canonical_url(display_name.lower()),
            description=data.get("public_description") or "",
            extra={
                "title": data.get("title") or "",
                "subscribers": data.get("subscribers") or 0,
                "active_users": data.get("active_user_count") or 0,
                "created_at": (
                    datetime.fromtimestamp(created_utc, tz=timezone.utc).isoformat()
                    if created_utc
                    else None
                ),
                "nsfw": bool(data.get("over18")),
            },
        )

    def _fetch_single(self, url: str) -> RawItem:
        if "/comments/" not in (url or ""):
            raise ValidationError(
                "Invalid Reddit post URL; expected a URL containing /comments/"
            )
        start = url.find("/r/")
        if start < 0:
            start = url.find("/comments/")
        path = url[start:].split("?")[0].split("#")[0].rstrip("/")
        payload = self._get_json(
            f"{_REDDIT_BASE}{path}.json",
            not_found="Reddit post not found",
        )
        try:
            post = payload[0]["data"]["children"][0]["data"]
        except (KeyError, IndexError, TypeError):
            raise UpstreamError("Could not read the Reddit post") from None
        return _post_to_item(post)
