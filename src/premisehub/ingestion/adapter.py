"""Source adapter interface and the structured result every adapter returns."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx

from premisehub.config import Config
from premisehub.errors import NotFoundError, PremiseHubError, UpstreamError, ValidationError
from premisehub.ingestion.normalize import RawItem
from premisehub.platforms import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceInfo:
    """Upstream metadata about a channel, community, or profile."""

    platform: Platform
    external_id: str
    name: str
    url: str
    description: str = ""
    extra: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "platform": self.platform.value,
            "external_id": self.external_id,
            "name": self.name,
            "url": self.url,
            "description": self.description,
            **self.extra,
        }


@dataclass(frozen=True)
class FetchOptions:
    """Validated fetch options."""

    sort_order: str
    limit: int


@dataclass(frozen=True)
class FetchResult:
    """Outcome of an adapter call. Failures carry the error instead of raising it."""

    success: bool
    message: str = ""
    source_info: SourceInfo | None = None
    items: list[RawItem] = field(default_factory=list)
    error: PremiseHubError | None = None

    @classmethod
    def ok(cls, source_info: SourceInfo | None, items: list[RawItem]) -> FetchResult:
        return cls(
            success=True,
            message=f"Fetched {len(items)} item(s)",
            source_info=source_info,
            items=items,
        )

    @classmethod
    def failure(cls, error: PremiseHubError) -> FetchResult:
        return cls(success=False, message=error.message, error=error)


class SourceAdapter(ABC):
    """Abstract base class for platform adapters.

    An adapter turns a user-supplied URL into a platform locator, fetches
    upstream data over HTTP, and flattens it into RawItems. It never touches
    the store. The public ``fetch_items``/``fetch_item`` methods always
    return a FetchResult; errors raised by the platform-specific hooks are
    captured there.
    """

    platform: Platform
    sort_orders: tuple[str, ...] = ()
    default_sort: str = ""
    default_limit: int = 20
    max_limit: int = 100

    def __init__(self, http_client: httpx.Client) -> None:
        self._http = http_client

    @classmethod
    def from_config(cls, config: Config, http_client: httpx.Client) -> SourceAdapter | None:
        """Build the adapter from application config. None means not configured."""
        return cls(http_client)

    @property
    def name(self) -> str:
        """Adapter name, the platform's string value."""
        return self.platform.value

    # -- hooks ---------------------------------------------------------------

    @abstractmethod
    def parse_locator(self, url: str) -> str:
        """Extract the platform identifier from a URL. Raises ValidationError."""

    @abstractmethod
    def canonical_url(self, locator: str) -> str:
        """Build the canonical source URL for a locator."""

    @abstractmethod
    def _fetch(self, locator: str, options: FetchOptions) -> tuple[SourceInfo, list[RawItem]]:
        """Fetch source metadata and items for a locator."""

    @abstractmethod
    def _fetch_single(self, url: str) -> RawItem:
        """Fetch one video or post by its URL."""

    def _lookup_name(self, locator: str) -> str | None:
        """Upstream display name for a new source. None keeps the locator."""
        return None

    # -- public API ----------------------------------------------------------

    def resolve_options(self, options: dict | None = None) -> FetchOptions:
        """Apply defaults and validate ``sort_order`` and ``limit``."""
        options = options or {}
        sort_order = options.get("sort_order") or self.default_sort
        if sort_order not in self.sort_orders:
            raise ValidationError(
                f"Invalid sort order '{sort_order}' for {self.name}; "
                f"must be one of: {', '.join(self.sort_orders)}"
            )
        limit = options.get("limit")
        if limit is None:
            limit = self.default_limit
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            raise ValidationError(f"limit must be an integer, got '{limit}'") from None
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        return FetchOptions(sort_order=sort_order, limit=min(limit, self.max_limit))

    def source_name(self, locator: str) -> str:
        """Default name for a source registered without one.

        Raises the adapter's domain errors; an unexpected upstream shape
        becomes UpstreamError.
        """
        try:
            name = self._lookup_name(locator)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            raise UpstreamError(f"Unexpected response from {self.name}") from exc
        return name or locator

    def fetch_items(self, url: str, options: dict | None = None) -> FetchResult:
        """Fetch source metadata and up to ``limit`` items for a source URL."""
        try:
            locator = self.parse_locator(url)
            resolved = self.resolve_options(options)
            source_info, items = self._fetch(locator, resolved)
        except PremiseHubError as exc:
            logger.warning("%s fetch failed for %s: %s", self.name, url, exc.message)
            return FetchResult.failure(exc)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError):
            logger.exception("%s returned an unexpected shape for %s", self.name, url)
            return FetchResult.failure(
                UpstreamError(f"Unexpected response from {self.name}")
            )
        logger.info("Fetched %d item(s) from %s %s", len(items), self.name, locator)
        return FetchResult.ok(source_info, items)

    def fetch_item(self, url: str) -> FetchResult:
        """Fetch a single video or post by URL."""
        try:
            item = self._fetch_single(url)
        except PremiseHubError as exc:
            logger.warning("%s item fetch failed for %s: %s", self.name, url, exc.message)
            return FetchResult.failure(exc)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError):
            logger.exception("%s returned an unexpected shape for %s", self.name, url)
            return FetchResult.failure(
                UpstreamError(f"Unexpected response from {self.name}")
            )
        return FetchResult.ok(None, [item])

    # -- HTTP helpers --------------------------------------------------------

    def _get(self, url: str, *, params: dict | None = None, not_found: str = "Not found"):
        return http_get(self._http, url, service=self.name, params=params, not_found=not_found)

    def _get_json(self, url: str, *, params: dict | None = None, not_found: str = "Not found"):
        return http_get_json(
            self._http, url, service=self.name, params=params, not_found=not_found
        )


def http_get(
    client: httpx.Client,
    url: str,
    *,
    service: str,
    params: dict | None = None,
    not_found: str = "Not found",
) -> httpx.Response:
    """GET a URL, translating transport and status failures into domain errors.

    404 becomes NotFoundError; timeouts, connection failures and any other
    error status become UpstreamError. Upstream response bodies are not
    copied into the error message.
    """
    try:
        resp = client.get(url, params=params, follow_redirects=True)
    except httpx.TimeoutException as exc:
        raise UpstreamError(f"{service} request timed out") from exc
    except httpx.HTTPError as exc:
        raise UpstreamError(f"{service} request failed: {exc.__class__.__name__}") from exc
    if resp.status_code == 404:
        raise NotFoundError(not_found)
    if resp.is_error:
        raise UpstreamError(f"{service} responded with HTTP {resp.status_code}")
    return resp


def http_get_json(
    client: httpx.Client,
    url: str,
    *,
    service: str,
    params: dict | None = None,
    not_found: str = "Not found",
):
    """GET a URL and decode its JSON body. Raises UpstreamError on invalid JSON."""
    resp = http_get(client, url, service=service, params=params, not_found=not_found)
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamError(f"{service} returned invalid JSON") from exc
