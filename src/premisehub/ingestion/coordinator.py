"""Ingestion coordinator: fetch a source through its adapter and persist new premises."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field

from premisehub.errors import (
    NotFoundError,
    PlatformDisabledError,
    TypeMismatchError,
    UpstreamError,
)
from premisehub.ingestion.adapter import FetchResult, SourceAdapter
from premisehub.ingestion.normalize import SourceSnapshot, normalize
from premisehub.platforms import Platform
from premisehub.storage.premises import insert_premise
from premisehub.storage.sources import get_source, mark_extracted

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Counts for one extraction run. ``inserted`` holds the new premises, API shape."""

    inserted_count: int = 0
    inserted: list[dict] = field(default_factory=list)
    duplicate_count: int = 0
    failed_count: int = 0
    last_extraction_at: str | None = None

    def as_dict(self) -> dict:
        return {
            "inserted_count": self.inserted_count,
            "inserted": self.inserted,
            "duplicate_count": self.duplicate_count,
            "failed_count": self.failed_count,
            "last_extraction_at": self.last_extraction_at,
        }


def resolve_adapter(
    adapters: dict[Platform, SourceAdapter], platform: Platform
) -> SourceAdapter:
    """Return the enabled adapter for ``platform`` or raise PlatformDisabledError."""
    adapter = adapters.get(platform)
    if adapter is None:
        raise PlatformDisabledError(
            f"The {platform.value} integration is disabled on this server"
        )
    return adapter


def _raise_on_failure(result: FetchResult) -> None:
    if not result.success:
        raise result.error


def ingest(
    database_path: str,
    source_id: str,
    adapters: dict[Platform, SourceAdapter],
    options: dict | None = None,
    expected_platform: Platform | None = None,
) -> IngestionResult:
    """Fetch a registered source and insert the premises whose links are new.

    Raises NotFoundError if the source does not exist, TypeMismatchError if
    ``expected_platform`` is given and differs from the source's platform,
    PlatformDisabledError if that platform has no adapter, and the adapter's
    own error when the fetch fails. In every one of those cases the store is
    left untouched, including ``last_extraction_at``.

    Items are handled one at a time in adapter order; a normalization or
    persistence failure of one item is counted and logged, and the run
    continues with the next.
    """
    source = get_source(database_path, source_id)
    if source is None:
        raise NotFoundError("Source not found")

    platform = Platform(source["platform"])
    if expected_platform is not None and platform != expected_platform:
        raise TypeMismatchError(
            f"Source {source_id} is a {platform.value} source, not {expected_platform.value}"
        )

    adapter = resolve_adapter(adapters, platform)
    fetched = adapter.fetch_items(source["url"], options)
    _raise_on_failure(fetched)

    snapshot = SourceSnapshot.from_source(source)
    result = IngestionResult()
    for raw in fetched.items:
        try:
            premise = normalize(raw, snapshot)
            if insert_premise(database_path, premise):
                result.inserted_count += 1
                result.inserted.append(premise.as_dict())
            else:
                result.duplicate_count += 1
        except ValueError:
            logger.warning("Skipping invalid item %s from %s", raw.link, source["url"], exc_info=True)
            result.failed_count += 1
        except sqlite3.Error:
            logger.exception("Failed to persist item %s from %s", raw.link, source["url"])
            result.failed_count += 1

    if any(raw.simulated for raw in fetched.items):
        logger.warning("Source %s produced simulated items", source_id)

    result.last_extraction_at = mark_extracted(database_path, source_id)
    logger.info(
        "Extraction of %s complete: %d new, %d duplicates, %d failed",
        source["url"],
        result.inserted_count,
        result.duplicate_count,
        result.failed_count,
    )
    return result


def analyze(adapter: SourceAdapter, url: str, options: dict | None = None) -> dict:
    """Fetch a source URL and return its normalized premises without persisting.

    The returned premises carry fresh ids that are never stored; the source
    snapshot is built from the upstream metadata.
    """
    fetched = adapter.fetch_items(url, options)
    _raise_on_failure(fetched)

    info = fetched.source_info
    snapshot = SourceSnapshot(
        id="",
        platform=adapter.platform.value,
        url=info.url if info is not None else url,
        name=info.name if info is not None else "",
    )
    premises: list[dict] = []
    for raw in fetched.items:
        try:
            premises.append(normalize(raw, snapshot).as_dict())
        except ValueError:
            logger.warning("Skipping invalid item %s in preview", raw.link, exc_info=True)
    return {
        "source": info.as_dict() if info is not None else None,
        "premises": premises,
    }


def preview_item(adapter: SourceAdapter, url: str) -> dict:
    """Fetch one video or post and return it normalized, without persisting."""
    fetched = adapter.fetch_item(url)
    _raise_on_failure(fetched)
    snapshot = SourceSnapshot(id="", platform=adapter.platform.value, url="", name="")
    try:
        return normalize(fetched.items[0], snapshot).as_dict()
    except ValueError as exc:
        raise UpstreamError(f"Unreadable item returned by {adapter.name}") from exc
