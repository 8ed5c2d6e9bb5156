"""Source registry: create, look up, list, and delete registered origins."""

from __future__ import annotations

import logging
import sqlite3
import uuid

from premisehub.errors import ConflictError
from premisehub.platforms import Platform
from premisehub.storage.connection import get_connection, is_unique_violation, utc_now

logger = logging.getLogger(__name__)


def _row_to_source(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "platform": row["platform"],
        "url": row["url"],
        "name": row["name"],
        "registered_at": row["registered_at"],
        "last_extraction_at": row["last_extraction_at"],
    }


def create_source(database_path: str, platform: Platform, url: str, name: str) -> dict:
    """Register a new source. Raises ConflictError if the URL is already registered."""
    source_id = str(uuid.uuid4())
    now = utc_now()

    with get_connection(database_path) as conn:
        existing = conn.execute("SELECT id FROM sources WHERE url = ?", (url,)).fetchone()
        if existing is not None:
            raise ConflictError(f"Source already registered: {url}")
        try:
            conn.execute(
                "INSERT INTO sources (id, platform, url, name, registered_at, last_extraction_at) "
                "VALUES (?, ?, ?, ?, ?, NULL)",
                (source_id, platform.value, url, name, now),
            )
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc, "url"):
                raise ConflictError(f"Source already registered: {url}") from exc
            raise

    logger.info("Registered %s source %s (%s)", platform.value, source_id, url)
    return {
        "id": source_id,
        "platform": platform.value,
        "url": url,
        "name": name,
        "registered_at": now,
        "last_extraction_at": None,
    }


def get_source(database_path: str, source_id: str) -> dict | None:
    """Return a single source by id, or None."""
    with get_connection(database_path) as conn:
        row = conn.execute("SELECT * FROM sources WHERE id = ?", (source_id,)).fetchone()
    return _row_to_source(row) if row is not None else None


def list_sources(database_path: str, platform: Platform | None = None) -> list[dict]:
    """Return all sources, most recently registered first."""
    sql = "SELECT * FROM sources"
    params: list[object] = []
    if platform is not None:
        sql += " WHERE platform = ?"
        params.append(platform.value)
    sql += " ORDER BY registered_at DESC, id"

    with get_connection(database_path) as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_source(r) for r in rows]


def delete_source(database_path: str, source_id: str) -> int | None:
    """Delete a source and every premise extracted from it.

    Returns the number of premises removed, or None when the source does
    not exist. Both deletes run in one transaction so no orphans remain.
    """
    with get_connection(database_path) as conn:
        row = conn.execute("SELECT id FROM sources WHERE id = ?", (source_id,)).fetchone()
        if row is None:
            return None
        removed = conn.execute(
            "DELETE FROM premises WHERE source_id = ?", (source_id,)
        ).rowcount
        conn.execute("DELETE FROM sources WHERE id = ?", (source_id,))

    logger.info("Deleted source %s and %d premise(s)", source_id, removed)
    return removed


def mark_extracted(database_path: str, source_id: str) -> str:
    """Stamp a source's last_extraction_at with the current time and return it."""
    now = utc_now()
    with get_connection(database_path) as conn:
        conn.execute(
            "UPDATE sources SET last_extraction_at = ? WHERE id = ?",
            (now, source_id),
        )
    return now
