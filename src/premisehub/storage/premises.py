"""Premise persistence: insert with link dedup, curation updates, deletes."""

from __future__ import annotations

import logging
import sqlite3

from premisehub.ingestion.normalize import CanonicalPremise
from premisehub.storage.connection import get_connection, is_unique_violation, utc_now

logger = logging.getLogger(__name__)


def row_to_premise(row: sqlite3.Row) -> dict:
    """Convert a premises row into the nested API representation."""
    return {
        "id": row["id"],
        "source": {
            "id": row["source_id"],
            "platform": row["source_platform"],
            "url": row["source_url"],
            "name": row["source_name"],
        },
        "link": row["link"],
        "body": row["body"],
        "short_description": row["short_description"],
        "first_person": row["first_person"],
        "title": row["title"],
        "author": row["author"],
        "metrics": {
            "observed_at": row["observed_at"],
            "likes": row["like_count"],
            "comments": row["comment_count"],
            "views": row["view_count"],
        },
        "niche": row["niche"],
        "sub_niche": row["sub_niche"],
        "used": bool(row["used"]),
        "simulated": bool(row["simulated"]),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def find_premise_by_link(database_path: str, link: str) -> dict | None:
    """Return the premise stored under ``link``, or None."""
    with get_connection(database_path) as conn:
        row = conn.execute("SELECT * FROM premises WHERE link = ?", (link,)).fetchone()
    return row_to_premise(row) if row is not None else None


def insert_premise(database_path: str, premise: CanonicalPremise) -> bool:
    """Insert a premise unless its link is already stored.

    Returns True when a row was written, False when the link already exists.
    The UNIQUE(link) constraint is authoritative: a violation raised by a
    concurrent writer between the existence check and the insert is treated
    the same as a duplicate found by the check.
    """
    with get_connection(database_path) as conn:
        existing = conn.execute(
            "SELECT id FROM premises WHERE link = ?", (premise.link,)
        ).fetchone()
        if existing is not None:
            logger.debug("Duplicate link %s (existing premise %s)", premise.link, existing["id"])
            return False
        try:
            conn.execute(
                "INSERT INTO premises "
                "(id, source_id, source_platform, source_url, source_name, link, body, "
                "short_description, first_person, title, author, observed_at, "
                "like_count, comment_count, view_count, simulated, niche, sub_niche, "
                "used, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    premise.id,
                    premise.source.id,
                    premise.source.platform,
                    premise.source.url,
                    premise.source.name,
                    premise.link,
                    premise.body,
                    premise.short_description,
                    premise.first_person,
                    premise.title,
                    premise.author,
                    premise.observed_at,
                    premise.likes,
                    premise.comments,
                    premise.views,
                    int(premise.simulated),
                    premise.niche,
                    premise.sub_niche,
                    int(premise.used),
                    premise.created_at,
                    premise.updated_at,
                ),
            )
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc, "link"):
                logger.info("Link %s inserted concurrently, skipping", premise.link)
                return False
            raise

    logger.info("Persisted premise %s (%s)", premise.id, premise.link)
    return True


def get_premise(database_path: str, premise_id: str) -> dict | None:
    """Return a single premise by id, or None."""
    with get_connection(database_path) as conn:
        row = conn.execute("SELECT * FROM premises WHERE id = ?", (premise_id,)).fetchone()
    return row_to_premise(row) if row is not None else None


def set_used(database_path: str, premise_id: str, used: bool) -> dict | None:
    """Set the usage flag and refresh updated_at. Returns the updated premise or None."""
    with get_connection(database_path) as conn:
        cursor = conn.execute(
            "UPDATE premises SET used = ?, updated_at = ? WHERE id = ?",
            (int(used), utc_now(), premise_id),
        )
        if cursor.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM premises WHERE id = ?", (premise_id,)).fetchone()
    return row_to_premise(row)


def set_category(
    database_path: str,
    premise_id: str,
    niche: str | None = None,
    sub_niche: str | None = None,
) -> dict | None:
    """Update niche and/or sub-niche; a None argument leaves that field unchanged.

    Values are free text and are not checked against the niche registry.
    Returns the updated premise or None.
    """
    assignments = ["updated_at = ?"]
    params: list[object] = [utc_now()]
    if niche is not None:
        assignments.append("niche = ?")
        params.append(niche.strip())
    if sub_niche is not None:
        assignments.append("sub_niche = ?")
        params.append(sub_niche.strip())
    params.append(premise_id)

    with get_connection(database_path) as conn:
        cursor = conn.execute(
            f"UPDATE premises SET {', '.join(assignments)} WHERE id = ?",  # noqa: S608
            params,
        )
        if cursor.rowcount == 0:
            return None
        row = conn.execute("SELECT * FROM premises WHERE id = ?", (premise_id,)).fetchone()
    return row_to_premise(row)


def delete_premise(database_path: str, premise_id: str) -> bool:
    """Delete one premise. Returns False if it did not exist."""
    with get_connection(database_path) as conn:
        cursor = conn.execute("DELETE FROM premises WHERE id = ?", (premise_id,))
    return cursor.rowcount > 0
