"""Niche registry: names with an ordered list of sub-niches."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid

from premisehub.errors import ConflictError, NotFoundError, ValidationError
from premisehub.storage.connection import get_connection, is_unique_violation, utc_now

logger = logging.getLogger(__name__)


def _row_to_niche(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "name": row["name"],
        "sub_niches": json.loads(row["sub_niches"]),
        "created_at": row["created_at"],
    }


def _clean_sub_niches(names: list[str]) -> list[str]:
    """Strip names, drop blanks and repeats, keep first-seen order."""
    cleaned: list[str] = []
    for name in names:
        name = name.strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


def _require_name(name: str, what: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError(f"{what} name is required")
    return name


def list_niches(database_path: str) -> list[dict]:
    """Return all niches sorted by name."""
    with get_connection(database_path) as conn:
        rows = conn.execute("SELECT * FROM niches ORDER BY name COLLATE NOCASE, id").fetchall()
    return [_row_to_niche(r) for r in rows]


def get_niche(database_path: str, niche_id: str) -> dict | None:
    with get_connection(database_path) as conn:
        row = conn.execute("SELECT * FROM niches WHERE id = ?", (niche_id,)).fetchone()
    return _row_to_niche(row) if row is not None else None


def create_niche(database_path: str, name: str, sub_niches: list[str] | None = None) -> dict:
    """Create a niche. Raises ConflictError if the name is taken."""
    name = _require_name(name, "Niche")
    niche = {
        "id": str(uuid.uuid4()),
        "name": name,
        "sub_niches": _clean_sub_niches(sub_niches or []),
        "created_at": utc_now(),
    }
    try:
        with get_connection(database_path) as conn:
            conn.execute(
                "INSERT INTO niches (id, name, sub_niches, created_at) VALUES (?, ?, ?, ?)",
                (niche["id"], niche["name"], json.dumps(niche["sub_niches"]), niche["created_at"]),
            )
    except sqlite3.IntegrityError as exc:
        if is_unique_violation(exc, "name"):
            raise ConflictError(f"Niche already exists: {name}") from exc
        raise
    logger.info("Created niche %s (%s)", niche["id"], name)
    return niche


def update_niche(
    database_path: str,
    niche_id: str,
    name: str | None = None,
    sub_niches: list[str] | None = None,
) -> dict:
    """Rename a niche and/or replace its sub-niche list."""
    niche = get_niche(database_path, niche_id)
    if niche is None:
        raise NotFoundError("Niche not found")
    if name is not None:
        niche["name"] = _require_name(name, "Niche")
    if sub_niches is not None:
        niche["sub_niches"] = _clean_sub_niches(sub_niches)
    try:
        with get_connection(database_path) as conn:
            conn.execute(
                "UPDATE niches SET name = ?, sub_niches = ? WHERE id = ?",
                (niche["name"], json.dumps(niche["sub_niches"]), niche_id),
            )
    except sqlite3.IntegrityError as exc:
        if is_unique_violation(exc, "name"):
            raise ConflictError(f"Niche already exists: {niche['name']}") from exc
        raise
    return niche


def add_sub_niche(database_path: str, niche_id: str, name: str) -> dict:
    """Append a sub-niche. Raises ConflictError if the niche already has it."""
    name = _require_name(name, "Sub-niche")
    with get_connection(database_path) as conn:
        row = conn.execute("SELECT * FROM niches WHERE id = ?", (niche_id,)).fetchone()
        if row is None:
            raise NotFoundError("Niche not found")
        niche = _row_to_niche(row)
        if name in niche["sub_niches"]:
            raise ConflictError(f"Sub-niche already exists in {niche['name']}: {name}")
        niche["sub_niches"].append(name)
        conn.execute(
            "UPDATE niches SET sub_niches = ? WHERE id = ?",
            (json.dumps(niche["sub_niches"]), niche_id),
        )
    return niche


def delete_niche(database_path: str, niche_id: str) -> bool:
    """Delete a niche. Premises keep their free-text niche values."""
    with get_connection(database_path) as conn:
        cursor = conn.execute("DELETE FROM niches WHERE id = ?", (niche_id,))
    return cursor.rowcount > 0
