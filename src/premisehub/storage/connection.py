"""SQLite connection management and small row helpers."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator

_BUSY_TIMEOUT_MS = 5000


@contextmanager
def get_connection(database_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Open a SQLite connection for one unit of work.

    WAL mode lets concurrent requests read while an ingestion writes;
    busy_timeout makes a second writer wait instead of failing at once.
    Foreign keys are on so deleting a source cascades to its premises.
    Commits on clean exit, rolls back on exception, and always closes.
    """
    conn = sqlite3.connect(database_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={_BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string, the storage format for timestamps."""
    return datetime.now(timezone.utc).isoformat()


def is_unique_violation(exc: sqlite3.IntegrityError, column: str) -> bool:
    """True when an IntegrityError was raised by the UNIQUE constraint on ``column``."""
    message = str(exc)
    return "UNIQUE constraint failed" in message and message.rstrip().endswith(f".{column}")
