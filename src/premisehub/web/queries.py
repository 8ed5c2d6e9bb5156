"""Read-side query functions for the web API."""

from __future__ import annotations

from premisehub.storage.connection import get_connection
from premisehub.storage.premises import row_to_premise
from premisehub.web.filters import build_filter, build_sort, page_offset


def list_premises(
    database_path: str,
    filters: dict | None = None,
    page: int = 1,
    page_size: int = 20,
    sort: str | None = None,
    order: str | None = "desc",
) -> tuple[list[dict], int]:
    """Return one page of premises matching ``filters`` and the total match count."""
    predicate = build_filter(filters or {})
    where = predicate.where()
    order_by = build_sort(sort, order)

    with get_connection(database_path) as conn:
        total = conn.execute(
            f"SELECT COUNT(*) FROM premises{where}",  # noqa: S608
            predicate.params,
        ).fetchone()[0]
        rows = conn.execute(
            f"SELECT * FROM premises{where} ORDER BY {order_by} LIMIT ? OFFSET ?",  # noqa: S608
            [*predicate.params, page_size, page_offset(page, page_size)],
        ).fetchall()

    return [row_to_premise(r) for r in rows], total


def count_premises_by_source(database_path: str) -> dict[str, int]:
    """Return ``{source_id: premise_count}`` for sources that have premises."""
    with get_connection(database_path) as conn:
        rows = conn.execute(
            "SELECT source_id, COUNT(*) AS cnt FROM premises GROUP BY source_id"
        ).fetchall()
    return {r["source_id"]: r["cnt"] for r in rows}
