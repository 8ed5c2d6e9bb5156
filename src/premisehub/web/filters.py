"""Translate premise list query parameters into SQL predicates, ordering, and paging."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone

from premisehub.errors import ValidationError
from premisehub.platforms import parse_platform

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# ---------------------------------------------------------------------------
# Allowed sort keys and the columns they map to
# ---------------------------------------------------------------------------
_SORT_COLUMNS = {
    "date": "observed_at",
    "likes": "like_count",
    "comments": "comment_count",
    "views": "view_count",
    "created": "created_at",
    "updated": "updated_at",
}
_DEFAULT_SORT = "created_at DESC, id DESC"

# equality filters: parameter name -> column
_EQUALITY_FILTERS = {
    "source_id": "source_id",
    "niche": "niche",
    "sub_niche": "sub_niche",
}

# lower-bound filters: parameter name -> column
_MINIMUM_FILTERS = {
    "min_likes": "like_count",
    "min_comments": "comment_count",
    "min_views": "view_count",
}

# upper-bound filters: parameter name -> column
_MAXIMUM_FILTERS = {
    "max_likes": "like_count",
    "max_comments": "comment_count",
    "max_views": "view_count",
}


@dataclass(frozen=True)
class Predicate:
    """A WHERE clause (without the keyword) and its positional parameters."""

    clause: str = ""
    params: list = field(default_factory=list)

    def where(self) -> str:
        return f" WHERE {self.clause}" if self.clause else ""


def _parse_bound(value: str, name: str, upper: bool) -> tuple[str, str]:
    """Return ``(operator, iso_timestamp)`` for a date filter bound.

    A date-only upper bound covers the whole day, so it becomes a strict
    comparison against midnight of the following day.
    """
    value = value.strip()
    try:
        if _DATE_ONLY_RE.match(value):
            day = datetime.combine(
                datetime.strptime(value, "%Y-%m-%d").date(), time(), tzinfo=timezone.utc
            )
            if upper:
                return "<", (day + timedelta(days=1)).isoformat()
            return ">=", day.isoformat()
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date or timestamp") from None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    iso = moment.astimezone(timezone.utc).isoformat()
    return ("<=", iso) if upper else (">=", iso)


def build_filter(params: dict) -> Predicate:
    """Combine every supplied filter with AND. Absent (None) parameters are ignored."""
    clauses: list[str] = []
    values: list[object] = []

    for name, column in _EQUALITY_FILTERS.items():
        value = params.get(name)
        if value is not None:
            clauses.append(f"{column} = ?")
            values.append(value)

    if params.get("platform") is not None:
        try:
            platform = parse_platform(params["platform"])
        except ValueError as exc:
            raise ValidationError(str(exc)) from None
        clauses.append("source_platform = ?")
        values.append(platform.value)

    if params.get("used") is not None:
        clauses.append("used = ?")
        values.append(int(bool(params["used"])))

    for name, upper in (("date_from", False), ("date_to", True)):
        if params.get(name):
            op, iso = _parse_bound(params[name], name, upper)
            clauses.append(f"observed_at {op} ?")
            values.append(iso)

    for filters, op in ((_MINIMUM_FILTERS, ">="), (_MAXIMUM_FILTERS, "<=")):
        for name, column in filters.items():
            value = params.get(name)
            if value is not None:
                if int(value) < 0:
                    raise ValidationError(f"{name} must not be negative")
                clauses.append(f"{column} {op} ?")
                values.append(int(value))

    return Predicate(" AND ".join(clauses), values)


def build_sort(sort: str | None, order: str | None = "desc") -> str:
    """Return an ORDER BY expression. Unknown keys fall back to newest created first."""
    column = _SORT_COLUMNS.get(sort or "")
    if column is None:
        return _DEFAULT_SORT
    direction = "ASC" if (order or "").lower() == "asc" else "DESC"
    return f"{column} {direction}, id {direction}"


def resolve_page(page: int | None, page_size: int | None) -> tuple[int, int]:
    """Apply paging defaults; page_size is capped at MAX_PAGE_SIZE."""
    page = 1 if page is None else page
    page_size = DEFAULT_PAGE_SIZE if page_size is None else page_size
    if page < 1:
        raise ValidationError("page must be at least 1")
    if page_size < 1:
        raise ValidationError("page_size must be at least 1")
    return page, min(page_size, MAX_PAGE_SIZE)


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0
