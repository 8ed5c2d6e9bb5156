"""API route handlers for the PremiseHub web API."""

from __future__ import annotations

import logging
import sqlite3

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from premisehub.errors import NotFoundError
from premisehub.ingestion.adapter import SourceAdapter
from premisehub.ingestion.coordinator import analyze, ingest, preview_item
from premisehub.ingestion.normalize import to_first_person
from premisehub.platforms import Platform
from premisehub.storage import niches as niche_store
from premisehub.storage import premises as premise_store
from premisehub.storage import sources as source_store
from premisehub.storage.connection import get_connection
from premisehub.web.deps import get_adapter, get_adapters, get_database_path, platform_param
from premisehub.web.filters import resolve_page, total_pages
from premisehub.web.models import (
    AnalyzeRequest,
    AnalyzeResult,
    CategoryUpdate,
    Envelope,
    ExtractionResult,
    FirstPerson,
    ItemRequest,
    Niche,
    NicheCreate,
    NicheUpdate,
    Premise,
    PremisePage,
    Source,
    SourceCreate,
    SourceDeleted,
    SubNicheCreate,
    UsedUpdate,
)
from premisehub.web.queries import count_premises_by_source, list_premises

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check database connectivity and return health status."""
    database_path = request.app.state.database_path
    try:
        with get_connection(database_path) as conn:
            conn.execute("SELECT 1")
        return JSONResponse({"status": "healthy", "database": "ok"})
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "database": "error"},
            status_code=503,
        )


def _extract_options(sort_order: str | None, limit: int | None) -> dict:
    options: dict = {}
    if sort_order is not None:
        options["sort_order"] = sort_order
    if limit is not None:
        options["limit"] = limit
    return options


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------
@router.get("/sources", response_model=Envelope[list[Source]])
def sources(
    platform: str | None = None,
    database_path: str = Depends(get_database_path),
):
    selected = platform_param(platform) if platform is not None else None
    counts = count_premises_by_source(database_path)
    rows = source_store.list_sources(database_path, selected)
    for row in rows:
        row["premise_count"] = counts.get(row["id"], 0)
    return Envelope(data=rows)


@router.get("/sources/{source_id}", response_model=Envelope[Source])
def source_by_id(source_id: str, database_path: str = Depends(get_database_path)):
    source = source_store.get_source(database_path, source_id)
    if source is None:
        raise NotFoundError("Source not found")
    source["premise_count"] = count_premises_by_source(database_path).get(source_id, 0)
    return Envelope(data=source)


@router.post("/sources/{platform}", response_model=Envelope[Source], status_code=201)
def create_source(
    platform: str,
    body: SourceCreate,
    request: Request,
    database_path: str = Depends(get_database_path),
):
    adapter = get_adapter(request, platform)
    locator = adapter.parse_locator(body.url)
    url = adapter.canonical_url(locator)
    name = (body.name or "").strip() or adapter.source_name(locator)
    source = source_store.create_source(database_path, adapter.platform, url, name)
    return Envelope(message="Source registered", data=source)


@router.delete("/sources/{source_id}", response_model=Envelope[SourceDeleted])
def delete_source(source_id: str, database_path: str = Depends(get_database_path)):
    removed = source_store.delete_source(database_path, source_id)
    if removed is None:
        raise NotFoundError("Source not found")
    return Envelope(
        message=f"Source deleted with {removed} premise(s)",
        data={"id": source_id, "removed_premises": removed},
    )


@router.post("/sources/{source_id}/extract", response_model=Envelope[ExtractionResult])
def extract_source(
    source_id: str,
    sort_order: str | None = None,
    limit: int | None = None,
    database_path: str = Depends(get_database_path),
    adapters: dict[Platform, SourceAdapter] = Depends(get_adapters),
):
    result = ingest(database_path, source_id, adapters, _extract_options(sort_order, limit))
    return Envelope(
        message=f"{result.inserted_count} new premise(s) extracted",
        data=result.as_dict(),
    )


# ---------------------------------------------------------------------------
# Premises
# ---------------------------------------------------------------------------
@router.get("/premises", response_model=Envelope[PremisePage])
def premises(
    source_id: str | None = None,
    platform: str | None = None,
    niche: str | None = None,
    sub_niche: str | None = None,
    used: bool | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    min_likes: int | None = None,
    min_comments: int | None = None,
    min_views: int | None = None,
    max_likes: int | None = None,
    max_comments: int | None = None,
    max_views: int | None = None,
    sort: str | None = None,
    order: str = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1),
    database_path: str = Depends(get_database_path),
):
    page, page_size = resolve_page(page, page_size)
    filters = {
        "source_id": source_id,
        "platform": platform,
        "niche": niche,
        "sub_niche": sub_niche,
        "used": used,
        "date_from": date_from,
        "date_to": date_to,
        "min_likes": min_likes,
        "min_comments": min_comments,
        "min_views": min_views,
        "max_likes": max_likes,
        "max_comments": max_comments,
        "max_views": max_views,
    }
    rows, total = list_premises(
        database_path, filters, page=page, page_size=page_size, sort=sort, order=order
    )
    return Envelope(
        data={
            "premises": rows,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": total_pages(total, page_size),
        }
    )


def _require_premise(premise: dict | None) -> dict:
    if premise is None:
        raise NotFoundError("Premise not found")
    return premise


@router.get("/premises/{premise_id}", response_model=Envelope[Premise])
def premise_by_id(premise_id: str, database_path: str = Depends(get_database_path)):
    return Envelope(data=_require_premise(premise_store.get_premise(database_path, premise_id)))


@router.delete("/premises/{premise_id}", response_model=Envelope[dict])
def delete_premise(premise_id: str, database_path: str = Depends(get_database_path)):
    if not premise_store.delete_premise(database_path, premise_id):
        raise NotFoundError("Premise not found")
    return Envelope(message="Premise deleted", data={"id": premise_id})


@router.patch("/premises/{premise_id}/used", response_model=Envelope[Premise])
def mark_used(
    premise_id: str, body: UsedUpdate, database_path: str = Depends(get_database_path)
):
    premise = premise_store.set_used(database_path, premise_id, body.used)
    return Envelope(data=_require_premise(premise))


@router.patch("/premises/{premise_id}/category", response_model=Envelope[Premise])
def categorize(
    premise_id: str, body: CategoryUpdate, database_path: str = Depends(get_database_path)
):
    premise = premise_store.set_category(
        database_path, premise_id, niche=body.niche, sub_niche=body.sub_niche
    )
    return Envelope(data=_require_premise(premise))


@router.get("/premises/{premise_id}/first-person", response_model=Envelope[FirstPerson])
def first_person(premise_id: str, database_path: str = Depends(get_database_path)):
    premise = _require_premise(premise_store.get_premise(database_path, premise_id))
    return Envelope(
        data={
            "id": premise["id"],
            "body": premise["body"],
            "first_person": to_first_person(premise["body"]),
        }
    )


# ---------------------------------------------------------------------------
# Niches
# ---------------------------------------------------------------------------
@router.get("/niches", response_model=Envelope[list[Niche]])
def niches(database_path: str = Depends(get_database_path)):
    return Envelope(data=niche_store.list_niches(database_path))


@router.post("/niches", response_model=Envelope[Niche], status_code=201)
def create_niche(body: NicheCreate, database_path: str = Depends(get_database_path)):
    niche = niche_store.create_niche(database_path, body.name, body.sub_niches)
    return Envelope(message="Niche created", data=niche)


@router.put("/niches/{niche_id}", response_model=Envelope[Niche])
def update_niche(
    niche_id: str, body: NicheUpdate, database_path: str = Depends(get_database_path)
):
    niche = niche_store.update_niche(
        database_path, niche_id, name=body.name, sub_niches=body.sub_niches
    )
    return Envelope(message="Niche updated", data=niche)


@router.post("/niches/{niche_id}/subniches", response_model=Envelope[Niche], status_code=201)
def add_sub_niche(
    niche_id: str, body: SubNicheCreate, database_path: str = Depends(get_database_path)
):
    niche = niche_store.add_sub_niche(database_path, niche_id, body.name)
    return Envelope(message="Sub-niche added", data=niche)


@router.delete("/niches/{niche_id}", response_model=Envelope[dict])
def delete_niche(niche_id: str, database_path: str = Depends(get_database_path)):
    if not niche_store.delete_niche(database_path, niche_id):
        raise NotFoundError("Niche not found")
    return Envelope(message="Niche deleted", data={"id": niche_id})


# ---------------------------------------------------------------------------
# Platform-scoped operations (registered last: ``{platform}`` is a catch-all)
# ---------------------------------------------------------------------------
@router.post("/{platform}/extract/{source_id}", response_model=Envelope[ExtractionResult])
def extract_platform_source(
    platform: str,
    source_id: str,
    sort_order: str | None = None,
    limit: int | None = None,
    database_path: str = Depends(get_database_path),
    adapters: dict[Platform, SourceAdapter] = Depends(get_adapters),
):
    result = ingest(
        database_path,
        source_id,
        adapters,
        _extract_options(sort_order, limit),
        expected_platform=platform_param(platform),
    )
    return Envelope(
        message=f"{result.inserted_count} new premise(s) extracted",
        data=result.as_dict(),
    )


@router.post("/{platform}/analyze", response_model=Envelope[AnalyzeResult])
def analyze_url(platform: str, body: AnalyzeRequest, request: Request):
    adapter = get_adapter(request, platform)
    options = _extract_options(body.sort_order, body.limit)
    return Envelope(data=analyze(adapter, body.url, options))


@router.post("/{platform}/item", response_model=Envelope[Premise])
def item_preview(platform: str, body: ItemRequest, request: Request):
    adapter = get_adapter(request, platform)
    return Envelope(data=preview_item(adapter, body.url))
