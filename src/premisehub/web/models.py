"""Pydantic v2 request and response models for the PremiseHub web API."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------
class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: str


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------
class Source(BaseModel):
    id: str
    platform: str
    url: str
    name: str
    registered_at: str
    last_extraction_at: str | None
    premise_count: int = 0


class SourceCreate(BaseModel):
    url: str
    name: str | None = None


class SourceDeleted(BaseModel):
    id: str
    removed_premises: int


# ---------------------------------------------------------------------------
# Premises
# ---------------------------------------------------------------------------
class SourceRef(BaseModel):
    id: str
    platform: str
    url: str
    name: str


class PremiseMetrics(BaseModel):
    observed_at: str
    likes: int
    comments: int
    views: int


class Premise(BaseModel):
    id: str
    source: SourceRef
    link: str
    body: str
    short_description: str
    first_person: str
    title: str
    author: str
    metrics: PremiseMetrics
    niche: str
    sub_niche: str
    used: bool
    simulated: bool
    created_at: str
    updated_at: str


class PremisePage(BaseModel):
    premises: list[Premise]
    total: int
    page: int
    page_size: int
    total_pages: int


class UsedUpdate(BaseModel):
    used: bool


class CategoryUpdate(BaseModel):
    niche: str | None = None
    sub_niche: str | None = None


class FirstPerson(BaseModel):
    id: str
    body: str
    first_person: str


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
class ExtractionResult(BaseModel):
    inserted_count: int
    inserted: list[Premise]
    duplicate_count: int
    failed_count: int
    last_extraction_at: str | None


class AnalyzeRequest(BaseModel):
    url: str
    sort_order: str | None = None
    limit: int | None = None


class AnalyzeResult(BaseModel):
    source: dict[str, Any] | None
    premises: list[Premise]


class ItemRequest(BaseModel):
    url: str


# ---------------------------------------------------------------------------
# Niches
# ---------------------------------------------------------------------------
class Niche(BaseModel):
    id: str
    name: str
    sub_niches: list[str]
    created_at: str


class NicheCreate(BaseModel):
    name: str
    sub_niches: list[str] = Field(default_factory=list)


class NicheUpdate(BaseModel):
    name: str | None = None
    sub_niches: list[str] | None = None


class SubNicheCreate(BaseModel):
    name: str
