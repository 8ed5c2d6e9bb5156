"""Request-scoped dependencies resolved from application state."""

from __future__ import annotations

from fastapi import Request

from premisehub.errors import ValidationError
from premisehub.ingestion.adapter import SourceAdapter
from premisehub.ingestion.coordinator import resolve_adapter
from premisehub.platforms import Platform, parse_platform


def get_database_path(request: Request) -> str:
    return request.app.state.database_path


def get_adapters(request: Request) -> dict[Platform, SourceAdapter]:
    return request.app.state.adapters


def platform_param(platform: str) -> Platform:
    """Path parameter converter; unknown platforms are a 400, not a 422."""
    try:
        return parse_platform(platform)
    except ValueError as exc:
        raise ValidationError(str(exc)) from None


def get_adapter(request: Request, platform: str) -> SourceAdapter:
    """Adapter for the ``{platform}`` path segment. Raises PlatformDisabledError."""
    return resolve_adapter(get_adapters(request), platform_param(platform))
