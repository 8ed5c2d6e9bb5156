"""Adapter registry: maps platforms to adapter classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from premisehub.platforms import Platform

if TYPE_CHECKING:
    import httpx

    from premisehub.config import Config
    from premisehub.ingestion.adapter import SourceAdapter

logger = logging.getLogger(__name__)

_REGISTRY: dict[Platform, type[SourceAdapter]] = {}


def register_adapter(platform: Platform, cls: type[SourceAdapter]) -> None:
    """Register an adapter class for a platform."""
    _REGISTRY[platform] = cls


def get_adapter_class(platform: Platform) -> type[SourceAdapter] | None:
    """Look up an adapter class by platform. Returns None if not found."""
    return _REGISTRY.get(platform)


def registered_platforms() -> list[Platform]:
    """Return all platforms with a registered adapter, sorted by name."""
    return sorted(_REGISTRY, key=lambda p: p.value)


def build_adapters(config: Config, http_client: httpx.Client) -> dict[Platform, SourceAdapter]:
    """Instantiate one adapter per enabled platform.

    Platforms missing from ENABLED_PLATFORMS, or whose adapter reports it is
    not configured (e.g. YouTube without an API key), are left out; requests
    for them fail with PlatformDisabledError.
    """
    adapters: dict[Platform, SourceAdapter] = {}
    for platform in registered_platforms():
        if platform not in config.enabled_platforms:
            logger.info("Platform %s disabled by configuration", platform.value)
            continue
        adapter = _REGISTRY[platform].from_config(config, http_client)
        if adapter is not None:
            adapters[platform] = adapter
    logger.info(
        "Enabled platforms: %s",
        ", ".join(p.value for p in adapters) or "none",
    )
    return adapters
