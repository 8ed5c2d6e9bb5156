"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from premisehub.platforms import Platform, parse_platform

_DEFAULT_USER_AGENT = "PremiseHub/0.1 (content-curation)"


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Required
    database_path: str

    # Optional: Platforms
    youtube_api_key: str | None = None
    youtube_api_base_url: str = "https://www.googleapis.com/youtube/v3"
    enabled_platforms: frozenset[Platform] = field(
        default_factory=lambda: frozenset(Platform)
    )
    tiktok_allow_simulated: bool = False

    # Optional: HTTP
    http_timeout_seconds: float = 30.0
    http_user_agent: str = _DEFAULT_USER_AGENT

    # Optional: Web
    web_host: str = "0.0.0.0"
    web_port: int = 8080

    # Optional: Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"


_REQUIRED_VARS = [
    "DATABASE_PATH",
]

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_platforms(raw: str) -> frozenset[Platform]:
    names = [part for part in raw.split(",") if part.strip()]
    return frozenset(parse_platform(name) for name in names)


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ValueError listing any
    missing variables, or naming an unknown platform in ENABLED_PLATFORMS.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Config(
        # Required
        database_path=os.environ["DATABASE_PATH"],
        # Optional: Platforms
        youtube_api_key=os.environ.get("YOUTUBE_API_KEY") or None,
        youtube_api_base_url=os.environ.get(
            "YOUTUBE_API_BASE_URL", "https://www.googleapis.com/youtube/v3"
        ),
        enabled_platforms=_parse_platforms(
            os.environ.get("ENABLED_PLATFORMS", "youtube,reddit,tiktok")
        ),
        tiktok_allow_simulated=(
            os.environ.get("TIKTOK_ALLOW_SIMULATED", "false").strip().lower() in _TRUTHY
        ),
        # Optional: HTTP
        http_timeout_seconds=float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30")),
        http_user_agent=os.environ.get("HTTP_USER_AGENT", _DEFAULT_USER_AGENT),
        # Optional: Web
        web_host=os.environ.get("WEB_HOST", "0.0.0.0"),
        web_port=int(os.environ.get("WEB_PORT", "8080")),
        # Optional: Application
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
    )
