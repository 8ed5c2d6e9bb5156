"""Application entry point: builds the platform adapters and serves the web API."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager

import httpx
import uvicorn

import premisehub.ingestion  # noqa: F401  # registers the platform adapters
from premisehub.config import Config, load_config
from premisehub.ingestion.registry import build_adapters
from premisehub.storage import init_db
from premisehub.web.app import create_app

logger = logging.getLogger("premisehub")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def build_http_client(config: Config) -> httpx.Client:
    """Shared outbound client; every upstream call inherits its timeout and User-Agent."""
    return httpx.Client(
        timeout=config.http_timeout_seconds,
        headers={"User-Agent": config.http_user_agent},
    )


def main() -> None:
    """Load config, set up logging, and start the web server."""
    config = load_config()

    _setup_logging(config.log_level, config.log_format)

    logger.info(
        "PremiseHub starting (env=%s, db=%s)",
        config.app_env,
        config.database_path,
    )

    init_db(config.database_path)

    http_client = build_http_client(config)
    adapters = build_adapters(config, http_client)

    @asynccontextmanager
    async def lifespan(app):
        yield
        logger.info("Closing outbound HTTP client")
        http_client.close()

    app = create_app(config, adapters, lifespan=lifespan)

    uvicorn.run(app, host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
