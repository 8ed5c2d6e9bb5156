"""FastAPI application factory for the PremiseHub web API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from premisehub.config import Config
from premisehub.errors import PremiseHubError
from premisehub.ingestion.adapter import SourceAdapter
from premisehub.platforms import Platform
from premisehub.web.routes import health_router, router

logger = logging.getLogger(__name__)


def _error_body(message: str, error: str) -> dict:
    return {"success": False, "message": message, "error": error}


async def _domain_error(request: Request, exc: PremiseHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(_error_body(exc.message, exc.error_code), status_code=exc.status_code)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return JSONResponse(
        _error_body(f"Malformed request: {details}", "request_validation_error"),
        status_code=422,
    )


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        _error_body("Internal server error", "internal_error"),
        status_code=500,
    )


def create_app(
    config: Config,
    adapters: dict[Platform, SourceAdapter] | None = None,
    lifespan=None,
) -> FastAPI:
    """Build and return a configured FastAPI application.

    ``adapters`` holds one instance per enabled platform; platforms left out
    answer 503.
    """
    app = FastAPI(title="PremiseHub", docs_url="/api/docs", lifespan=lifespan)
    app.state.database_path = config.database_path
    app.state.adapters = adapters or {}
    app.add_exception_handler(PremiseHubError, _domain_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(Exception, _unexpected_error)
    app.include_router(health_router)
    app.include_router(router, prefix="/api")
    return app
