"""Error taxonomy shared by adapters, the coordinator, and the web layer."""

from __future__ import annotations


class PremiseHubError(Exception):
    """Base class for errors that map onto a stable API response."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PremiseHubError):
    """Malformed user input (URL, query parameter, option)."""

    status_code = 400
    error_code = "validation_error"


class NotFoundError(PremiseHubError):
    """Referenced source, premise, niche, or upstream entity does not exist."""

    status_code = 404
    error_code = "not_found"


class TypeMismatchError(PremiseHubError):
    """Operation applied to a source of the wrong platform kind."""

    status_code = 400
    error_code = "type_mismatch"


class ConflictError(PremiseHubError):
    """Duplicate URL or name on create."""

    status_code = 400
    error_code = "conflict"


class UpstreamError(PremiseHubError):
    """Platform call failed or returned an unexpected shape."""

    status_code = 500
    error_code = "upstream_error"


class PlatformDisabledError(PremiseHubError):
    """Platform integration is switched off by configuration."""

    status_code = 503
    error_code = "platform_disabled"
