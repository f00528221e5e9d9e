"""Shared error handling utilities for API endpoints.

Every failure visible to API callers is an ``ApiError`` rendered as
``{message, code, details?}``: a localized message, a stable code and,
when useful, the technical detail.
"""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.models.sncf import ApiErrorPayload

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    MISSING_PARAMS = "MISSING_PARAMS"
    STATION_NOT_FOUND = "STATION_NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    NETWORK_ERROR = "NETWORK_ERROR"
    SCRAPING_ERROR = "SCRAPING_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


class ApiError(Exception):
    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.headers = headers

    def to_payload(self) -> ApiErrorPayload:
        return ApiErrorPayload(
            message=self.message, code=self.code.value, details=self.details
        )


def missing_params(details: str | None = None) -> ApiError:
    """Create a 400 error for absent or malformed search parameters."""
    return ApiError(
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.MISSING_PARAMS,
        "Paramètres manquants. Veuillez fournir from, to et date.",
        details,
    )


def station_not_found(details: str | None = None) -> ApiError:
    """Create a 404 error for stations missing from the directory."""
    return ApiError(
        status.HTTP_404_NOT_FOUND,
        ErrorCode.STATION_NOT_FOUND,
        "Gare non trouvée. Veuillez vérifier les noms des gares.",
        details,
    )


def rate_limited(retry_after_seconds: int | None = None) -> ApiError:
    headers = None
    if retry_after_seconds is not None:
        headers = {"Retry-After": str(max(retry_after_seconds, 0))}
    return ApiError(
        status.HTTP_429_TOO_MANY_REQUESTS,
        ErrorCode.RATE_LIMIT,
        "Trop de requêtes. Veuillez patienter quelques instants.",
        headers=headers,
    )


def scraping_error(details: str | None = None) -> ApiError:
    return ApiError(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.SCRAPING_ERROR,
        "Impossible de récupérer les données depuis SNCF Connect.",
        details,
    )


def internal_error(details: str | None = None) -> ApiError:
    return ApiError(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "Une erreur est survenue lors de la recherche des trains.",
        details,
    )


def not_implemented() -> ApiError:
    return ApiError(
        status.HTTP_501_NOT_IMPLEMENTED,
        ErrorCode.NOT_IMPLEMENTED,
        "Les notifications ne sont pas encore implémentées.",
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render an ``ApiError`` as its JSON payload."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            exc.code.value,
            exc.details,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload().model_dump(exclude_none=True),
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed query parameters with the MISSING_PARAMS code."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    )
    return await api_error_handler(request, missing_params(details or None))


__all__ = [
    "ApiError",
    "ErrorCode",
    "api_error_handler",
    "internal_error",
    "missing_params",
    "not_implemented",
    "rate_limited",
    "scraping_error",
    "station_not_found",
    "validation_error_handler",
]
