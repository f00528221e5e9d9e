"""HTTP client for the train search API with a response cache.

Used by front ends and scripts that consume ``GET /sncf``. Server error
payloads are surfaced as ``ApiClientError`` carrying the ``{message, code,
details?}`` body; transport failures get the ``NETWORK_ERROR`` code.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from app.core.config import Settings, get_settings
from app.models.sncf import ApiErrorPayload, TrainSearchResponse
from app.services.cache import FallbackCache

logger = logging.getLogger(__name__)
T = TypeVar("T")

NETWORK_ERROR_MESSAGE = "Impossible de contacter le serveur. Vérifiez votre connexion."
UNKNOWN_ERROR_MESSAGE = "Une erreur inattendue est survenue."

_FRIENDLY_MESSAGES = {
    "MISSING_PARAMS": "Veuillez remplir tous les champs du formulaire.",
    "STATION_NOT_FOUND": "Une des gares sélectionnées n'a pas été trouvée.",
    "NETWORK_ERROR": "Problème de connexion. Vérifiez votre accès internet.",
    "RATE_LIMIT": "Trop de requêtes. Veuillez patienter quelques instants.",
    "SCRAPING_ERROR": (
        "Impossible de récupérer les données depuis SNCF Connect. "
        "Le site est peut-être temporairement indisponible."
    ),
}
DEFAULT_FRIENDLY_MESSAGE = "Une erreur est survenue. Veuillez réessayer."


class ApiClientError(Exception):
    """Error payload returned by, or synthesized for, the search API."""

    def __init__(self, payload: ApiErrorPayload, status_code: int | None = None) -> None:
        super().__init__(payload.message)
        self.payload = payload
        self.status_code = status_code

    @property
    def code(self) -> str:
        return self.payload.code


class TrainSearchClient:
    """Async client for ``GET /sncf`` with results cached per route and day."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        cache_ttl_seconds: int = 300,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._cache = FallbackCache()
        self._cache_ttl_seconds = cache_ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TrainSearchClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.api_base_url,
            timeout_seconds=settings.api_client_timeout_seconds,
            cache_ttl_seconds=settings.cache_ttl_seconds,
        )

    async def __aenter__(self) -> "TrainSearchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search_trains(
        self, from_name: str, to_name: str, travel_date: str
    ) -> TrainSearchResponse:
        cache_key = f"{from_name}:{to_name}:{travel_date}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return TrainSearchResponse.model_validate_json(cached)

        payload = await self._get_json(
            "/sncf", params={"from": from_name, "to": to_name, "date": travel_date}
        )
        response = TrainSearchResponse.model_validate(payload)
        await self._cache.set(
            cache_key, json.dumps(payload), self._cache_ttl_seconds
        )
        await self._cache.cleanup_expired()
        return response

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        try:
            response = await self._client.get(path.lstrip("/"), params=params)
        except httpx.RequestError as exc:
            logger.info("Search API unreachable: %s", exc)
            raise ApiClientError(
                ApiErrorPayload(message=NETWORK_ERROR_MESSAGE, code="NETWORK_ERROR")
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ApiClientError(
                ApiErrorPayload(message=UNKNOWN_ERROR_MESSAGE, code="UNKNOWN_ERROR"),
                response.status_code,
            ) from exc

        if response.is_error:
            if isinstance(body, dict) and "message" in body and "code" in body:
                raise ApiClientError(
                    ApiErrorPayload.model_validate(body), response.status_code
                )
            raise ApiClientError(
                ApiErrorPayload(message=UNKNOWN_ERROR_MESSAGE, code="UNKNOWN_ERROR"),
                response.status_code,
            )
        return body


async def with_retry(
    fn: Callable[[], Awaitable[T]], retries: int = 3, delay: float = 1.0
) -> T:
    """Call ``fn`` up to ``retries + 1`` times, doubling the delay each time."""
    while True:
        try:
            return await fn()
        except Exception:
            if retries <= 0:
                raise
            logger.debug("Retrying in %.1fs (%d retries left)", delay, retries)
            await asyncio.sleep(delay)
            retries -= 1
            delay *= 2


def format_api_error(error: ApiErrorPayload | ApiClientError) -> str:
    """Return the user-facing French message for an API error."""
    payload = error.payload if isinstance(error, ApiClientError) else error
    friendly = _FRIENDLY_MESSAGES.get(payload.code)
    if friendly is not None:
        return friendly
    return payload.message or DEFAULT_FRIENDLY_MESSAGE


__all__ = [
    "ApiClientError",
    "TrainSearchClient",
    "format_api_error",
    "with_retry",
]
