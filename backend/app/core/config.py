"""Application configuration.

Environment variables are loaded from .env file and can be overridden.
All settings have sensible defaults for local development.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _valkey_alias(env_name: str) -> AliasChoices:
    """Support both VALKEY_* and REDIS_* env var names for compatibility."""
    redis_name = env_name.replace("VALKEY_", "REDIS_")
    return AliasChoices(redis_name, env_name)


DEFAULT_SNCF_API_ENDPOINTS = [
    "https://api.sncf.com/v1/coverage/sncf/journeys"
    "?from=stop_area:SNCF:{origin}&to=stop_area:SNCF:{destination}&datetime={date}",
    "https://www.sncf.com/api/journeys/search"
    "?origin={origin}&destination={destination}&date={date}",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # Infrastructure
    # ==========================================================================

    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment: 'development', 'staging', or 'production'.",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    valkey_url: str = Field(
        default="memory://",
        validation_alias=_valkey_alias("VALKEY_URL"),
        description="Valkey/Redis URL for the search cache. 'memory://' keeps it in-process.",
    )
    valkey_socket_connect_timeout_seconds: float = Field(
        default=1.0,
        validation_alias=_valkey_alias("VALKEY_SOCKET_CONNECT_TIMEOUT_SECONDS"),
        ge=0.0,
    )
    valkey_socket_timeout_seconds: float = Field(
        default=1.0,
        validation_alias=_valkey_alias("VALKEY_SOCKET_TIMEOUT_SECONDS"),
        ge=0.0,
    )

    # ==========================================================================
    # Data sources
    # ==========================================================================

    use_mock_data: bool = Field(
        default=True,
        alias="USE_MOCK_DATA",
        description="Serve generated trains instead of querying live sources.",
    )
    mock_latency_ms: int = Field(default=800, alias="MOCK_LATENCY_MS", ge=0)

    sncf_connect_enabled: bool = Field(default=True, alias="SNCF_CONNECT_ENABLED")
    sncf_connect_url: str = Field(
        default="https://www.sncf-connect.com/", alias="SNCF_CONNECT_URL"
    )
    sncf_connect_headless: bool = Field(default=True, alias="SNCF_CONNECT_HEADLESS")
    sncf_connect_timeout_ms: int = Field(
        default=30000, alias="SNCF_CONNECT_TIMEOUT", gt=0
    )
    sncf_connect_results_delay_ms: int = Field(
        default=5000, alias="SNCF_CONNECT_RESULTS_DELAY_MS", ge=0
    )

    sncf_api_enabled: bool = Field(default=True, alias="SNCF_API_ENABLED")
    sncf_api_endpoints: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SNCF_API_ENDPOINTS),
        alias="SNCF_API_ENDPOINTS",
    )
    sncf_api_token: str | None = Field(default=None, alias="SNCF_API_TOKEN")
    sncf_api_timeout_seconds: float = Field(
        default=10.0, alias="SNCF_API_TIMEOUT_SECONDS", gt=0
    )

    # ==========================================================================
    # Cache TTLs (seconds)
    # ==========================================================================

    cache_ttl_seconds: int = Field(default=300, alias="CACHE_TTL", ge=0)
    fallback_cache_ttl_seconds: int = Field(
        default=60, alias="FALLBACK_CACHE_TTL", ge=0
    )
    cache_circuit_breaker_timeout_seconds: float = Field(
        default=2.0, alias="CACHE_CIRCUIT_BREAKER_TIMEOUT_SECONDS", ge=0.0
    )

    # ==========================================================================
    # Rate limiting
    # ==========================================================================

    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_requests: int = Field(default=10, alias="RATE_LIMIT_REQUESTS", gt=0)
    rate_limit_window_seconds: int = Field(
        default=60, alias="RATE_LIMIT_WINDOW_SECONDS", gt=0
    )
    rate_limit_storage_uri: str = Field(
        default="memory://", alias="RATE_LIMIT_STORAGE_URI"
    )

    # ==========================================================================
    # CORS / client
    # ==========================================================================

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_origin_regex: str | None = Field(
        default=None, alias="CORS_ALLOW_ORIGIN_REGEX"
    )
    api_base_url: str = Field(default="http://localhost:8000/api", alias="API_BASE_URL")
    api_client_timeout_seconds: float = Field(
        default=30.0, alias="API_CLIENT_TIMEOUT_SECONDS", gt=0
    )

    # ==========================================================================
    # OpenTelemetry (optional)
    # ==========================================================================

    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="tgvmax-checker", alias="OTEL_SERVICE_NAME")
    otel_service_version: str = Field(default="0.1.0", alias="OTEL_SERVICE_VERSION")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://jaeger:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_HEADERS"
    )

    # ==========================================================================
    # Pydantic Settings Config
    # ==========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> list[str]:
        """Parse comma-separated CORS origins, rejecting wildcard '*'."""
        if isinstance(value, str):
            if not value:
                return []
            if value.lstrip().startswith("["):
                parsed = [str(item).strip() for item in json.loads(value)]
            else:
                parsed = [item.strip() for item in value.split(",") if item.strip()]
        else:
            parsed = list(value) if value is not None else []

        if "*" in parsed:
            raise ValueError(
                "Wildcard CORS origin '*' is not allowed. "
                "Specify explicit origins like 'http://localhost:3000'."
            )
        return parsed

    @field_validator("sncf_api_endpoints", mode="before")
    @classmethod
    def parse_api_endpoints(cls, value: Any) -> list[str]:
        """Parse a '|'-separated list of endpoint templates."""
        if isinstance(value, str):
            return [item.strip() for item in value.split("|") if item.strip()]
        return list(value) if value else []

    @model_validator(mode="after")
    def validate_production_sources(self) -> "Settings":
        """Refuse to serve generated trains in production."""
        if self.environment.lower() == "production" and self.use_mock_data:
            raise ValueError(
                "Mock train data is enabled in production. "
                "Set USE_MOCK_DATA=false to query live sources."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
