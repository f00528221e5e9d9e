"""Tests for Settings validation and parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import DEFAULT_SNCF_API_ENDPOINTS, Settings


def test_defaults_serve_mock_data_from_memory_cache():
    settings = Settings()

    assert settings.use_mock_data is True
    assert settings.valkey_url == "memory://"
    assert settings.cache_ttl_seconds == 300
    assert settings.rate_limit_requests == 10
    assert settings.rate_limit_window_seconds == 60
    assert settings.sncf_connect_timeout_ms == 30000
    assert settings.sncf_api_endpoints == DEFAULT_SNCF_API_ENDPOINTS


def test_environment_variables_are_read(monkeypatch):
    monkeypatch.setenv("USE_MOCK_DATA", "false")
    monkeypatch.setenv("CACHE_TTL", "120")
    monkeypatch.setenv("SNCF_CONNECT_TIMEOUT", "45000")
    monkeypatch.setenv("SNCF_CONNECT_HEADLESS", "false")

    settings = Settings()

    assert settings.use_mock_data is False
    assert settings.cache_ttl_seconds == 120
    assert settings.sncf_connect_timeout_ms == 45000
    assert settings.sncf_connect_headless is False


def test_cors_parsing_accepts_comma_separated():
    settings = Settings(
        CORS_ALLOW_ORIGINS="https://app.example.com, http://localhost:9000"
    )

    assert settings.cors_allow_origins == [
        "https://app.example.com",
        "http://localhost:9000",
    ]


def test_cors_parsing_accepts_json_array():
    settings = Settings(
        CORS_ALLOW_ORIGINS='["https://app.example.com", "http://localhost:9000"]'
    )

    assert settings.cors_allow_origins == [
        "https://app.example.com",
        "http://localhost:9000",
    ]


def test_cors_parsing_rejects_wildcard():
    with pytest.raises(ValidationError):
        Settings(CORS_ALLOW_ORIGINS="http://localhost:3000, *")


def test_api_endpoints_are_pipe_separated(monkeypatch):
    monkeypatch.setenv(
        "SNCF_API_ENDPOINTS",
        "https://a.test/{origin}/{destination}/{date} | https://b.test/?d={date}",
    )

    settings = Settings()

    assert settings.sncf_api_endpoints == [
        "https://a.test/{origin}/{destination}/{date}",
        "https://b.test/?d={date}",
    ]


def test_valkey_fields_accept_redis_aliases(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://example:6379/1")

    settings = Settings()

    assert settings.valkey_url == "redis://example:6379/1"


def test_production_rejects_mock_data():
    with pytest.raises(ValidationError, match="USE_MOCK_DATA=false"):
        Settings(ENVIRONMENT="production", USE_MOCK_DATA=True)

    assert Settings(ENVIRONMENT="production", USE_MOCK_DATA=False).use_mock_data is False


def test_bounds_enforced():
    with pytest.raises(ValidationError):
        Settings(CACHE_CIRCUIT_BREAKER_TIMEOUT_SECONDS=-0.1)
    with pytest.raises(ValidationError):
        Settings(RATE_LIMIT_REQUESTS=0)
    with pytest.raises(ValidationError):
        Settings(CACHE_TTL=-1)
