"""Tests for FastAPI app lifecycle helpers."""

from __future__ import annotations

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app import main
from tests.conftest import make_settings


@pytest.fixture
def restore_loggers():
    names = ("app", *main.NOISY_LOGGERS)
    original = [(logging.getLogger(name), logging.getLogger(name).level) for name in names]
    yield
    for logger, level in original:
        logger.setLevel(level)


def test_configure_logging_sets_expected_levels(restore_loggers):
    main._configure_logging("info")

    assert logging.getLogger("app").level == logging.INFO
    for name in main.NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING

    main._configure_logging("DEBUG")

    assert logging.getLogger("app").level == logging.DEBUG
    for name in main.NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.DEBUG


def test_configure_logging_ignores_unknown_level(restore_loggers):
    main._configure_logging("chatty")

    assert logging.getLogger("app").level == logging.INFO


def test_request_id_middleware_respects_existing_header(monkeypatch):
    app = FastAPI()
    main._install_request_id_middleware(app)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    client = TestClient(app)
    response = client.get("/ping", headers={main.REQUEST_ID_HEADER: "external-id"})
    assert response.headers[main.REQUEST_ID_HEADER] == "external-id"

    monkeypatch.setattr(main, "uuid4", lambda: "generated-id")
    response = client.get("/ping")
    assert response.headers[main.REQUEST_ID_HEADER] == "generated-id"


@pytest.mark.asyncio
async def test_lifespan_configures_telemetry_and_closes_services(monkeypatch):
    fake_settings = SimpleNamespace(
        otel_service_name="svc",
        otel_service_version="1.0.0",
        otel_exporter_otlp_endpoint="http://otel",
        otel_exporter_otlp_headers=None,
        otel_enabled=True,
    )
    configure_calls = {}

    def fake_configure(**kwargs):
        configure_calls.update(kwargs)

    httpx_calls = {}

    def fake_instrument_httpx(*, enabled: bool):
        httpx_calls["enabled"] = enabled

    fake_services = SimpleNamespace(aclose=AsyncMock())
    monkeypatch.setattr(main, "configure_opentelemetry", fake_configure)
    monkeypatch.setattr(main, "instrument_httpx", fake_instrument_httpx)

    app = FastAPI()
    app.state.settings = fake_settings
    app.state.services = fake_services

    async with main.lifespan(app):
        assert configure_calls["service_name"] == "svc"
        assert configure_calls["enabled"] is True
        assert httpx_calls["enabled"] is True
        fake_services.aclose.assert_not_awaited()

    fake_services.aclose.assert_awaited_once()


def test_create_app_builds_services_from_settings(monkeypatch):
    settings = make_settings(use_mock_data=True, otel_enabled=False)
    fastapi_call = {}

    def fake_instrument_fastapi(app: FastAPI, *, enabled: bool):
        fastapi_call["enabled"] = enabled

    monkeypatch.setattr(main, "instrument_fastapi", fake_instrument_fastapi)

    created_app = main.create_app(settings)

    assert isinstance(created_app, FastAPI)
    assert fastapi_call["enabled"] is False
    assert created_app.state.settings is settings
    assert created_app.state.services.search.use_mock_data is True
    assert created_app.state.services.browser_session is None


def test_live_mode_wires_enabled_sources():
    settings = make_settings(sncf_connect_enabled=True, sncf_api_enabled=True)

    services = main.build_services(settings)

    assert [source.name for source in services.search.sources] == ["scraper", "api"]
    assert services.browser_session is not None
    assert not services.browser_session.is_open


def test_cors_headers_for_allowed_origin():
    settings = make_settings(CORS_ALLOW_ORIGINS="http://localhost:3000")

    with TestClient(main.create_app(settings)) as client:
        response = client.get(
            "/api/health", headers={"Origin": "http://localhost:3000"}
        )

    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
