"""Prometheus scrape endpoint, mounted outside the /api prefix."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose cache, source and rate-limit counters for scraping."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
