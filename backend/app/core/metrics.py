from __future__ import annotations

from prometheus_client import Counter, Histogram

CACHE_EVENTS = Counter(
    "tgvmax_cache_events_total",
    "Cache operations recorded by the train search service.",
    labelnames=("cache", "event"),
)
SOURCE_REQUESTS = Counter(
    "tgvmax_source_requests_total",
    "Train source attempts grouped by outcome.",
    labelnames=("source", "result"),
)
SOURCE_REQUEST_LATENCY = Histogram(
    "tgvmax_source_request_seconds",
    "Latency of train source attempts.",
    labelnames=("source",),
)
RATE_LIMIT_REJECTIONS = Counter(
    "tgvmax_rate_limit_rejections_total",
    "Search requests rejected by the rate limiter.",
)
SEARCH_RESPONSES = Counter(
    "tgvmax_search_responses_total",
    "Train search responses grouped by the source that served them.",
    labelnames=("source",),
)


def record_cache_event(cache: str, event: str) -> None:
    """Increment a cache event counter."""
    CACHE_EVENTS.labels(cache=cache, event=event).inc()


def observe_source_request(source: str, result: str, duration_seconds: float) -> None:
    """Record a train source result and its latency."""
    SOURCE_REQUESTS.labels(source=source, result=result).inc()
    SOURCE_REQUEST_LATENCY.labels(source=source).observe(duration_seconds)


def record_rate_limit_rejection() -> None:
    RATE_LIMIT_REJECTIONS.inc()


def record_search_response(source: str) -> None:
    SEARCH_RESPONSES.labels(source=source).inc()
