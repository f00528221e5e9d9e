from fastapi import APIRouter, Depends

from app.api.shared.dependencies import ServiceContainer, get_services

router = APIRouter()


@router.get("/health")
async def healthcheck(
    services: ServiceContainer = Depends(get_services),
) -> dict[str, str]:
    """Lightweight readiness check reporting the data mode and cache backend."""
    cache_ok = await services.cache.ping()
    return {
        "status": "ok" if cache_ok else "degraded",
        "mode": "mock" if services.search.use_mock_data else "live",
        "cache": services.cache.backend,
    }
