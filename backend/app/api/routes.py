from fastapi import APIRouter

from app.api.endpoints.health import router as health_router
from app.api.endpoints.sncf import router as sncf_router
from app.api.endpoints.stations import router as stations_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["meta"])
api_router.include_router(sncf_router, tags=["sncf"])
api_router.include_router(stations_router, tags=["stations"])
