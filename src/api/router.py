from __future__ import annotations

from fastapi import APIRouter

from src.api.health import router as health_router
from src.api.lead_analytics import router as lead_analytics_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(lead_analytics_router)
