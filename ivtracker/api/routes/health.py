"""Health check endpoints."""
from fastapi import APIRouter, Depends

from ivtracker.api.routes.volatility import get_engine
from ivtracker.services import VolatilityEngine

router = APIRouter()


@router.get("/health")
async def health_check(engine: VolatilityEngine = Depends(get_engine)):
    """Liveness plus whether a snapshot has been published."""
    return {
        "status": "healthy",
        "service": "implied-vs-realized",
        "ready": engine.is_ready,
        "history_days": len(engine.history),
    }
