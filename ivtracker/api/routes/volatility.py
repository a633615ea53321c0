"""Snapshot, realtime comparison and history API routes."""
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ivtracker.providers import UpstreamUnavailable
from ivtracker.services import BuildError, NotReady, VolatilityEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["volatility"])


def get_engine(request: Request) -> VolatilityEngine:
    """Resolve the process-owned engine from application state."""
    return request.app.state.engine


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/current")
async def get_current(engine: VolatilityEngine = Depends(get_engine)):
    """
    Get the snapshot, a realtime comparison against it and historical stats.

    Also latches any due reference snapshots and records today's surprise
    ratios (overwritten as the day progresses).
    """
    try:
        snapshot = engine.get_current_snapshot()
    except NotReady:
        return _error(503, "Not ready")

    engine.observe_references()

    try:
        realtime = await engine.get_comparison(snapshot)
    except UpstreamUnavailable as e:
        logger.warning(f"Realtime comparison unavailable: {e}")
        return _error(503, str(e))

    stats = engine.get_historical_stats()
    engine.record_today(realtime)

    return {
        "snapshot": snapshot,
        "realtime": realtime,
        "stats": stats,
    }


@router.api_route("/refresh", methods=["GET", "POST"])
async def refresh(engine: VolatilityEngine = Depends(get_engine)):
    """Rebuild the snapshot; the previous one keeps serving if the build fails."""
    try:
        await engine.refresh_snapshot()
    except BuildError as e:
        return _error(500, str(e))
    except UpstreamUnavailable as e:
        return _error(503, str(e))

    return {"success": True}


@router.get("/stats")
async def get_stats(engine: VolatilityEngine = Depends(get_engine)):
    """Historical surprise-ratio averages and trends."""
    return engine.get_historical_stats()


@router.get("/history")
async def get_history(days: int = 30, engine: VolatilityEngine = Depends(get_engine)):
    """The most recent `days` retained daily records, oldest first."""
    records = engine.history.records()[-days:] if days > 0 else []
    return {"count": len(records), "records": records}


@router.get("/references")
async def get_references(engine: VolatilityEngine = Depends(get_engine)):
    """Latched weekly and monthly reference snapshots (null until latched)."""
    return engine.get_reference_snapshots()
