"""FastAPI application exposing the volatility engine."""
import asyncio
import logging
import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ivtracker.api.routes import health, volatility
from ivtracker.core.config import settings
from ivtracker.providers.binance import BinanceProvider
from ivtracker.providers.deribit import DeribitProvider
from ivtracker.scheduler.main import SnapshotScheduler
from ivtracker.services import VolatilityEngine


def configure_logging(level: str) -> None:
    """Send all service logs to stdout at the configured level."""
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # httpx logs every upstream request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Implied vs Realized Volatility API", version="1.0.0")


@app.on_event("startup")
async def start_engine():
    """Create the engine, kick off backfill + first build, start refresh jobs."""
    logger.info(f"Starting volatility engine for {settings.currency} ({settings.index_name})")

    engine = VolatilityEngine(DeribitProvider(), BinanceProvider())
    app.state.engine = engine

    # /api/current answers "Not ready" until this task publishes a snapshot
    app.state.init_task = asyncio.create_task(engine.initialize())

    app.state.scheduler = SnapshotScheduler(engine)
    app.state.scheduler.start()


@app.on_event("shutdown")
async def stop_engine():
    """Stop refresh jobs and close upstream clients."""
    logger.info("Stopping volatility engine...")

    # Startup may have failed part-way; stop only what was created
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown()

    init_task = getattr(app.state, "init_task", None)
    if init_task is not None and not init_task.done():
        init_task.cancel()

    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.close()


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and latency of every request."""
    started = time.perf_counter()
    route = f"{request.method} {request.url.path}"
    logger.debug(f"→ {route} {dict(request.query_params)}")

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.error(f"← {route} failed after {elapsed_ms:.0f}ms: {e}")
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"← {route} {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    """Return the service's {"error": ...} shape for anything the routes did not map."""
    logger.error(
        f"Unhandled {type(exc).__name__} in {request.method} {request.url.path}: {exc}",
        exc_info=True
    )

    message = str(exc) if settings.log_level == "DEBUG" else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": message},
        # CORSMiddleware does not decorate responses built here
        headers={"Access-Control-Allow-Origin": request.headers.get("origin", "*")},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(health.router)
app.include_router(volatility.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.backend_port)
