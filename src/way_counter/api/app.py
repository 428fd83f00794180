"""FastAPI application for way-counter."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ..config import Settings, get_settings
from ..counter import WayCounterService
from ..exceptions import WayCounterError
from ..locations import LocationStore
from ..reference import load_reference_ways
from . import counters, locations
from .dependencies import build_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan."""
    settings: Settings = app.state.settings
    service: WayCounterService = app.state.service

    # Startup: seed missing counters without holding up serving
    if settings.reference_file:
        ways = load_reference_ways(settings.reference_file)
        app.state.seed_task = service.start_seeding(ways)
    yield
    # Shutdown: stop seeding and close connections
    task = app.state.seed_task
    if task is not None and not task.done():
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    await service.close()


async def way_counter_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render package errors with their own status code and body."""
    assert isinstance(exc, WayCounterError)
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


def create_app(
    settings: Settings | None = None,
    service: WayCounterService | None = None,
    location_store: LocationStore | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (loaded from the environment if None)
        service: Counter service (built from settings if None)
        location_store: Location store (file from settings if None)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="way-counter",
        description="Bounded way counters backed by DynamoDB",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service or build_service(settings)
    app.state.locations = location_store or LocationStore(settings.locations_file)
    app.state.seed_task = None

    app.add_exception_handler(WayCounterError, way_counter_error_handler)

    app.include_router(counters.router, tags=["Counters"])
    app.include_router(locations.router, tags=["Locations"])

    # Static files (index.html) last, so API routes win
    static_path = Path(settings.static_dir)
    if static_path.is_dir():
        app.mount("/", StaticFiles(directory=str(static_path), html=True), name="static")

    return app
