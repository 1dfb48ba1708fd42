from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI
from starlette.requests import Request

from bokkal.api.router import api_router
from bokkal.core.config import get_settings
from bokkal.core.telemetry import (
    TelemetryRuntime,
    configure_api_logging,
    setup_api_telemetry,
    shutdown_api_telemetry,
)
from bokkal.services.geocoder import get_geocoder
from bokkal.services.repository import get_repository
from bokkal.services.shared_clients import SHARED_CLIENTS

settings = get_settings()
_telemetry_runtime: TelemetryRuntime | None = None
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    global _telemetry_runtime
    try:
        yield
    finally:
        if _telemetry_runtime is not None:
            shutdown_api_telemetry(app, _telemetry_runtime)
            _telemetry_runtime = None
        # Ensure asyncpg pool and shared geocoder clients shut down on app teardown.
        await get_repository().close()
        get_repository.cache_clear()
        if get_geocoder.cache_info().currsize:
            await get_geocoder().aclose()
        get_geocoder.cache_clear()
        await SHARED_CLIENTS.close()


configure_api_logging()
app = FastAPI(title=settings.app_name, lifespan=lifespan)
_telemetry_runtime = setup_api_telemetry(app, settings)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


app.include_router(api_router)
