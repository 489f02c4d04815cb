from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobtracker.api.router import api_router
from jobtracker.core.config import get_settings
from jobtracker.core.telemetry import (
    TelemetryRuntime,
    configure_logging,
    install_request_logging,
    setup_api_telemetry,
    shutdown_api_telemetry,
)
from jobtracker.services.repository import get_repository

settings = get_settings()
configure_logging(settings)
_telemetry_runtime: TelemetryRuntime | None = None


@asynccontextmanager
async def lifespan(_: FastAPI):
    global _telemetry_runtime
    try:
        yield
    finally:
        if _telemetry_runtime is not None:
            shutdown_api_telemetry(app, _telemetry_runtime)
            _telemetry_runtime = None
        # Release the asyncpg pool on teardown.
        await get_repository().close()
        get_repository.cache_clear()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type"],
    expose_headers=["Content-Disposition"],
    max_age=300,
)
_telemetry_runtime = setup_api_telemetry(app, settings)
install_request_logging(app)

app.include_router(api_router)
