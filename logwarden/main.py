"""FastAPI application entry point for logwarden."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from logwarden.api.dependencies import get_timeout_manager
from logwarden.api.middleware.error_handler import global_exception_handler
from logwarden.api.middleware.logging import StructuredLoggingMiddleware
from logwarden.api.routes.health import router as health_router
from logwarden.api.routes.jobs import router as jobs_router
from logwarden.api.routes.logs import router as logs_router
from logwarden.api.routes.providers import router as providers_router
from logwarden.config import settings
from logwarden.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level)

    logger.info(
        "logwarden_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        use_database=settings.use_database,
    )

    if settings.use_database:
        from logwarden.db.database import init_db

        await init_db()

    timeouts = get_timeout_manager()
    timeouts.start()

    yield

    await timeouts.stop()
    logger.info("logwarden_shutting_down")


app = FastAPI(
    title="logwarden",
    description="Proxy log ingestion and anomaly detection service",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(StructuredLoggingMiddleware)

# Client errors are answered directly; anything else reaches the catch-all
app.add_exception_handler(ValueError, global_exception_handler)
app.add_exception_handler(LookupError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(health_router)
app.include_router(logs_router)
app.include_router(jobs_router)
app.include_router(providers_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
