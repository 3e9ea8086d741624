"""Health and readiness endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from logwarden.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from logwarden.main import get_uptime

    return {
        "status": "healthy",
        "version": settings.app_version,
        "uptime_seconds": get_uptime(),
    }


@router.get("/ready")
async def ready() -> JSONResponse:
    db_ok: bool | None = None
    if settings.use_database:
        from logwarden.db.database import check_db

        db_ok = await check_db()

    all_ready = db_ok is not False
    return JSONResponse(
        status_code=200 if all_ready else 503,
        content={
            "status": "ready" if all_ready else "degraded",
            "database": db_ok,
            "job_store": "sql" if settings.use_database else "memory",
        },
    )
