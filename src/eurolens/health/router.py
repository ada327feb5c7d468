"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eurolens.config import get_settings
from eurolens.database import get_session
from eurolens.redis_client import redis_is_healthy

router = APIRouter()

_INFO_CHECKS = {"cache_entries", "summaries"}


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: database always, Redis only when it backs the rate limiter."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as exc:
        checks["database"] = f"error: {exc}"

    if get_settings().rate_limit_backend == "redis":
        checks["redis"] = "ok" if await redis_is_healthy() else "error: unreachable"

    checks["cache_entries"] = request.app.state.response_cache.size()
    # Informational: a missing provider key disables /api/summarize but not the API
    checks["summaries"] = "enabled" if request.app.state.summary_generator is not None else "disabled"
    all_ok = all(v == "ok" for k, v in checks.items() if k not in _INFO_CHECKS)
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
