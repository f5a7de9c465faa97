"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from merit.config import get_settings
from merit.database import get_session
from merit.redis_client import get_optional_redis

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe. The database is required; Redis is optional."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc}"

    redis = get_optional_redis()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except RedisError as exc:
            checks["redis"] = f"error: {exc}"

    all_ok = checks["database"] == "ok" and checks["redis"] in ("ok", "disabled")
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
