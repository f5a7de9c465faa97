"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from merit.auth.router import router as auth_router
from merit.config import get_settings
from merit.database import close_db, init_db
from merit.events.router import router as events_router
from merit.health.router import router as health_router
from merit.merits.router import router as merits_router
from merit.middleware import setup_middleware
from merit.redis_client import close_redis, init_redis
from merit.registrations.router import router as registrations_router
from merit.students.router import router as students_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("app_started", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Merit Tracker API",
        description="Backend API for university event registration and merit points tracking",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(students_router)
    app.include_router(events_router)
    app.include_router(registrations_router)
    app.include_router(merits_router)

    return app


app = create_app()
