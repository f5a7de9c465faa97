"""Middleware registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from merit.config import Settings
from merit.middleware.error_handler import setup_error_handlers
from merit.middleware.logging import setup_logging
from merit.middleware.rate_limit import RateLimitMiddleware
from merit.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap every response, including 429s from the rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
