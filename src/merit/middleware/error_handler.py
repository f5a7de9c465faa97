"""Global error handlers: every failure becomes ``{"success": false, "error": ...}``."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from merit.errors import MeritError

logger = structlog.get_logger()


def error_response(status_code: int, message: str, **extra: object) -> JSONResponse:
    """Build the tagged failure envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(MeritError)
    async def merit_error_handler(_request: Request, exc: MeritError) -> JSONResponse:
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(422, "Validation error", errors=jsonable_errors(exc))

    @app.exception_handler(OperationalError)
    async def store_unavailable_handler(request: Request, exc: OperationalError) -> JSONResponse:
        logger.error("store_unavailable", path=request.url.path, error=str(exc.orig))
        return error_response(503, "Service temporarily unavailable")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return error_response(500, "Internal server error")


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Validation errors without the non-serialisable ``ctx``/``input`` members."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
