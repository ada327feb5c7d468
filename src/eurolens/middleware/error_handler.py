"""Global error handlers: every error body is ``{"error": message}``."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from eurolens.middleware.rate_limit import RateLimitExceeded

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """HTTP errors raised by routes and dependencies."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed request bodies and parameters."""
        return JSONResponse(
            status_code=422,
            content={"error": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Caller exceeded its summary quota."""
        decision = exc.decision
        logger.info("rate_limited", path=request.url.path, retry_after=decision.retry_after)
        return JSONResponse(
            status_code=429,
            content={
                "error": "Too many requests. Please wait before generating another summary.",
                "retryAfter": decision.retry_after,
            },
            headers=decision.headers(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )
