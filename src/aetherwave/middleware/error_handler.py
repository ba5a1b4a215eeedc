"""Global error handlers: every error leaves as JSON with a ``detail`` key."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aetherwave.errors import InvalidTierError, NotFoundError, OwnershipViolationError, ProgressionError

logger = structlog.get_logger()


def _status_for(exc: ProgressionError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, OwnershipViolationError):
        return 403
    if isinstance(exc, InvalidTierError):
        return 400
    return 409


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(ProgressionError)
    async def progression_exception_handler(request: Request, exc: ProgressionError) -> JSONResponse:
        """Expected domain outcomes (missing entity, wrong owner, bad tier)."""
        status = _status_for(exc)
        logger.info("progression_error", path=request.url.path, status=status, error=str(exc))
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions (storage failures and bugs)."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
