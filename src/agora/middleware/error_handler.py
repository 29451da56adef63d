"""Global exception handlers: every error leaves as ``{"error", "detail", ...}`` JSON."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agora.errors import AgoraError, ValidationError

logger = structlog.get_logger()

_HTTP_ERROR_CODES = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "Conflict",
    429: "RateLimited",
}


def _field_name(loc: tuple[object, ...]) -> str:
    """Body field path from a pydantic error location, dropping the ``body`` prefix."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(AgoraError)
    async def agora_error_handler(request: Request, exc: AgoraError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                error=exc.code,
                detail=exc.detail,
                extra=exc.extra,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        fields: list[str] = []
        for error in exc.errors():
            name = _field_name(tuple(error.get("loc", ())))
            if name not in fields:
                fields.append(name)
        err = ValidationError(fields)
        return JSONResponse(status_code=err.status_code, content=err.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": _HTTP_ERROR_CODES.get(exc.status_code, "HttpError"), "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "InternalError", "detail": "Internal server error"},
        )
