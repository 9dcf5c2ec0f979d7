"""Global error handlers: every failure leaves as the JSON failure envelope."""

import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube.config import Settings
from vidtube.errors import STATUS_BY_KIND, AppError, ErrorKind
from vidtube.responses import error_body

logger = structlog.get_logger()


def _field_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


def setup_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Register global exception handlers."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Map the error kind to its status code."""
        status_code = STATUS_BY_KIND[exc.kind]
        log = logger.error if status_code >= 500 else logger.info
        log("request_failed", path=request.url.path, method=request.method, kind=exc.kind.value, error=exc.message)
        return JSONResponse(
            status_code=status_code,
            content=jsonable_encoder(error_body(status_code, exc.message, errors=exc.errors, data=exc.data)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Unknown routes and framework-raised HTTP errors."""
        if exc.status_code == 404:
            message = f"Can't find {request.url.path} on this server"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies and query values are bad requests."""
        status_code = STATUS_BY_KIND[ErrorKind.BAD_REQUEST]
        return JSONResponse(
            status_code=status_code,
            content=jsonable_encoder(error_body(status_code, "Validation error", errors=_field_errors(exc))),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; always return JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        status_code = STATUS_BY_KIND[ErrorKind.INTERNAL]
        stack = "".join(traceback.format_exception(exc)) if settings.debug else None
        message = str(exc) if settings.debug else "Internal server error"
        return JSONResponse(status_code=status_code, content=error_body(status_code, message, stack=stack))
