"""Global error handlers: consistent JSON error responses."""

import traceback
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from olimpo.errors import AppError, ErrorKind

logger = structlog.get_logger()


def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into {field, message} pairs."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = str(err.get("msg", ""))
        errors.append({"field": ".".join(loc), "message": message.removeprefix("Value error, ")})
    return errors


def setup_error_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Register global exception handlers."""

    def _body(detail: str, exc: BaseException, **extra: Any) -> dict[str, Any]:  # noqa: ANN401
        content: dict[str, Any] = {"detail": detail, **extra}
        if debug:
            content["trace"] = traceback.format_exception(exc)
        return content

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Typed service errors carry their own status code and kind."""
        if exc.status_code >= 500:
            logger.error("app_error", path=request.url.path, kind=exc.kind, error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(exc.message, exc, kind=str(exc.kind)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Schema validation failures are reported as 400 with field-level messages."""
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Datos de entrada inválidos",
                "kind": str(ErrorKind.VALIDATION),
                "errors": _field_errors(exc),
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("database_error", path=request.url.path, method=request.method, error=str(exc), exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_body(f"Error de base de datos: {exc.__class__.__name__}", exc, kind=str(ErrorKind.UPSTREAM)),
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
            content=_body("Error interno del servidor", exc),
        )
