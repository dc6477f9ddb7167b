"""Global error handler — consistent JSON error envelope."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillex.errors import INTERNAL_ERROR_MESSAGE, ApiError, ErrorCode, code_for_status, error_body

logger = structlog.get_logger()

_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header", "cookie"})


def _field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic errors into ``{field, message, type}`` entries."""
    out = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        out.append({
            "field": ".".join(loc),
            "message": str(err.get("msg", "")),
            "type": str(err.get("type", "")),
        })
    return out


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render HTTP exceptions as the error envelope."""
        if isinstance(exc, ApiError):
            content = error_body(exc.code, exc.message, exc.details)
        else:
            content = error_body(code_for_status(exc.status_code), str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Reject malformed input with field-level details."""
        return JSONResponse(
            status_code=400,
            content=error_body(
                ErrorCode.VALIDATION_ERROR,
                "Invalid request data",
                {"errors": _field_errors(list(exc.errors()))},
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions — log the cause, return a generic message."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE),
        )
