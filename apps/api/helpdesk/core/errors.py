"""Exception handlers rendering `{"detail", "code"}` error bodies."""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from helpdesk.core.config import settings
from helpdesk.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)

ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    500: "INTERNAL_SERVER_ERROR",
}


def error_code(status_code: int) -> str:
    """Map a status code to its error code name."""
    if status_code in ERROR_CODES:
        return ERROR_CODES[status_code]
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return "INTERNAL_SERVER_ERROR" if status_code >= 500 else "BAD_REQUEST"


def error_body(status_code: int, detail, **extra) -> dict:
    body = {"detail": detail, "code": error_code(status_code)}
    body.update(extra)
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures are reported as 400 with field errors."""
    errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    return JSONResponse(
        status_code=400,
        content=error_body(400, "Invalid request", errors=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    detail = str(exc) if settings.is_dev else "Internal server error"
    return JSONResponse(status_code=500, content=error_body(500, detail))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
