"""Structured logging helpers and request id propagation."""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the id of the request being handled, if any."""
    return _REQUEST_ID.get()


def build_log_context(
    *,
    user_id: str | None = None,
    ticket_id: str | None = None,
    client_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict without contact details or message bodies."""
    context: dict[str, Any] = {}
    request_id = request_id or get_request_id()
    if user_id:
        context["user_id"] = user_id
    if ticket_id:
        context["ticket_id"] = ticket_id
    if client_id:
        context["client_id"] = client_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Accept or mint an X-Request-ID and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = _REQUEST_ID.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _REQUEST_ID.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_logging(level: str = "INFO") -> None:
    """Basic root logger setup used by the app entry point."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
