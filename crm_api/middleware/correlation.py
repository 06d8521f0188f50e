"""
Correlation ID middleware.

Each request gets a correlation id (kept from the client's
``X-Correlation-ID`` header when present) and a request id. Both are
bound to context variables for the duration of the request, added to
every log record, and echoed back in the response headers. GraphQL error
extensions report the request id as ``traceId``.
"""

import uuid
import logging
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"
REQUEST_HEADER = "X-Request-ID"
UNKNOWN = "unknown"

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def new_id() -> str:
    return uuid.uuid4().hex[:12]


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds correlation and request ids around each request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or new_id()
        request_id = request.headers.get(REQUEST_HEADER) or new_id()

        correlation_token = correlation_id_ctx.set(correlation_id)
        request_token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_ctx.reset(correlation_token)
            request_id_ctx.reset(request_token)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers[REQUEST_HEADER] = request_id
        return response


def get_correlation_id() -> str:
    return correlation_id_ctx.get() or UNKNOWN


def get_request_id() -> str:
    return request_id_ctx.get() or UNKNOWN


class CorrelationLogFilter(logging.Filter):
    """Adds ``correlation_id`` and ``request_id`` attributes to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.request_id = get_request_id()
        return True
