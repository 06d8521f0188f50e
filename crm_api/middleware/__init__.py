"""
Middleware modules for the CRM API.

- Correlation ID tracking so GraphQL errors and log lines share a trace id
"""

from .correlation import CorrelationIdMiddleware, CorrelationLogFilter, correlation_id_ctx, request_id_ctx

__all__ = [
    "CorrelationIdMiddleware",
    "CorrelationLogFilter",
    "correlation_id_ctx",
    "request_id_ctx",
]
