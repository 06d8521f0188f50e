"""
Error model for the CRM API.

Domain errors are ``CRMException`` subclasses. Raised from GraphQL
resolvers they surface as GraphQL errors whose ``extensions`` carry the
error code and trace id; raised on the REST routes they are rendered as
RFC 7807 problem details (application/problem+json).

See: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Optional, Dict, Any, List
from enum import Enum
from pydantic import BaseModel
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uuid
from datetime import datetime, timezone

from crm_api.middleware.correlation import get_request_id

logger = logging.getLogger(__name__)

PROBLEM_BASE_URL = "https://api.crm.local/problems"

STATUS_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Validation Error",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


class ErrorCode(str, Enum):
    """Machine-readable error codes shared by REST and GraphQL errors."""

    VALIDATION_ERROR = "VAL_001"
    NOT_FOUND = "RES_001"
    CONFLICT = "RES_003"
    INTERNAL_ERROR = "SRV_001"
    SERVICE_UNAVAILABLE = "SRV_002"


STATUS_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def _trace_id() -> str:
    """The current request id, or a fresh id outside a request."""
    request_id = get_request_id()
    if request_id != "unknown":
        return request_id
    return uuid.uuid4().hex[:12]


def _field_errors(errors) -> List[Dict[str, Any]]:
    """Flatten pydantic / FastAPI error dicts to ``{field, message, type}``."""
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in errors
    ]


class ProblemDetail(BaseModel):
    """RFC 7807 body, extended with ``code``, ``timestamp``, ``trace_id`` and ``errors``."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    instance: Optional[str] = None
    code: str
    timestamp: str
    trace_id: str
    errors: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def build(
        cls,
        status: int,
        code: ErrorCode,
        detail: str,
        instance: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        trace_id: Optional[str] = None,
    ) -> "ProblemDetail":
        return cls(
            type=f"{PROBLEM_BASE_URL}/{code.value.lower().replace('_', '-')}",
            title=STATUS_TITLES.get(status, "Error"),
            status=status,
            detail=detail,
            instance=instance,
            code=code.value,
            timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            trace_id=trace_id or _trace_id(),
            errors=errors,
        )

    def to_response(self, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
        return JSONResponse(
            status_code=self.status,
            content=self.model_dump(exclude_none=True),
            media_type="application/problem+json",
            headers=headers,
        )


class CRMException(HTTPException):
    """
    Base exception for the CRM API.

    Usage:
        raise CRMException(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail="Segment not found",
        )
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.errors = errors
        self.trace_id = _trace_id()
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return str(self.detail)

    @property
    def extensions(self) -> Dict[str, Any]:
        """GraphQL error extensions; graphql-core copies these from the original error."""
        extensions = {
            "code": self.code.value,
            "status": self.status_code,
            "traceId": self.trace_id,
        }
        if self.errors:
            extensions["errors"] = self.errors
        return extensions

    def to_problem_detail(self, instance: Optional[str] = None) -> ProblemDetail:
        return ProblemDetail.build(
            self.status_code,
            self.code,
            self.detail,
            instance=instance,
            errors=self.errors,
            trace_id=self.trace_id,
        )


class NotFoundError(CRMException):
    """Resource not found (404)."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail=f"{resource} with ID {resource_id} was not found",
        )


class ValidationError(CRMException):
    """Invalid arguments or stored data (422)."""

    def __init__(self, detail: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            status_code=422,
            code=ErrorCode.VALIDATION_ERROR,
            detail=detail,
            errors=errors,
        )

    @classmethod
    def from_pydantic(cls, detail: str, exc) -> "ValidationError":
        """Build from a pydantic ValidationError, keeping field-level details."""
        return cls(detail, errors=_field_errors(exc.errors()))


def create_exception_handlers():
    """
    Problem-detail handlers for the REST routes.

    Usage in main.py:
        handlers = create_exception_handlers()
        app.add_exception_handler(CRMException, handlers["crm"])
    """

    async def handle_crm_exception(request: Request, exc: CRMException) -> JSONResponse:
        logger.warning(
            f"CRMException: {exc.code.value} - {exc.detail}",
            extra={"trace_id": exc.trace_id, "path": request.url.path},
        )
        problem = exc.to_problem_detail(instance=request.url.path)
        return problem.to_response(headers=exc.headers)

    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        code = STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        problem = ProblemDetail.build(
            exc.status_code, code, str(exc.detail), instance=request.url.path
        )
        return problem.to_response(headers=getattr(exc, "headers", None))

    async def handle_validation_exception(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problem = ProblemDetail.build(
            422,
            ErrorCode.VALIDATION_ERROR,
            "Request validation failed",
            instance=request.url.path,
            errors=_field_errors(exc.errors()),
        )
        return problem.to_response()

    return {
        "crm": handle_crm_exception,
        "http": handle_http_exception,
        "validation": handle_validation_exception,
    }
