"""Error Handlers — map query failures onto the JSON error envelope.

Invariants:
    - Every 4xx/5xx body has the MemberQueryError.to_response() shape
    - Rejected query/path parameters name the offending field in context.field,
      using the parameter name the client sent (teamName, ageGoe, offset)
    - Caller errors log at WARNING without a traceback; store failures log at
      ERROR with the chained driver exception
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Parameter-parsing failures (FastAPI) are reported as ValidationError, so a
      client sees one error code for "offset=-1" and "offset=abc" alike
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from member_query.core.errors import (
    ErrorCategory, ErrorSeverity, MemberQueryError, ValidationError,
)

logger = logging.getLogger(__name__)

_PARAM_LOCATIONS = {"query", "path", "body", "header"}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(MemberQueryError, _member_query_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


async def _member_query_error_handler(request: Request, exc: MemberQueryError):
    extra = {
        "error_code": exc.code,
        "path": request.url.path,
        "field": exc.context.field,
        "operation": exc.context.operation,
    }
    if exc.http_status < 500:
        logger.warning(f"Rejected request: {exc.message}", extra=extra)
    else:
        # exc_info carries the chained SQLAlchemy/driver error
        logger.error(f"Query failed: {exc.message}", extra=extra, exc_info=exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": _param_name(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    field = details[0]["field"] if details else "request"
    logger.warning(
        f"Invalid parameters: {', '.join(d['field'] for d in details)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path, "field": field},
    )
    body = ValidationError("Invalid request parameters", field).to_response()
    body["error"]["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def _unhandled_error_handler(request: Request, exc: Exception):
    """Catch-all — never leaks internal details."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def _param_name(loc) -> str:
    """'ageGoe' from ('query', 'ageGoe'); dotted path for nested locations."""
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _PARAM_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)
