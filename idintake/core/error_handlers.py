"""Exception handlers rendering every failure as RFC 7807 problem details."""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from idintake.api.schemas import ProblemDetail
from idintake.core.exceptions import BaseError, ErrorCategory
from idintake.core.middleware import ensure_trace_id

logger = logging.getLogger(__name__)


def problem_response(
    request: Request,
    *,
    http_status: int,
    code: str,
    title: str,
    detail: Optional[str] = None,
    category: str = ErrorCategory.CLIENT_ERROR.value,
    retryable: bool = False,
) -> JSONResponse:
    trace_id = ensure_trace_id(request)
    problem = ProblemDetail(
        type=f"/errors/{code}",
        title=title,
        status=http_status,
        detail=detail,
        instance=request.url.path,
        code=code,
        category=category,
        retryable=retryable,
        trace_id=trace_id,
    )
    return JSONResponse(
        status_code=http_status,
        content=problem.model_dump(exclude_none=True),
        headers={"X-Trace-ID": trace_id},
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """422 for malformed request bodies and query parameters; reports the first error."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Validation failed")
    detail = f"{field}: {message}" if field else message

    logger.warning("Validation error: %s", detail, extra={"trace_id": ensure_trace_id(request)})
    return problem_response(
        request,
        http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="VALIDATION_ERROR",
        title="Request validation failed",
        detail=detail,
    )


async def handle_app_error(request: Request, exc: BaseError):
    body = exc.to_dict()
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "%s: %s",
        exc.error_code,
        exc.message,
        extra={
            "trace_id": ensure_trace_id(request),
            "error_code": exc.error_code,
            "http_status": exc.http_status,
        },
    )
    return problem_response(
        request,
        http_status=exc.http_status,
        code=exc.error_code,
        title=exc.message,
        detail=body["detail"],
        category=body["category"],
        retryable=exc.retryable,
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    """Plain HTTP errors raised by routes and dependencies (400, 404, 503)."""
    logger.warning(
        "HTTP %d: %s",
        exc.status_code,
        exc.detail,
        extra={"trace_id": ensure_trace_id(request), "http_status": exc.status_code},
    )
    server_side = exc.status_code >= 500
    return problem_response(
        request,
        http_status=exc.status_code,
        code=f"HTTP_{exc.status_code}",
        title=str(exc.detail),
        detail=str(exc.detail),
        category=(ErrorCategory.SERVER_ERROR if server_side else ErrorCategory.CLIENT_ERROR).value,
        retryable=exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE,
    )


async def handle_unknown_error(request: Request, exc: Exception):
    logger.exception(
        "Unhandled %s", type(exc).__name__, extra={"trace_id": ensure_trace_id(request)}
    )
    return problem_response(
        request,
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_SERVER_ERROR",
        title="Internal server error",
        detail="An unexpected error occurred. Please contact support with trace ID.",
        category=ErrorCategory.SERVER_ERROR.value,
    )
