"""HTTP mapping for booking errors.

Responses carry the error kind and the public message only; internal ids
and exception text stay in the logs.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from guesthouse.domain.errors import BookingError, ErrorKind
from guesthouse.observability.correlation import get_correlation_id
from guesthouse.observability.logging import get_logger
from guesthouse.observability.redaction import safe_log_context

logger = get_logger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_SIGNATURE: 400,
    ErrorKind.UNKNOWN_REFERENCE: 400,
    ErrorKind.RACE_LOST: 409,
    ErrorKind.INTEGRATION_FAILURE: 502,
}


def error_body(exc: BookingError) -> dict[str, str]:
    return {"error": exc.kind.value, "detail": exc.public_message}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    logger.info(
        "booking request rejected",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                path=request.url.path,
                kind=exc.kind.value,
                status_code=status_code,
            )
        },
    )
    return JSONResponse(status_code=status_code, content=error_body(exc))
