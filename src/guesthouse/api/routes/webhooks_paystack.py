"""Paystack webhook route - public endpoint for payment events.

Security rules:
- Validate X-Paystack-Signature on every request, before parsing.
- Never log payload or signature header.
- 2xx only when the event was applied, ignored, or is a known no-op.
- 400 for events Paystack should not retry (bad signature, unknown reference).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request, Response

from guesthouse.api.deps import get_coordinator
from guesthouse.domain.bookings import BookingCoordinator
from guesthouse.domain.errors import (
    InvalidSignatureError,
    RaceLostError,
    UnknownReferenceError,
    ValidationError,
)
from guesthouse.domain.models import BookingStatus
from guesthouse.observability.correlation import get_correlation_id
from guesthouse.observability.logging import get_logger
from guesthouse.observability.redaction import safe_log_context
from guesthouse.paystack.webhook import SIGNATURE_HEADER

router = APIRouter(tags=["webhooks"])

logger = get_logger(__name__)


@router.post("/webhooks/paystack")
async def paystack_webhook(
    request: Request,
    paystack_signature: str | None = Header(None, alias=SIGNATURE_HEADER),
    coordinator: BookingCoordinator = Depends(get_coordinator),
) -> Response:
    """Receive Paystack webhook events.

    Returns:
        200 "ok" if the booking is PAID (newly or by earlier delivery).
        200 "ignored" for events other than charge.success.
        200 "noop" if the booking was already FAILED or CANCELLED.
        200 "race lost" if payment arrived for a room taken meanwhile
            (booking marked FAILED, flagged for manual refund).
        400 on invalid signature, malformed payload or unknown reference.
        500 on server misconfiguration.
    """
    correlation_id = get_correlation_id()

    try:
        payload_bytes = await request.body()
    except Exception:
        logger.warning(
            "failed to read request body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=400, content="invalid body")

    try:
        booking = coordinator.reconcile_payment(paystack_signature, payload_bytes)
    except RuntimeError:
        logger.error(
            "webhook secret not configured",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=500, content="server configuration error")
    except InvalidSignatureError:
        logger.warning(
            "paystack signature validation failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=400, content="invalid signature")
    except ValidationError:
        logger.warning(
            "paystack payload invalid",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=400, content="invalid payload")
    except UnknownReferenceError:
        return Response(status_code=400, content="unknown reference")
    except RaceLostError as e:
        # Acknowledge so Paystack stops retrying; the refund is manual
        logger.warning(
            "paystack payment acknowledged after race lost",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    booking_id=e.booking_id,
                )
            },
        )
        return Response(status_code=200, content="race lost")

    if booking is None:
        return Response(status_code=200, content="ignored")

    if booking.status != BookingStatus.PAID:
        # Redelivery for a FAILED or CANCELLED booking; nothing changed
        return Response(status_code=200, content="noop")

    logger.info(
        "paystack webhook processed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                booking_id=booking.id,
                status=booking.status.value,
            )
        },
    )
    return Response(status_code=200, content="ok")
