"""Paystack webhook signature validation and payload parsing.

Purpose:
- Validate X-Paystack-Signature (HMAC-SHA512 of the raw body, hex) before
  any payload field is trusted.
- Extract only the event type and payment reference.
- Never log payload or signature.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass

from guesthouse.domain.errors import InvalidSignatureError, ValidationError
from guesthouse.observability.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Paystack-Signature"

CHARGE_SUCCESS = "charge.success"


class InvalidPayloadError(ValidationError):
    """Payload is not JSON or misses required fields."""


@dataclass
class PaystackWebhookEvent:
    """Minimal extracted data from a Paystack webhook event."""

    event_type: str
    reference: str | None

    @property
    def is_successful_charge(self) -> bool:
        return self.event_type == CHARGE_SUCCESS


def compute_signature(payload_bytes: bytes, secret: str) -> str:
    return hmac.new(
        key=secret.encode("utf-8"),
        msg=payload_bytes,
        digestmod=hashlib.sha512,
    ).hexdigest()


def verify_signature(payload_bytes: bytes, signature: str | None, secret: str) -> None:
    """Verify the webhook signature in constant time.

    Raises:
        InvalidSignatureError: If the signature is missing or does not match.
    """
    if not signature:
        raise InvalidSignatureError("missing signature header")

    expected = compute_signature(payload_bytes, secret)
    if not hmac.compare_digest(expected, signature.strip().lower()):
        raise InvalidSignatureError("signature mismatch")


def verify_and_extract(
    payload_bytes: bytes,
    signature: str | None,
    secret: str,
) -> PaystackWebhookEvent:
    """Validate the signature, then extract event type and reference.

    Args:
        payload_bytes: Raw request body bytes.
        signature: Value of the X-Paystack-Signature header.
        secret: Paystack secret key.

    Raises:
        InvalidSignatureError: If signature validation fails.
        InvalidPayloadError: If event structure is invalid.
    """
    try:
        verify_signature(payload_bytes, signature, secret)
    except InvalidSignatureError:
        logger.warning("paystack webhook signature verification failed")
        raise

    try:
        event = json.loads(payload_bytes)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("paystack webhook payload parsing failed")
        raise InvalidPayloadError("Invalid payload") from e

    if not isinstance(event, dict):
        raise InvalidPayloadError("Invalid payload")

    event_type = event.get("event")
    if not event_type or not isinstance(event_type, str):
        raise InvalidPayloadError("Missing event type")

    data = event.get("data")
    reference = data.get("reference") if isinstance(data, dict) else None
    if reference is not None and not isinstance(reference, str):
        raise InvalidPayloadError("Invalid reference")

    return PaystackWebhookEvent(event_type=event_type, reference=reference)
