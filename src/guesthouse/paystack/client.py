"""Thin wrapper around the Paystack Transactions API.

Purpose:
- Encapsulate gateway HTTP calls so domain code never builds requests itself.
- Translate every transport or API failure into PaystackError.
- Never log guest emails or full gateway payloads (only reference prefixes).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import requests

from guesthouse.domain.errors import PaymentGatewayError
from guesthouse.observability.logging import get_logger
from guesthouse.observability.redaction import id_prefix, safe_log_context

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.paystack.co"

# Timeout for HTTP requests (seconds)
HTTP_TIMEOUT = 10


class PaystackError(PaymentGatewayError):
    """Gateway call failed (network, HTTP status, or status=false body)."""


@dataclass(frozen=True)
class TransactionHandle:
    """Handle returned by the gateway for a new payment attempt."""

    redirect_url: str
    reference: str
    access_code: str | None = None


class PaystackClient:
    """Paystack client for transaction initialization.

    Usage:
        client = PaystackClient()  # reads PAYSTACK_SECRET_KEY from env
        handle = client.initiate(
            amount_minor=15000,
            email="guest@example.com",
            metadata={"booking_id": 42},
        )
        print(handle.redirect_url, handle.reference)
    """

    def __init__(
        self,
        secret_key: str | None = None,
        *,
        base_url: str | None = None,
        currency: str | None = None,
        callback_url: str | None = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        """Initialize the Paystack client.

        Raises:
            RuntimeError: If no secret key is provided or found in environment.
        """
        self._secret_key = secret_key or os.environ.get("PAYSTACK_SECRET_KEY")
        if not self._secret_key:
            raise RuntimeError(
                "Paystack secret key not provided. "
                "Set PAYSTACK_SECRET_KEY or pass secret_key parameter."
            )
        self._base_url = (base_url or os.environ.get("PAYSTACK_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.currency = currency or os.environ.get("PAYSTACK_CURRENCY", "NGN")
        self._callback_url = callback_url or os.environ.get("PAYSTACK_CALLBACK_URL")
        self._timeout = timeout

    @property
    def webhook_secret(self) -> str:
        """Paystack signs webhooks with the account secret key."""
        return self._secret_key

    def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = requests.post(
                f"{self._base_url}{path}",
                json=body,
                headers={
                    "Authorization": f"Bearer {self._secret_key}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise PaystackError(f"Paystack request failed: {type(e).__name__}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise PaystackError(f"Paystack returned non-JSON response ({response.status_code})") from e

        if response.status_code >= 400 or not payload.get("status"):
            raise PaystackError(
                f"Paystack rejected request ({response.status_code}): {payload.get('message')}"
            )
        return payload.get("data") or {}

    def initiate(
        self,
        *,
        amount_minor: int,
        email: str,
        metadata: dict[str, Any],
    ) -> TransactionHandle:
        """Initialize a transaction and return its authorization handle.

        Args:
            amount_minor: Amount in the currency's minor unit (kobo for NGN).
            email: Payer email. NEVER logged.
            metadata: Correlation data echoed back on the webhook.

        Raises:
            PaystackError: On any gateway failure.
        """
        body: dict[str, Any] = {
            "amount": amount_minor,
            "email": email,
            "currency": self.currency,
            "metadata": metadata,
        }
        if self._callback_url:
            body["callback_url"] = self._callback_url

        data = self._post("/transaction/initialize", body)

        redirect_url = data.get("authorization_url")
        reference = data.get("reference")
        if not redirect_url or not reference:
            raise PaystackError("Paystack response missing authorization_url or reference")

        logger.info(
            "paystack transaction initialized",
            extra={
                "extra_fields": safe_log_context(
                    reference_prefix=id_prefix(reference),
                    amount_minor=amount_minor,
                )
            },
        )

        return TransactionHandle(
            redirect_url=redirect_url,
            reference=reference,
            access_code=data.get("access_code"),
        )
