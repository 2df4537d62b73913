"""FastAPI application factory with mode-based route mounting."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, Request, Response

from guesthouse.api.errors import booking_error_handler
from guesthouse.api.routes import admin_bookings, bookings, health, rooms, webhooks_paystack
from guesthouse.domain.availability import AvailabilityChecker
from guesthouse.domain.bookings import BookingCoordinator, PaymentGateway
from guesthouse.domain.errors import BookingError
from guesthouse.infra.db import Database
from guesthouse.observability.correlation import (
    CORRELATION_ID_HEADER,
    correlation_scope,
    inbound_correlation_id,
)
from guesthouse.observability.logging import get_logger

logger = get_logger(__name__)

BookingMode = Literal["payment", "direct"]

_MODES = ("payment", "direct")


def _get_mode() -> str:
    mode = os.environ.get("BOOKING_MODE", "payment")
    if mode not in _MODES:
        raise RuntimeError(f"BOOKING_MODE must be one of {_MODES}, got {mode!r}")
    return mode


def create_app(
    mode: BookingMode | None = None,
    *,
    database: Database | None = None,
    gateway: PaymentGateway | None = None,
) -> FastAPI:
    """Create FastAPI app with routes based on BOOKING_MODE.

    Args:
        mode: Explicit mode override. If None, reads from BOOKING_MODE env var.
              Defaults to "payment" if env var is not set.
        database: Persistence handle. Defaults to a pooled Database on
              DATABASE_URL, opened and closed with the app lifespan.
        gateway: Payment gateway. In payment mode defaults to a PaystackClient
              configured from the environment.

    Returns:
        Configured FastAPI application.
    """
    if mode is None:
        mode = _get_mode()  # type: ignore[assignment]

    db = database if database is not None else Database()

    webhook_secret: str | None = None
    if mode == "payment":
        if gateway is None:
            from guesthouse.paystack.client import PaystackClient

            gateway = PaystackClient()
        webhook_secret = getattr(gateway, "webhook_secret", None) or os.environ.get(
            "PAYSTACK_SECRET_KEY"
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db.open()
        try:
            yield
        finally:
            db.close()

    app = FastAPI(
        title="Guesthouse Bookings",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.mode = mode
    app.state.database = db
    app.state.checker = AvailabilityChecker(db)
    app.state.coordinator = BookingCoordinator(db, gateway, webhook_secret=webhook_secret)

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = inbound_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        with correlation_scope(cid):
            response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response

    app.add_exception_handler(BookingError, booking_error_handler)

    # Mounted in every mode
    app.include_router(health.router)
    app.include_router(rooms.router)
    app.include_router(admin_bookings.router)

    if mode == "direct":
        app.include_router(bookings.direct_router)
    else:
        app.include_router(bookings.payment_router)
        app.include_router(webhooks_paystack.router)

    # Read route last so literal paths above take precedence
    app.include_router(bookings.router)

    logger.info("app created", extra={"extra_fields": {"booking_mode": mode}})
    return app
