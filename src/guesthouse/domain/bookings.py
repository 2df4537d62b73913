"""Booking transaction coordinator.

Owns every write to booking ``status`` and ``payment_reference``.

Concurrency: each check-then-write runs in one transaction that first locks
the room row (rooms_repository.lock_room). Two transactions touching the
same room's bookings therefore serialize, and the second one sees the first
one's committed booking when it runs its availability check. The
``no_paid_overlap`` exclusion constraint backs this up at the database level;
a violation surfaces as ConflictError (create) or RaceLostError (reconcile).

No lock is ever held across a payment gateway call: the PENDING booking is
committed first, the gateway is called, and the reference is stored in a
second transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from guesthouse.domain.availability import find_conflicting_booking
from guesthouse.domain.errors import (
    BookingNotFoundError,
    ConflictError,
    IntegrationFailureError,
    PaymentGatewayError,
    RaceLostError,
    RoomNotFoundError,
    UnknownReferenceError,
    ValidationError,
)
from guesthouse.domain.models import (
    BLOCKING_STATUSES,
    OCCUPYING_STATUSES,
    Booking,
    BookingRequest,
    BookingStatus,
    Room,
)
from guesthouse.domain.pricing import stay_amount, to_minor_units
from guesthouse.infra.ids import generate_public_id
from guesthouse.infra.repositories.bookings_repository import (
    get_booking,
    get_booking_by_public_id,
    get_booking_by_reference,
    get_public_booking,
    insert_booking,
    set_payment_reference,
    update_status,
)
from guesthouse.infra.repositories.rooms_repository import lock_room
from guesthouse.observability.logging import get_logger
from guesthouse.observability.redaction import id_prefix, safe_log_context
from guesthouse.paystack.webhook import InvalidPayloadError, verify_and_extract

if TYPE_CHECKING:
    from guesthouse.infra.db import Database

logger = get_logger(__name__)


class PaymentGateway(Protocol):
    """External payment collaborator (see guesthouse.paystack.client)."""

    currency: str

    def initiate(self, *, amount_minor: int, email: str, metadata: dict[str, Any]) -> Any:
        """Return an object with ``redirect_url`` and ``reference``."""


@dataclass(frozen=True)
class PaymentInitialization:
    """What the guest needs to complete payment for a PENDING booking."""

    public_id: str
    redirect_url: str
    reference: str
    amount_minor: int
    currency: str


class BookingCoordinator:
    """Guest booking lifecycle: create, pay, reconcile, cancel.

    Args:
        db: Opened persistence handle.
        gateway: Payment gateway client; required for the payment operations.
        webhook_secret: Shared secret for webhook signatures; required for
            reconcile_payment.
    """

    def __init__(
        self,
        db: Database,
        gateway: PaymentGateway | None = None,
        *,
        webhook_secret: str | None = None,
    ) -> None:
        self._db = db
        self._gateway = gateway
        self._webhook_secret = webhook_secret

    # ── direct-confirm ────────────────────────────────────────────────────

    def create_booking(self, request: BookingRequest) -> Booking:
        """Create an immediately confirmed (PAID) booking.

        Any PENDING or PAID booking overlapping the range is a conflict.

        Raises:
            ValidationError: Malformed request (no transaction opened).
            RoomNotFoundError: Room does not exist.
            ConflictError: Dates are taken; nothing was written.
        """
        request = request.validated()

        try:
            with self._db.txn() as cur:
                self._lock_room(cur, request.room_id)
                self._assert_available(
                    cur,
                    room_id=request.room_id,
                    check_in=request.check_in,
                    check_out=request.check_out,
                    statuses=BLOCKING_STATUSES,
                )
                booking = self._insert(cur, request, BookingStatus.PAID)
        except pg_errors.ExclusionViolation as e:
            raise ConflictError(request.room_id) from e

        logger.info(
            "booking confirmed",
            extra={
                "extra_fields": safe_log_context(
                    booking_id=booking.id,
                    room_id=booking.room_id,
                    public_id_prefix=id_prefix(booking.public_id),
                )
            },
        )
        return booking

    # ── payment-gated ─────────────────────────────────────────────────────

    def initialize_payment(self, request: BookingRequest) -> PaymentInitialization:
        """Create a PENDING booking and start a gateway payment for it.

        Only PAID bookings block; PENDING holds may overlap each other.
        If the gateway call fails the PENDING booking stays and can be
        retried with retry_payment.

        Raises:
            ValidationError: Malformed request.
            RoomNotFoundError: Room does not exist.
            ConflictError: Dates already paid for by someone else.
            IntegrationFailureError: Gateway call failed or returned a
                reference that is already in use.
        """
        self._require_gateway()
        request = request.validated()

        with self._db.txn() as cur:
            room = self._lock_room(cur, request.room_id)
            self._assert_available(
                cur,
                room_id=request.room_id,
                check_in=request.check_in,
                check_out=request.check_out,
                statuses=OCCUPYING_STATUSES,
            )
            amount_minor = to_minor_units(
                stay_amount(room.price, request.check_in, request.check_out)
            )
            booking = self._insert(cur, request, BookingStatus.PENDING)

        logger.info(
            "pending booking created",
            extra={
                "extra_fields": safe_log_context(
                    booking_id=booking.id,
                    room_id=booking.room_id,
                    amount_minor=amount_minor,
                )
            },
        )
        return self._start_payment(booking, amount_minor)

    def retry_payment(self, public_id: str) -> PaymentInitialization:
        """Start the gateway payment again for a PENDING booking without a reference.

        Raises:
            BookingNotFoundError: Unknown public id.
            ValidationError: Booking is not awaiting payment, or already has
                a payment reference.
            ConflictError: The dates were paid for by someone else meanwhile.
            IntegrationFailureError: Gateway call failed again.
        """
        self._require_gateway()

        with self._db.txn() as cur:
            located = get_booking_by_public_id(cur, public_id)
            if located is None:
                raise BookingNotFoundError(f"Booking {id_prefix(public_id)} not found")

            room = self._lock_room(cur, located.room_id)
            booking = get_booking(cur, located.id, lock=True)
            if booking is None:
                raise BookingNotFoundError(f"Booking {located.id} disappeared")
            if booking.status != BookingStatus.PENDING:
                raise ValidationError("booking is not awaiting payment")
            if booking.payment_reference is not None:
                raise ValidationError("payment was already initialized for this booking")

            self._assert_available(
                cur,
                room_id=booking.room_id,
                check_in=booking.check_in,
                check_out=booking.check_out,
                statuses=OCCUPYING_STATUSES,
                exclude_booking_id=booking.id,
            )
            amount_minor = to_minor_units(
                stay_amount(room.price, booking.check_in, booking.check_out)
            )

        return self._start_payment(booking, amount_minor)

    def reconcile_payment(self, signature: str | None, raw_payload: bytes) -> Booking | None:
        """Apply a payment webhook to the booking it references.

        The signature is verified before the payload is parsed. Events other
        than a successful charge are ignored (returns None). Redelivery for a
        booking that is no longer PENDING is a no-op returning the booking.

        Raises:
            InvalidSignatureError: Signature mismatch; nothing read or written.
            ValidationError: Signed payload is malformed.
            UnknownReferenceError: No booking carries the reference.
            RaceLostError: Paid, but the room went to another PAID booking
                first. The booking is committed as FAILED before raising.
        """
        secret = self._require_webhook_secret()
        event = verify_and_extract(raw_payload, signature, secret)

        if not event.is_successful_charge:
            logger.info(
                "payment event ignored",
                extra={"extra_fields": safe_log_context(event_type=event.event_type)},
            )
            return None

        if not event.reference:
            raise InvalidPayloadError("Missing payment reference")

        reference = event.reference
        conflicting_id: int | None = None

        try:
            with self._db.txn() as cur:
                located = get_booking_by_reference(cur, reference)
                if located is None:
                    raise UnknownReferenceError(
                        f"No booking for reference {id_prefix(reference)}"
                    )

                # Same lock order as creation: room first, then booking
                self._lock_room(cur, located.room_id)
                booking = get_booking(cur, located.id, lock=True)
                if booking is None:
                    raise UnknownReferenceError(f"Booking {located.id} disappeared")

                if booking.status != BookingStatus.PENDING:
                    self._log_redelivery(booking)
                    return booking

                conflicting_id = find_conflicting_booking(
                    cur,
                    room_id=booking.room_id,
                    check_in=booking.check_in,
                    check_out=booking.check_out,
                    statuses=OCCUPYING_STATUSES,
                    exclude_booking_id=booking.id,
                )
                new_status = BookingStatus.PAID if conflicting_id is None else BookingStatus.FAILED
                booking = update_status(cur, booking.id, new_status)
        except UnknownReferenceError:
            logger.warning(
                "payment for unknown reference",
                extra={"extra_fields": safe_log_context(reference_prefix=id_prefix(reference))},
            )
            raise
        except pg_errors.ExclusionViolation:
            # Constraint caught an overlap the lock should have prevented
            booking = self._mark_failed(located.id)
            conflicting_id = None

        if booking.status == BookingStatus.FAILED:
            self._raise_race_lost(booking, conflicting_id)

        logger.info(
            "booking paid",
            extra={
                "extra_fields": safe_log_context(
                    booking_id=booking.id,
                    room_id=booking.room_id,
                    reference_prefix=id_prefix(reference),
                )
            },
        )
        return booking

    # ── admin / read ──────────────────────────────────────────────────────

    def cancel_booking(self, booking_id: int) -> Booking:
        """Force a booking to CANCELLED. Unconditional, no availability check.

        Raises:
            BookingNotFoundError: Unknown booking id.
        """
        with self._db.txn() as cur:
            booking = update_status(cur, booking_id, BookingStatus.CANCELLED)
            if booking is None:
                raise BookingNotFoundError(f"Booking {booking_id} not found")

        logger.info(
            "booking cancelled",
            extra={"extra_fields": safe_log_context(booking_id=booking_id)},
        )
        return booking

    def get_public_booking(self, public_id: str) -> dict[str, Any]:
        """Guest-facing view of a booking (public-safe fields only).

        Raises:
            BookingNotFoundError: Unknown public id.
        """
        with self._db.txn() as cur:
            booking = get_public_booking(cur, public_id)
        if booking is None:
            raise BookingNotFoundError(f"Booking {id_prefix(public_id)} not found")
        return booking

    # ── helpers ───────────────────────────────────────────────────────────

    def _require_gateway(self) -> PaymentGateway:
        if self._gateway is None:
            raise RuntimeError("Payment gateway not configured")
        return self._gateway

    def _require_webhook_secret(self) -> str:
        if not self._webhook_secret:
            raise RuntimeError("Webhook secret not configured")
        return self._webhook_secret

    @staticmethod
    def _lock_room(cur: PgCursor, room_id: int) -> Room:
        room = lock_room(cur, room_id)
        if room is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        return room

    @staticmethod
    def _assert_available(
        cur: PgCursor,
        *,
        room_id: int,
        check_in: datetime,
        check_out: datetime,
        statuses: tuple[BookingStatus, ...],
        exclude_booking_id: int | None = None,
    ) -> None:
        conflicting_id = find_conflicting_booking(
            cur,
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            statuses=statuses,
            exclude_booking_id=exclude_booking_id,
        )
        if conflicting_id is not None:
            raise ConflictError(room_id, conflicting_id)

    @staticmethod
    def _insert(cur: PgCursor, request: BookingRequest, status: BookingStatus) -> Booking:
        return insert_booking(
            cur,
            public_id=generate_public_id(),
            room_id=request.room_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            guest_phone=request.guest_phone,
            adults=request.adults,
            children=request.children,
            status=status,
        )

    def _start_payment(self, booking: Booking, amount_minor: int) -> PaymentInitialization:
        """Call the gateway (no transaction open), then store the reference."""
        gateway = self._require_gateway()

        try:
            handle = gateway.initiate(
                amount_minor=amount_minor,
                email=booking.guest_email,
                metadata={"booking_id": booking.id, "public_id": booking.public_id},
            )
        except PaymentGatewayError as e:
            logger.warning(
                "payment initialization failed",
                extra={
                    "extra_fields": safe_log_context(
                        booking_id=booking.id,
                        error=str(e),
                    )
                },
            )
            raise IntegrationFailureError(str(e)) from e

        try:
            with self._db.txn() as cur:
                stored = set_payment_reference(cur, booking.id, handle.reference)
        except pg_errors.UniqueViolation as e:
            logger.error(
                "payment reference collision",
                extra={
                    "extra_fields": safe_log_context(
                        booking_id=booking.id,
                        reference_prefix=id_prefix(handle.reference),
                    )
                },
            )
            raise IntegrationFailureError("payment reference already in use") from e

        if not stored:
            # A concurrent retry stored its reference first
            raise ValidationError("payment was already initialized for this booking")

        return PaymentInitialization(
            public_id=booking.public_id,
            redirect_url=handle.redirect_url,
            reference=handle.reference,
            amount_minor=amount_minor,
            currency=gateway.currency,
        )

    def _mark_failed(self, booking_id: int) -> Booking:
        with self._db.txn() as cur:
            booking = get_booking(cur, booking_id, lock=True)
            if booking is not None and booking.status == BookingStatus.PENDING:
                booking = update_status(cur, booking_id, BookingStatus.FAILED)
        if booking is None:
            raise UnknownReferenceError(f"Booking {booking_id} disappeared")
        return booking

    @staticmethod
    def _raise_race_lost(booking: Booking, conflicting_id: int | None) -> None:
        logger.error(
            "payment received for unavailable room",
            extra={
                "extra_fields": {
                    "booking_id": booking.id,
                    "room_id": booking.room_id,
                    "conflicting_booking_id": conflicting_id,
                    "needs_manual_reconciliation": True,
                }
            },
        )
        raise RaceLostError(booking.id, conflicting_id)

    @staticmethod
    def _log_redelivery(booking: Booking) -> None:
        context = safe_log_context(booking_id=booking.id, status=booking.status.value)
        if booking.status == BookingStatus.CANCELLED:
            logger.error(
                "payment received for cancelled booking",
                extra={"extra_fields": {**context, "needs_manual_reconciliation": True}},
            )
        else:
            logger.info("duplicate payment event ignored", extra={"extra_fields": context})
