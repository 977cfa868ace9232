import logging
import re
from dataclasses import dataclass, replace
from decimal import Decimal

from .domain import Booking, BookingStatus, CancellationQuote, PaymentStatus, as_decimal
from .errors import AlreadyCancelledError, BookingNotFoundError, InvalidReferenceError, Result
from .pricing import to_money

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_RATE = Decimal("0.20")
REFERENCE_RE = re.compile(r"^[A-Z0-9]{6}$")


def is_valid_reference(reference: str) -> bool:
    return bool(REFERENCE_RE.match(reference or ""))


def compute_cancellation(booking: Booking) -> CancellationQuote:
    """Fee and refund from the booking's stored fare rules and total.

    Never looks at current flight prices: only what was stored at booking time.
    """
    total = as_decimal(booking.total_amount)
    rules = booking.fare_rules
    if not rules.refundable:
        fee = total
    elif rules.cancellation_fee is not None:
        fee = as_decimal(rules.cancellation_fee)
    else:
        fee = total * DEFAULT_CANCELLATION_RATE
    fee = min(max(fee, Decimal("0")), total)
    return CancellationQuote(fee=to_money(fee), refund=to_money(total - fee), currency=booking.currency)


def transition_to_cancelled(booking: Booking) -> Result[Booking]:
    """confirmed -> cancelled, the only legal edge. A second attempt is rejected."""
    if booking.is_cancelled:
        return Result.failure(AlreadyCancelledError(booking.reference))
    return Result.success(replace(
        booking,
        status=BookingStatus.CANCELLED,
        payment_status=PaymentStatus.REFUNDED,
        cancellation=compute_cancellation(booking),
    ))


@dataclass(frozen=True)
class CancellationNotice:
    reference: str
    passenger_name: str
    flight_summary: str
    fee: Decimal
    refund: Decimal
    currency: str


class CancellationService:
    """Cancels a stored booking: lookup, quote, conditional status update, notify."""

    def __init__(self, store, notifier=None):
        self.store = store
        self.notifier = notifier

    def cancel(self, reference: str, last_name: str) -> Result[Booking]:
        reference = (reference or "").strip().upper()
        if not is_valid_reference(reference):
            raise InvalidReferenceError(f"invalid booking reference {reference!r}")
        if not (last_name or "").strip():
            raise InvalidReferenceError("last name is required to look up a booking")

        booking = self.store.find_by_reference_and_last_name(reference, last_name)
        if booking is None:
            raise BookingNotFoundError(reference)

        result = transition_to_cancelled(booking)
        if not result.ok:
            logger.info("booking %s already cancelled", reference)
            return result

        quote = result.value.cancellation
        stored = self.store.update_status(
            reference,
            BookingStatus.CANCELLED,
            PaymentStatus.REFUNDED,
            expected_status=BookingStatus.CONFIRMED,
            quote=quote,
        )
        if stored is None:
            # another request cancelled it between our read and the update
            logger.warning("booking %s was cancelled concurrently", reference)
            return Result.failure(AlreadyCancelledError(reference))

        logger.info("booking %s cancelled: fee=%s refund=%s %s",
                    reference, quote.fee, quote.refund, quote.currency)
        self._send_notice(stored)
        return Result.success(stored)

    def _send_notice(self, booking: Booking) -> None:
        if self.notifier is None:
            return
        primary = booking.primary_passenger
        if primary is None or primary.contact is None or not primary.contact.email:
            logger.info("booking %s has no contact email, skipping notice", booking.reference)
            return
        notice = CancellationNotice(
            reference=booking.reference,
            passenger_name=primary.full_name,
            flight_summary=booking.flight_summary,
            fee=booking.cancellation.fee,
            refund=booking.cancellation.refund,
            currency=booking.currency,
        )
        try:
            self.notifier.send_cancellation_notice(primary.contact.email, notice)
        except Exception:
            # the cancellation already happened; a failed email must not undo it
            logger.exception("failed to send cancellation notice for %s", booking.reference)
