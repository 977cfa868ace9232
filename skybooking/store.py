import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from . import db
from .domain import (
    Booking,
    BookingStatus,
    CancellationQuote,
    ContactInfo,
    FareRules,
    PassengerRecord,
    PassportDocument,
    PaymentStatus,
    as_date,
    as_decimal,
)
from .errors import StoreUnavailableError
from .models import BookingRecord, PassengerRow

logger = logging.getLogger(__name__)


def _passenger_from_row(row: PassengerRow) -> PassengerRecord:
    passport = row.passport or None
    contact = None
    if row.email or row.phone:
        contact = ContactInfo(email=row.email or "", phone=row.phone or "", country_code=row.country_code or "")
    return PassengerRecord(
        id=row.passenger_key,
        role=row.role,
        category=row.category,
        first_name=row.first_name,
        last_name=row.last_name,
        date_of_birth=row.date_of_birth,
        gender=row.gender,
        passport=PassportDocument(
            number=passport.get("number") or "",
            expiry_date=as_date(passport.get("expiry_date")),
            nationality=passport.get("nationality") or "",
            issuing_country=passport.get("issuing_country") or "",
        ) if passport else None,
        contact=contact,
    )


def booking_from_record(rec: BookingRecord) -> Booking:
    cancellation = None
    if rec.cancellation_fee is not None and rec.refund_amount is not None:
        cancellation = CancellationQuote(
            fee=as_decimal(rec.cancellation_fee),
            refund=as_decimal(rec.refund_amount),
            currency=rec.currency,
        )
    return Booking(
        reference=rec.reference,
        status=BookingStatus(rec.status),
        payment_status=PaymentStatus(rec.payment_status),
        total_amount=as_decimal(rec.total_amount),
        currency=rec.currency,
        fare_rules=FareRules.from_dict(rec.fare_rules),
        passengers=[_passenger_from_row(p) for p in rec.passengers],
        seats=dict(rec.seats or {}),
        extras=dict(rec.extras or {}),
        flight_summary=rec.flight_summary or "",
        cancellation=cancellation,
    )


class BookingStore:
    """Booking rows behind the narrow interface the cancellation flow needs."""

    def __init__(self, session=None):
        self.session = session or db.session

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("booking store %s failed: %s", action, exc)
            raise StoreUnavailableError(f"booking store unavailable during {action}") from exc

    def find_by_reference(self, reference: str) -> Optional[Booking]:
        with self._guard("lookup"):
            rec = self.session.query(BookingRecord).filter_by(reference=reference).first()
            return booking_from_record(rec) if rec else None

    def find_by_reference_and_last_name(self, reference: str, last_name: str) -> Optional[Booking]:
        with self._guard("lookup"):
            rec = (
                self.session.query(BookingRecord)
                .join(PassengerRow, PassengerRow.booking_id == BookingRecord.id)
                .filter(BookingRecord.reference == reference)
                .filter(func.lower(PassengerRow.last_name) == (last_name or "").strip().lower())
                .first()
            )
            return booking_from_record(rec) if rec else None

    def update_status(self, reference: str, new_status, new_payment_status,
                      expected_status=None, quote: Optional[CancellationQuote] = None) -> Optional[Booking]:
        """Set the status, guarded by the current one.

        Runs as a single UPDATE ... WHERE status = expected, so two concurrent
        cancellations cannot both succeed. Returns None when no row matched.
        """
        values = {
            "status": BookingStatus(new_status).value,
            "payment_status": PaymentStatus(new_payment_status).value,
            "updated_at": datetime.utcnow(),
        }
        if quote is not None:
            values["cancellation_fee"] = quote.fee
            values["refund_amount"] = quote.refund

        with self._guard("status update"):
            q = self.session.query(BookingRecord).filter(BookingRecord.reference == reference)
            if expected_status is not None:
                q = q.filter(BookingRecord.status == BookingStatus(expected_status).value)
            matched = q.update(values, synchronize_session=False)
            self.session.commit()

        if not matched:
            return None
        return self.find_by_reference(reference)

    def save(self, booking: Booking, flight_id: Optional[int] = None) -> Booking:
        rec = BookingRecord(
            reference=booking.reference,
            status=BookingStatus(booking.status).value,
            payment_status=PaymentStatus(booking.payment_status).value,
            flight_id=flight_id,
            flight_summary=booking.flight_summary,
            fare_rules=booking.fare_rules.as_dict(),
            seats=booking.seats,
            extras=booking.extras,
            total_amount=booking.total_amount,
            currency=booking.currency,
        )
        for idx, p in enumerate(booking.passengers):
            data = p.as_dict()
            rec.passengers.append(PassengerRow(
                position=idx,
                passenger_key=p.id,
                role=data["role"],
                category=data["category"],
                first_name=p.first_name,
                last_name=p.last_name,
                date_of_birth=p.date_of_birth,
                gender=data["gender"],
                email=p.contact.email if p.contact else None,
                phone=p.contact.phone if p.contact else None,
                country_code=p.contact.country_code if p.contact else None,
                passport=data["passport"],
            ))
        with self._guard("save"):
            self.session.add(rec)
            self.session.commit()
        return self.find_by_reference(booking.reference)
