from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class PassengerRole(str, Enum):
    PRIMARY = "primary"
    COMPANION = "companion"


class PassengerCategory(str, Enum):
    ADULT = "adult"
    CHILD = "child"
    INFANT = "infant"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class SeatStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    BLOCKED = "blocked"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


def as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def as_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def lenient_date(value):
    """``as_date`` for user input: unparseable values come back unchanged for the validator to report."""
    try:
        return as_date(value)
    except (TypeError, ValueError):
        return value


@dataclass(frozen=True)
class TripContext:
    """Travel date and domestic/international flag fixed for the whole passenger entry."""
    travel_date: date
    is_international: bool = False

    @classmethod
    def for_flight(cls, flight) -> "TripContext":
        return cls(travel_date=as_date(flight.depart_time), is_international=bool(flight.is_international))


@dataclass(frozen=True)
class PassportDocument:
    number: str
    expiry_date: Optional[date]
    nationality: str
    issuing_country: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "nationality": self.nationality,
            "issuing_country": self.issuing_country,
        }


@dataclass(frozen=True)
class ContactInfo:
    email: str
    phone: str
    country_code: str

    def as_dict(self) -> Dict[str, Any]:
        return {"email": self.email, "phone": self.phone, "country_code": self.country_code}


@dataclass(frozen=True)
class PassengerRecord:
    id: str
    role: Any
    category: Any
    first_name: str
    last_name: str
    date_of_birth: Optional[date]
    gender: Any
    passport: Optional[PassportDocument] = None
    contact: Optional[ContactInfo] = None

    @property
    def is_primary(self) -> bool:
        return self.role in (PassengerRole.PRIMARY, PassengerRole.PRIMARY.value)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in [self.first_name, self.last_name] if p).strip()

    def with_changes(self, **changes) -> "PassengerRecord":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PassengerRecord":
        # wrongly shaped input is kept as-is so validation can point at the field
        passport = data.get("passport") or None
        if isinstance(passport, dict):
            passport = PassportDocument(
                number=passport.get("number") or "",
                expiry_date=lenient_date(passport.get("expiry_date")),
                nationality=passport.get("nationality") or "",
                issuing_country=passport.get("issuing_country") or "",
            )
        contact = data.get("contact") or None
        if isinstance(contact, dict):
            contact = ContactInfo(
                email=contact.get("email") or "",
                phone=contact.get("phone") or "",
                country_code=contact.get("country_code") or "",
            )
        return cls(
            id=str(data.get("id") or ""),
            role=data.get("role") or PassengerRole.COMPANION.value,
            category=data.get("category") or data.get("type") or "",
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            date_of_birth=lenient_date(data.get("date_of_birth")),
            gender=data.get("gender") or "",
            passport=passport,
            contact=contact,
        )

    def as_dict(self) -> Dict[str, Any]:
        def _v(x):
            return x.value if isinstance(x, Enum) else x

        return {
            "id": self.id,
            "role": _v(self.role),
            "category": _v(self.category),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "gender": _v(self.gender),
            "passport": self.passport.as_dict() if self.passport else None,
            "contact": self.contact.as_dict() if self.contact else None,
        }


@dataclass(frozen=True)
class Seat:
    id: str
    row: int
    column: str
    status: SeatStatus = SeatStatus.AVAILABLE
    price: Decimal = Decimal("0")
    seat_type: str = "standard"
    position: str = ""

    @property
    def is_available(self) -> bool:
        return SeatStatus(self.status) is SeatStatus.AVAILABLE

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "row": self.row,
            "column": self.column,
            "status": SeatStatus(self.status).value,
            "price": str(self.price),
            "seat_type": self.seat_type,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Seat":
        return cls(
            id=data["id"],
            row=int(data["row"]),
            column=data["column"],
            status=SeatStatus(data.get("status") or SeatStatus.AVAILABLE.value),
            price=as_decimal(data.get("price")),
            seat_type=data.get("seat_type") or "standard",
            position=data.get("position") or "",
        )


@dataclass(frozen=True)
class FlightFare:
    """Per-passenger fare components, as supplied by the flight offer."""
    base_fare: Decimal
    taxes: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    currency: str = "USD"


@dataclass(frozen=True)
class FareRules:
    cancellation_fee: Optional[Decimal] = None
    change_fee: Optional[Decimal] = None
    refundable: bool = True
    cancellation_policy: str = ""
    change_policy: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FareRules":
        data = data or {}
        fee = data.get("cancellation_fee")
        change = data.get("change_fee")
        refundable = data.get("refundable")
        return cls(
            cancellation_fee=as_decimal(fee) if fee is not None else None,
            change_fee=as_decimal(change) if change is not None else None,
            refundable=True if refundable is None else bool(refundable),
            cancellation_policy=data.get("cancellation_policy") or "",
            change_policy=data.get("change_policy") or "",
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "cancellation_fee": str(self.cancellation_fee) if self.cancellation_fee is not None else None,
            "change_fee": str(self.change_fee) if self.change_fee is not None else None,
            "refundable": self.refundable,
            "cancellation_policy": self.cancellation_policy,
            "change_policy": self.change_policy,
        }


@dataclass(frozen=True)
class CancellationQuote:
    fee: Decimal
    refund: Decimal
    currency: str = "USD"

    def as_dict(self) -> Dict[str, Any]:
        return {"fee": str(self.fee), "refund": str(self.refund), "currency": self.currency}


@dataclass(frozen=True)
class Booking:
    """Snapshot of a stored booking as the engine sees it."""
    reference: str
    status: BookingStatus
    total_amount: Decimal
    currency: str = "USD"
    fare_rules: FareRules = field(default_factory=FareRules)
    passengers: List[PassengerRecord] = field(default_factory=list)
    seats: Dict[str, Any] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    flight_summary: str = ""
    cancellation: Optional[CancellationQuote] = None

    @property
    def is_cancelled(self) -> bool:
        return BookingStatus(self.status) is BookingStatus.CANCELLED

    @property
    def primary_passenger(self) -> Optional[PassengerRecord]:
        for p in self.passengers:
            if p.is_primary:
                return p
        # older rows have no roles; the first passenger with contact details stands in
        for p in self.passengers:
            if p.contact and p.contact.email:
                return p
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "reference": self.reference,
            "status": BookingStatus(self.status).value,
            "payment_status": PaymentStatus(self.payment_status).value,
            "total_amount": str(self.total_amount),
            "currency": self.currency,
            "fare_rules": self.fare_rules.as_dict(),
            "flight": self.flight_summary,
            "passengers": [
                {"id": p.id, "name": p.full_name, "category": p.as_dict()["category"]}
                for p in self.passengers
            ],
            "seats": self.seats,
            "extras": self.extras,
            "cancellation": self.cancellation.as_dict() if self.cancellation else None,
        }
