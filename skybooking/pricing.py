"""Price breakdown for a booking in progress.

Amounts stay as unrounded ``Decimal`` values; rounding to cents happens only in
``to_money`` and the presentation helpers built on it.
"""

from dataclasses import dataclass, fields
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping, Optional, Union

from .domain import FlightFare, Seat, as_decimal
from .extras import SelectedExtras
from .seats import SeatAssignmentManager

CENT = Decimal("0.01")
ZERO = Decimal("0")

LINE_ITEM_LABELS = (
    ("base_fare", "Base Fare"),
    ("taxes", "Taxes"),
    ("fees", "Fees"),
    ("seat_fees", "Seat Selection"),
    ("extra_baggage", "Extra Baggage"),
    ("meals", "Meals"),
    ("insurance", "Travel Insurance"),
    ("lounge_access", "Lounge Access"),
)


def to_money(amount) -> Decimal:
    return as_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount, currency: str = "USD") -> str:
    return f"{currency} {to_money(amount):,.2f}"


@dataclass(frozen=True)
class PriceBreakdown:
    base_fare: Decimal = ZERO
    taxes: Decimal = ZERO
    fees: Decimal = ZERO
    seat_fees: Decimal = ZERO
    extra_baggage: Decimal = ZERO
    meals: Decimal = ZERO
    insurance: Decimal = ZERO
    lounge_access: Decimal = ZERO
    total: Decimal = ZERO

    def components(self) -> Dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "total"}

    def as_dict(self) -> Dict[str, str]:
        return {f.name: str(to_money(getattr(self, f.name))) for f in fields(self)}


SeatAssignment = Union[SeatAssignmentManager, Mapping[str, Seat], None]


def _seat_fees(seat_assignment: SeatAssignment) -> Decimal:
    if seat_assignment is None:
        return ZERO
    if isinstance(seat_assignment, SeatAssignmentManager):
        return seat_assignment.seat_fees()
    return sum((as_decimal(seat.price) for seat in seat_assignment.values()), ZERO)


def compute_price_breakdown(flight: Optional[FlightFare], passenger_count: int,
                            seat_assignment: SeatAssignment = None,
                            extras: Optional[SelectedExtras] = None) -> PriceBreakdown:
    if passenger_count < 0:
        raise ValueError("passenger_count cannot be negative")

    base_fare = taxes = fees = ZERO
    if flight is not None:
        base_fare = as_decimal(flight.base_fare) * passenger_count
        taxes = as_decimal(flight.taxes) * passenger_count
        fees = as_decimal(flight.fees) * passenger_count

    extras = extras or SelectedExtras()
    parts = dict(
        base_fare=base_fare,
        taxes=taxes,
        fees=fees,
        seat_fees=_seat_fees(seat_assignment),
        extra_baggage=extras.baggage_total(),
        meals=extras.meals_total(),
        insurance=extras.insurance.price if extras.insurance else ZERO,
        lounge_access=extras.lounge_access.price if extras.lounge_access else ZERO,
    )
    return PriceBreakdown(total=sum(parts.values(), ZERO), **parts)


def price_per_passenger(total, passenger_count: int) -> Decimal:
    if passenger_count <= 0:
        return ZERO
    return to_money(as_decimal(total) / passenger_count)


def breakdown_line_items(breakdown: PriceBreakdown, currency: str = "USD") -> List[dict]:
    items = []
    for name, label in LINE_ITEM_LABELS:
        amount = getattr(breakdown, name)
        if amount > 0:
            items.append({
                "key": name,
                "label": label,
                "amount": str(to_money(amount)),
                "formatted": format_money(amount, currency),
            })
    items.append({
        "key": "total",
        "label": "Total",
        "amount": str(to_money(breakdown.total)),
        "formatted": format_money(breakdown.total, currency),
        "is_total": True,
    })
    return items
