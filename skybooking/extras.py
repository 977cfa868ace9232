from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from .domain import as_decimal
from .errors import UnknownExtraError

# catalog offered on the extras page
BAGGAGE_WEIGHTS = (5, 10, 15, 20, 25, 32)
BAGGAGE_PRICE_PER_KG = Decimal("10")
MEAL_PRICES = {
    "standard": Decimal("15"),
    "vegetarian": Decimal("15"),
    "vegan": Decimal("15"),
    "halal": Decimal("15"),
    "kosher": Decimal("18"),
    "gluten-free": Decimal("18"),
    "diabetic": Decimal("18"),
}
INSURANCE_PLANS = {
    "basic": (50000, Decimal("25")),
    "comprehensive": (100000, Decimal("50")),
}
LOUNGE_ACCESS_PRICE = Decimal("45")


@dataclass(frozen=True)
class BaggageExtra:
    weight: int
    price: Decimal


@dataclass(frozen=True)
class MealExtra:
    type: str
    price: Decimal


@dataclass(frozen=True)
class InsuranceExtra:
    type: str
    coverage: int
    price: Decimal


@dataclass(frozen=True)
class LoungeExtra:
    airport: str
    price: Decimal


def baggage_option(weight: int) -> BaggageExtra:
    if weight not in BAGGAGE_WEIGHTS:
        raise UnknownExtraError(f"no baggage option for {weight}kg")
    return BaggageExtra(weight=weight, price=BAGGAGE_PRICE_PER_KG * weight)


def meal_option(meal_type: str) -> MealExtra:
    try:
        return MealExtra(type=meal_type, price=MEAL_PRICES[meal_type])
    except KeyError:
        raise UnknownExtraError(f"unknown meal type {meal_type!r}") from None


def insurance_option(plan: str) -> InsuranceExtra:
    try:
        coverage, price = INSURANCE_PLANS[plan]
    except KeyError:
        raise UnknownExtraError(f"unknown insurance plan {plan!r}") from None
    return InsuranceExtra(type=plan, coverage=coverage, price=price)


def lounge_access_for(airport: str) -> LoungeExtra:
    return LoungeExtra(airport=airport, price=LOUNGE_ACCESS_PRICE)


@dataclass
class SelectedExtras:
    """Booking-scoped extras. Per-passenger maps are keyed by passenger id.

    Setting ``None`` for a passenger removes the entry; no zero-priced
    placeholders are ever stored.
    """
    baggage_by_passenger: Dict[str, BaggageExtra] = field(default_factory=dict)
    meals_by_passenger: Dict[str, MealExtra] = field(default_factory=dict)
    insurance: Optional[InsuranceExtra] = None
    lounge_access: Optional[LoungeExtra] = None

    def set_baggage(self, passenger_id: str, baggage: Optional[BaggageExtra]) -> None:
        if baggage is None:
            self.baggage_by_passenger.pop(passenger_id, None)
        else:
            self.baggage_by_passenger[passenger_id] = baggage

    def set_meal(self, passenger_id: str, meal: Optional[MealExtra]) -> None:
        if meal is None:
            self.meals_by_passenger.pop(passenger_id, None)
        else:
            self.meals_by_passenger[passenger_id] = meal

    def set_insurance(self, insurance: Optional[InsuranceExtra]) -> None:
        self.insurance = insurance

    def set_lounge_access(self, lounge: Optional[LoungeExtra]) -> None:
        self.lounge_access = lounge

    def remove_passenger(self, passenger_id: str) -> None:
        self.baggage_by_passenger.pop(passenger_id, None)
        self.meals_by_passenger.pop(passenger_id, None)

    def baggage_total(self) -> Decimal:
        return sum((b.price for b in self.baggage_by_passenger.values()), Decimal("0"))

    def meals_total(self) -> Decimal:
        return sum((m.price for m in self.meals_by_passenger.values()), Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baggage": {pid: {"weight": b.weight, "price": str(b.price)}
                        for pid, b in self.baggage_by_passenger.items()},
            "meals": {pid: {"type": m.type, "price": str(m.price)}
                      for pid, m in self.meals_by_passenger.items()},
            "insurance": {
                "type": self.insurance.type,
                "coverage": self.insurance.coverage,
                "price": str(self.insurance.price),
            } if self.insurance else None,
            "lounge_access": {
                "airport": self.lounge_access.airport,
                "price": str(self.lounge_access.price),
            } if self.lounge_access else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SelectedExtras":
        data = data or {}
        insurance = data.get("insurance")
        lounge = data.get("lounge_access")
        return cls(
            baggage_by_passenger={
                pid: BaggageExtra(int(b["weight"]), as_decimal(b["price"]))
                for pid, b in (data.get("baggage") or {}).items() if b
            },
            meals_by_passenger={
                pid: MealExtra(m["type"], as_decimal(m["price"]))
                for pid, m in (data.get("meals") or {}).items() if m
            },
            insurance=InsuranceExtra(
                insurance["type"], int(insurance.get("coverage") or 0), as_decimal(insurance["price"]),
            ) if insurance else None,
            lounge_access=LoungeExtra(lounge["airport"], as_decimal(lounge["price"])) if lounge else None,
        )


def compute_extras_total(extras: Optional[SelectedExtras]) -> Decimal:
    if extras is None:
        return Decimal("0")
    total = extras.baggage_total() + extras.meals_total()
    if extras.insurance is not None:
        total += extras.insurance.price
    if extras.lounge_access is not None:
        total += extras.lounge_access.price
    return total
