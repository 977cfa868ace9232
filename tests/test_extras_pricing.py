import random
from decimal import Decimal

import pytest

from skybooking.domain import FlightFare
from skybooking.errors import UnknownExtraError
from skybooking.extras import (
    SelectedExtras,
    baggage_option,
    compute_extras_total,
    insurance_option,
    lounge_access_for,
    meal_option,
)
from skybooking.pricing import (
    PriceBreakdown,
    breakdown_line_items,
    compute_price_breakdown,
    format_money,
    price_per_passenger,
    to_money,
)
from skybooking.seats import SeatAssignmentManager

from .factories import make_seat

FARE = FlightFare(base_fare=Decimal("500.00"), taxes=Decimal("60.00"), fees=Decimal("25.00"))


def _full_extras():
    extras = SelectedExtras()
    extras.set_baggage("p1", baggage_option(20))
    extras.set_meal("p1", meal_option("kosher"))
    extras.set_meal("p2", meal_option("vegan"))
    extras.set_insurance(insurance_option("comprehensive"))
    extras.set_lounge_access(lounge_access_for("JFK"))
    return extras


# ---- catalog ----

def test_catalog_prices():
    assert baggage_option(20).price == Decimal("200")
    assert meal_option("standard").price == Decimal("15")
    assert meal_option("gluten-free").price == Decimal("18")
    assert insurance_option("basic").coverage == 50000
    assert insurance_option("comprehensive").price == Decimal("50")
    assert lounge_access_for("LHR").price == Decimal("45")


@pytest.mark.parametrize("build, arg", [
    (baggage_option, 7),
    (meal_option, "caviar"),
    (insurance_option, "platinum"),
])
def test_unknown_catalog_entries_raise(build, arg):
    with pytest.raises(UnknownExtraError):
        build(arg)


# ---- selected extras ----

def test_setting_none_removes_the_entry():
    extras = _full_extras()

    extras.set_baggage("p1", None)
    extras.set_meal("p2", None)
    extras.set_insurance(None)

    assert extras.baggage_by_passenger == {}
    assert set(extras.meals_by_passenger) == {"p1"}
    assert extras.insurance is None
    assert compute_extras_total(extras) == Decimal("63")


def test_remove_passenger_drops_their_extras_only():
    extras = _full_extras()
    extras.remove_passenger("p1")
    assert extras.baggage_by_passenger == {}
    assert set(extras.meals_by_passenger) == {"p2"}


def test_extras_total_is_order_independent():
    ops = [
        lambda e: e.set_baggage("p1", baggage_option(10)),
        lambda e: e.set_baggage("p2", baggage_option(32)),
        lambda e: e.set_meal("p1", meal_option("halal")),
        lambda e: e.set_meal("p3", meal_option("diabetic")),
        lambda e: e.set_insurance(insurance_option("basic")),
        lambda e: e.set_lounge_access(lounge_access_for("DXB")),
    ]
    rng = random.Random(7)
    totals = set()
    for _ in range(50):
        rng.shuffle(ops)
        extras = SelectedExtras()
        for op in ops:
            op(extras)
        totals.add(compute_extras_total(extras))

    assert totals == {Decimal("100") + Decimal("320") + Decimal("15") + Decimal("18")
                      + Decimal("25") + Decimal("45")}


def test_extras_dict_form_keeps_totals():
    extras = _full_extras()
    restored = SelectedExtras.from_dict(extras.to_dict())
    assert compute_extras_total(restored) == compute_extras_total(extras)
    assert compute_extras_total(None) == Decimal("0")


# ---- price breakdown ----

def test_breakdown_multiplies_fare_by_passenger_count():
    """Two travelers in extra-legroom seats with a full set of extras"""
    # Arrange
    seats = SeatAssignmentManager()
    seats.assign("p1", make_seat("1A", price=Decimal("30.00")))
    seats.assign("p2", make_seat("1B", price=Decimal("30.00")))

    # Act
    breakdown = compute_price_breakdown(FARE, 2, seats, _full_extras())

    # Assert
    assert breakdown.base_fare == Decimal("1000.00")
    assert breakdown.taxes == Decimal("120.00")
    assert breakdown.fees == Decimal("50.00")
    assert breakdown.seat_fees == Decimal("60.00")
    assert breakdown.extra_baggage == Decimal("200")
    assert breakdown.meals == Decimal("33")
    assert breakdown.insurance == Decimal("50")
    assert breakdown.lounge_access == Decimal("45")
    assert breakdown.total == Decimal("1558.00")


def test_total_is_sum_of_components():
    seat_map = {"p1": make_seat("9C", price=Decimal("12.345"))}
    breakdown = compute_price_breakdown(FARE, 1, seat_map, _full_extras())
    assert breakdown.total == sum(breakdown.components().values(), Decimal("0"))


def test_empty_booking_totals_zero():
    breakdown = compute_price_breakdown(None, 0)
    assert breakdown == PriceBreakdown()
    assert breakdown.total == Decimal("0")


def test_negative_passenger_count_is_rejected():
    with pytest.raises(ValueError):
        compute_price_breakdown(FARE, -1)


def test_rounding_happens_only_at_presentation():
    seat_map = {"p1": make_seat("9C", price=Decimal("0.005"))}
    breakdown = compute_price_breakdown(None, 1, seat_map)

    assert breakdown.total == Decimal("0.005")
    assert breakdown.as_dict()["total"] == "0.01"


def test_line_items_skip_zero_components_and_end_with_total():
    extras = SelectedExtras()
    extras.set_lounge_access(lounge_access_for("JFK"))
    items = breakdown_line_items(compute_price_breakdown(FARE, 1, extras=extras))

    assert [i["key"] for i in items] == ["base_fare", "taxes", "fees", "lounge_access", "total"]
    assert items[-1]["is_total"] is True
    assert items[-1]["formatted"] == "USD 630.00"


@pytest.mark.parametrize("amount, expected", [
    ("2.675", Decimal("2.68")),
    ("2.665", Decimal("2.67")),
    (0.1, Decimal("0.10")),
    (None, Decimal("0.00")),
])
def test_to_money_rounds_half_up(amount, expected):
    assert to_money(amount) == expected


def test_format_money_and_per_passenger_share():
    assert format_money(Decimal("1234"), "EUR") == "EUR 1,234.00"
    assert price_per_passenger(Decimal("100"), 3) == Decimal("33.33")
    assert price_per_passenger(Decimal("100"), 0) == Decimal("0")


def test_engine_exports_resolve():
    from skybooking import engine

    assert all(hasattr(engine, name) for name in engine.__all__)
    assert engine.compute_extras_total is compute_extras_total
