"""Tests for passenger validation against the trip context"""

import random
from datetime import date, timedelta

import pytest

from skybooking.domain import (
    ContactInfo,
    PassengerCategory,
    PassengerRecord,
    PassengerRole,
    PassportDocument,
)
from skybooking.errors import FieldErrorReason, MissingTripContextError, ValidationFailedError
from skybooking.validation import (
    PassengerValidator,
    SchemaVariant,
    age_matches_category,
    age_on,
    schema_variant_for,
    validate_passenger,
    validate_passenger_list,
    validate_passport,
)

from .factories import (
    TODAY,
    TRAVEL_DATE,
    make_companion,
    make_contact,
    make_context,
    make_passenger,
    make_passport,
)


def _fields(result):
    return {e.field: e.reason for e in result.errors}


# ---- age bands ----

@pytest.mark.parametrize("years, days, expected", [
    (1, 364, PassengerCategory.INFANT),
    (2, 0, PassengerCategory.CHILD),
    (11, 364, PassengerCategory.CHILD),
    (12, 0, PassengerCategory.ADULT),
])
def test_age_band_boundaries(years, days, expected):
    dob = date(2010, 5, 20)
    travel = dob.replace(year=dob.year + years) + timedelta(days=days)
    for category in PassengerCategory:
        assert age_matches_category(dob, category, travel) is (category is expected)


def test_age_bands_match_manual_year_math_on_random_boundaries():
    rng = random.Random(20260615)
    checked = 0
    while checked < 1200:
        dob = date(1990, 1, 1) + timedelta(days=rng.randrange(0, 365 * 30))
        if (dob.month, dob.day) == (2, 29):
            continue
        threshold = rng.choice([2, 12])
        delta = rng.choice([-1, 0, 1])
        travel = dob.replace(year=dob.year + threshold) + timedelta(days=delta)

        # manual: completed years, the birthday itself counts
        years = threshold if delta >= 0 else threshold - 1
        if years >= 12:
            expected = PassengerCategory.ADULT
        elif years >= 2:
            expected = PassengerCategory.CHILD
        else:
            expected = PassengerCategory.INFANT

        assert age_on(dob, travel) == years
        assert age_matches_category(dob, expected, travel)
        checked += 1


def test_unknown_category_never_matches():
    assert not age_matches_category(date(2000, 1, 1), "senior", TRAVEL_DATE)


# ---- passport ----

def test_passport_expiring_exactly_six_months_after_travel_passes():
    passport = make_passport(expiry_date=date(2026, 12, 15))
    assert validate_passport(passport, TRAVEL_DATE) == []


def test_passport_expiring_one_day_early_fails():
    passport = make_passport(expiry_date=date(2026, 12, 14))
    errors = validate_passport(passport, TRAVEL_DATE)
    assert [(e.field, e.reason) for e in errors] == [("expiry_date", FieldErrorReason.EXPIRING_DOCUMENT)]


def test_passport_six_months_clamps_to_month_end():
    # Aug 31 + 6 months is Feb 28
    assert validate_passport(make_passport(expiry_date=date(2027, 2, 28)), date(2026, 8, 31)) == []


@pytest.mark.parametrize("number", ["x1234567", "AB12", "A" * 21, "AB-12345"])
def test_passport_number_format(number):
    errors = validate_passport(make_passport(number=number), TRAVEL_DATE)
    assert [(e.field, e.reason) for e in errors] == [("number", FieldErrorReason.INVALID_FORMAT)]


def test_passport_reports_format_and_expiry_independently():
    errors = validate_passport(make_passport(number="bad", expiry_date=date(2026, 7, 1)), TRAVEL_DATE)
    assert {e.field for e in errors} == {"number", "expiry_date"}


# ---- single passenger ----

def test_schema_variant_is_chosen_by_trip_and_role():
    assert schema_variant_for(False, True) is SchemaVariant.PRIMARY_DOMESTIC
    assert schema_variant_for(False, False) is SchemaVariant.COMPANION_DOMESTIC
    assert schema_variant_for(True, True) is SchemaVariant.PRIMARY_INTERNATIONAL
    assert schema_variant_for(True, False) is SchemaVariant.COMPANION_INTERNATIONAL
    assert SchemaVariant.PRIMARY_INTERNATIONAL.requires_passport
    assert not SchemaVariant.COMPANION_DOMESTIC.requires_contact


def test_primary_adult_international_scenario():
    """30-year-old primary traveler, passport valid 7 months past travel"""
    # Arrange
    passenger = make_passenger(passport=make_passport(expiry_date=date(2027, 1, 15)))

    # Act
    result = validate_passenger(passenger, make_context(), today=TODAY)

    # Assert
    assert result.ok
    assert result.value.role is PassengerRole.PRIMARY
    assert result.value.category is PassengerCategory.ADULT


def test_primary_adult_with_passport_expiring_in_five_months_fails():
    passenger = make_passenger(passport=make_passport(expiry_date=date(2026, 11, 15)))

    result = validate_passenger(passenger, make_context(), today=TODAY)

    assert not result.ok
    assert _fields(result) == {"passport.expiry_date": FieldErrorReason.EXPIRING_DOCUMENT}


@pytest.mark.parametrize("role", ["primary", "companion"])
def test_missing_passport_fails_on_international_trip(role):
    contact = make_contact() if role == "primary" else None
    passenger = make_passenger(role=role, passport=None, contact=contact)

    result = validate_passenger(passenger, make_context(is_international=True), today=TODAY)

    assert _fields(result) == {"passport": FieldErrorReason.REQUIRED}


@pytest.mark.parametrize("role", ["primary", "companion"])
def test_missing_passport_passes_on_domestic_trip(role):
    contact = make_contact() if role == "primary" else None
    passenger = make_passenger(role=role, passport=None, contact=contact)

    result = validate_passenger(passenger, make_context(is_international=False), today=TODAY)

    assert result.ok


def test_domestic_trip_rejects_supplied_passport():
    result = validate_passenger(make_passenger(), make_context(is_international=False), today=TODAY)
    assert _fields(result) == {"passport": FieldErrorReason.INVALID_CHOICE}


@pytest.mark.parametrize("overrides, field", [
    ({"first_name": 123}, "first_name"),
    ({"last_name": ["Khan"]}, "last_name"),
    ({"contact": ContactInfo(email=42, phone="4165550100", country_code="+1")}, "contact.email"),
    ({"passport": PassportDocument(number=12345678, expiry_date=date(2027, 1, 15),
                                   nationality="Canada", issuing_country="Canada")}, "passport.number"),
])
def test_non_text_values_are_reported_not_raised(overrides, field):
    result = validate_passenger(make_passenger(**overrides), make_context(), today=TODAY)
    assert _fields(result) == {field: FieldErrorReason.INVALID_FORMAT}


@pytest.mark.parametrize("overrides, field", [
    ({"passport": "X1234567"}, "passport"),
    ({"contact": "amina.khan@example.com"}, "contact"),
])
def test_wrongly_shaped_documents_are_invalid_format(overrides, field):
    result = validate_passenger(make_passenger(**overrides), make_context(), today=TODAY)
    assert _fields(result) == {field: FieldErrorReason.INVALID_FORMAT}


def test_unparseable_dates_are_reported_on_their_fields():
    """A bad date does not hide the other problems on the record"""
    # Arrange
    record = PassengerRecord.from_dict({
        **make_passenger().as_dict(),
        "first_name": "A",
        "date_of_birth": "not-a-date",
        "passport": {**make_passport().as_dict(), "expiry_date": "31/01/2027"},
    })

    # Act
    result = validate_passenger(record, make_context(), today=TODAY)

    # Assert
    assert _fields(result) == {
        "first_name": FieldErrorReason.INVALID_FORMAT,
        "date_of_birth": FieldErrorReason.INVALID_FORMAT,
        "passport.expiry_date": FieldErrorReason.INVALID_FORMAT,
    }


def test_date_of_birth_after_travel_date_is_out_of_range():
    context = make_context(travel_date=date(2025, 6, 1))
    infant = make_companion(category="infant", date_of_birth=date(2025, 9, 1), passport=make_passport(
        expiry_date=date(2026, 1, 1)))

    result = validate_passenger(infant, context, today=TODAY)

    assert _fields(result) == {"date_of_birth": FieldErrorReason.OUT_OF_RANGE}
    assert not age_matches_category(date(2025, 9, 1), "infant", date(2025, 6, 1))


def test_primary_requires_contact_companion_does_not():
    context = make_context()
    primary = validate_passenger(make_passenger(contact=None), context, today=TODAY)
    companion = validate_passenger(make_companion(contact=None), context, today=TODAY)

    assert _fields(primary) == {"contact": FieldErrorReason.REQUIRED}
    assert companion.ok


def test_companion_contact_is_still_shape_checked():
    companion = make_companion(contact=make_contact(phone="12-34"))
    result = validate_passenger(companion, make_context(), today=TODAY)
    assert _fields(result) == {"contact.phone": FieldErrorReason.INVALID_FORMAT}


def test_all_field_errors_are_reported_together():
    passenger = make_passenger(
        first_name="A",
        last_name="Kh@n",
        gender="unknown",
        contact=make_contact(email="not-an-email", country_code="1"),
    )

    result = validate_passenger(passenger, make_context(), today=TODAY)

    assert _fields(result) == {
        "first_name": FieldErrorReason.INVALID_FORMAT,
        "last_name": FieldErrorReason.INVALID_FORMAT,
        "gender": FieldErrorReason.INVALID_CHOICE,
        "contact.email": FieldErrorReason.INVALID_FORMAT,
        "contact.country_code": FieldErrorReason.INVALID_FORMAT,
    }


def test_names_allow_spaces_hyphens_and_apostrophes():
    passenger = make_passenger(first_name="Mary-Jane", last_name="O'Neil Smith")
    assert validate_passenger(passenger, make_context(), today=TODAY).ok


def test_declared_child_who_is_an_adult_fails_on_date_of_birth():
    result = validate_passenger(make_passenger(category="child"), make_context(), today=TODAY)
    assert _fields(result) == {"date_of_birth": FieldErrorReason.AGE_MISMATCH}


def test_infant_on_travel_date():
    infant = make_companion(id="p3", category="infant", date_of_birth=date(2025, 3, 1))
    assert validate_passenger(infant, make_context(), today=TODAY).ok


@pytest.mark.parametrize("dob", [date(2026, 2, 1), date(1900, 1, 1)])
def test_date_of_birth_must_be_past_and_plausible(dob):
    result = validate_passenger(make_passenger(date_of_birth=dob), make_context(), today=TODAY)
    assert _fields(result)["date_of_birth"] is FieldErrorReason.OUT_OF_RANGE


def test_validated_record_is_normalized():
    passenger = make_passenger(first_name="  Amina ", contact=make_contact(email=" Amina.Khan@Example.COM "))
    result = validate_passenger(passenger, make_context(), today=TODAY)
    assert result.value.first_name == "Amina"
    assert result.value.contact.email == "amina.khan@example.com"


def test_validator_requires_trip_context():
    with pytest.raises(MissingTripContextError):
        PassengerValidator(None, is_primary=True)
    with pytest.raises(MissingTripContextError):
        validate_passenger(make_passenger(), None)


def test_unwrap_raises_with_field_errors():
    result = validate_passenger(make_passenger(contact=None), make_context(), today=TODAY)
    with pytest.raises(ValidationFailedError) as exc:
        result.unwrap()
    assert exc.value.errors[0].field == "contact"


# ---- passenger list ----

def test_list_with_one_primary_passes():
    result = validate_passenger_list([make_passenger(), make_companion()], make_context(), today=TODAY)
    assert result.ok
    assert [p.id for p in result.value] == ["p1", "p2"]


def test_list_requires_exactly_one_primary():
    none = validate_passenger_list([make_companion()], make_context(), today=TODAY)
    two = validate_passenger_list(
        [make_passenger(), make_passenger(id="p2", first_name="Sara")], make_context(), today=TODAY,
    )

    assert _fields(none) == {"passengers": FieldErrorReason.NO_PRIMARY}
    assert _fields(two) == {"passengers": FieldErrorReason.MULTIPLE_PRIMARY}


def test_list_prefixes_errors_with_passenger_index():
    companion = make_companion(passport=None)
    result = validate_passenger_list([make_passenger(), companion], make_context(), today=TODAY)
    assert _fields(result) == {"passengers[1].passport": FieldErrorReason.REQUIRED}


def test_list_rejects_duplicate_ids_and_empty_lists():
    dup = validate_passenger_list([make_passenger(), make_companion(id="p1")], make_context(), today=TODAY)
    empty = validate_passenger_list([], make_context(), today=TODAY)

    assert _fields(dup) == {"passengers[1].id": FieldErrorReason.DUPLICATE_ID}
    assert _fields(empty) == {"passengers": FieldErrorReason.EMPTY}
