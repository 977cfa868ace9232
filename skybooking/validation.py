"""Passenger validation against the trip context.

Every check reports ``FieldError`` values instead of raising, so a form can show
all of its problems at once and keep what the traveler already typed. The set of
required fields is picked up front from (is_international, is_primary); see
``SchemaVariant``.
"""

import logging
import re
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from .domain import (
    ContactInfo,
    Gender,
    PassengerCategory,
    PassengerRecord,
    PassengerRole,
    PassportDocument,
    TripContext,
)
from .errors import FieldError, FieldErrorReason, MissingTripContextError, Result

logger = logging.getLogger(__name__)

ADULT_MIN_AGE = 12
CHILD_MIN_AGE = 2
MAX_AGE = 120
PASSPORT_VALIDITY_MONTHS = 6

NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^[0-9]{7,15}$")
COUNTRY_CODE_RE = re.compile(r"^\+[0-9]{1,4}$")
PASSPORT_NUMBER_RE = re.compile(r"^[A-Z0-9]{6,20}$")

R = FieldErrorReason


class SchemaVariant(Enum):
    PRIMARY_DOMESTIC = (False, True)
    COMPANION_DOMESTIC = (False, False)
    PRIMARY_INTERNATIONAL = (True, True)
    COMPANION_INTERNATIONAL = (True, False)

    @property
    def requires_passport(self) -> bool:
        return self.value[0]

    @property
    def requires_contact(self) -> bool:
        return self.value[1]


def schema_variant_for(is_international: bool, is_primary: bool) -> SchemaVariant:
    return SchemaVariant((bool(is_international), bool(is_primary)))


# ---- age ----

def age_on(date_of_birth: date, travel_date: date) -> int:
    """Completed years on the travel date (birthday counts as a full year)."""
    before_birthday = (travel_date.month, travel_date.day) < (date_of_birth.month, date_of_birth.day)
    return travel_date.year - date_of_birth.year - int(before_birthday)


def category_for_age(age: int) -> PassengerCategory:
    if age >= ADULT_MIN_AGE:
        return PassengerCategory.ADULT
    if age >= CHILD_MIN_AGE:
        return PassengerCategory.CHILD
    return PassengerCategory.INFANT


def age_matches_category(date_of_birth: date, category, travel_date: date) -> bool:
    try:
        category = PassengerCategory(category)
    except ValueError:
        return False
    if date_of_birth > travel_date:
        return False
    return category_for_age(age_on(date_of_birth, travel_date)) is category


# ---- passport ----

def minimum_passport_expiry(travel_date: date) -> date:
    return travel_date + relativedelta(months=PASSPORT_VALIDITY_MONTHS)


def _as_text(value) -> Optional[str]:
    """Trimmed text, '' when missing, None when the value is not a string at all."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return None


def _not_text(field: str, label: str) -> FieldError:
    return FieldError(field, R.INVALID_FORMAT, f"{label} must be text")


def validate_passport(passport: PassportDocument, travel_date: date) -> List[FieldError]:
    errors = []
    number = _as_text(passport.number)
    if number is None:
        errors.append(_not_text("number", "Passport number"))
    elif not number:
        errors.append(FieldError("number", R.REQUIRED, "Passport number is required"))
    elif not PASSPORT_NUMBER_RE.match(number):
        errors.append(FieldError(
            "number", R.INVALID_FORMAT,
            "Passport number must be 6-20 uppercase letters and numbers",
        ))

    expiry = passport.expiry_date
    if expiry is None or expiry == "":
        errors.append(FieldError("expiry_date", R.REQUIRED, "Passport expiry date is required"))
    elif not isinstance(expiry, date):
        errors.append(FieldError("expiry_date", R.INVALID_FORMAT, "Please enter a valid expiry date"))
    elif expiry < minimum_passport_expiry(travel_date):
        errors.append(FieldError(
            "expiry_date", R.EXPIRING_DOCUMENT,
            "Passport must be valid for at least 6 months after travel date",
        ))

    for attr, label in (("nationality", "Nationality"), ("issuing_country", "Issuing country")):
        value = _as_text(getattr(passport, attr))
        if value is None:
            errors.append(_not_text(attr, label))
        elif not value:
            errors.append(FieldError(attr, R.REQUIRED, f"{label} is required"))
        elif not 2 <= len(value) <= 100:
            errors.append(FieldError(attr, R.INVALID_FORMAT, f"{label} must be 2-100 characters"))
    return errors


# ---- contact ----

CONTACT_RULES = (
    ("email", "Email", EMAIL_RE, "Please enter a valid email address"),
    ("phone", "Phone number", PHONE_RE, "Phone number must be between 7 and 15 digits"),
    ("country_code", "Country code", COUNTRY_CODE_RE, "Country code must start with + and contain 1-4 digits"),
)


def validate_contact(contact: ContactInfo) -> List[FieldError]:
    errors = []
    for field, label, pattern, message in CONTACT_RULES:
        value = _as_text(getattr(contact, field))
        if value is None:
            errors.append(_not_text(field, label))
        elif not value:
            errors.append(FieldError(field, R.REQUIRED, f"{label} is required"))
        elif not pattern.match(value):
            errors.append(FieldError(field, R.INVALID_FORMAT, message))
    return errors


def _name_errors(field: str, label: str, value) -> List[FieldError]:
    value = _as_text(value)
    if value is None:
        return [_not_text(field, label)]
    if not value:
        return [FieldError(field, R.REQUIRED, f"{label} is required")]
    if not 2 <= len(value) <= 50:
        return [FieldError(field, R.INVALID_FORMAT, f"{label} must be 2-50 characters")]
    if not NAME_RE.match(value):
        return [FieldError(
            field, R.INVALID_FORMAT,
            f"{label} can only contain letters, spaces, hyphens, and apostrophes",
        )]
    return []


def _enum_error(field: str, enum_cls, value) -> Optional[FieldError]:
    try:
        enum_cls(value)
    except ValueError:
        return FieldError(field, R.INVALID_CHOICE, f"Please select a valid {field.replace('_', ' ')}")
    return None


class PassengerValidator:
    """Validates one passenger for a fixed trip context and role."""

    def __init__(self, context: TripContext, is_primary: bool, today: Optional[date] = None):
        if context is None:
            raise MissingTripContextError("a TripContext is required to validate passengers")
        self.context = context
        self.variant = schema_variant_for(context.is_international, is_primary)
        self.today = today or date.today()

    def validate(self, record: PassengerRecord) -> Result[PassengerRecord]:
        errors: List[FieldError] = []

        if not _as_text(record.id):
            errors.append(FieldError("id", R.REQUIRED, "Passenger ID is required"))
        errors.extend(_name_errors("first_name", "First name", record.first_name))
        errors.extend(_name_errors("last_name", "Last name", record.last_name))

        for field, enum_cls, value in (("category", PassengerCategory, record.category),
                                       ("gender", Gender, record.gender)):
            err = _enum_error(field, enum_cls, value)
            if err:
                errors.append(err)

        errors.extend(self._date_of_birth_errors(record))
        errors.extend(self._passport_errors(record.passport))

        contact = record.contact
        if contact is None:
            if self.variant.requires_contact:
                errors.append(FieldError("contact", R.REQUIRED, "Primary passenger must provide contact information"))
        elif not isinstance(contact, ContactInfo):
            errors.append(FieldError("contact", R.INVALID_FORMAT, "Please enter valid contact information"))
        else:
            errors.extend(e.prefixed("contact") for e in validate_contact(contact))

        if errors:
            logger.debug("passenger %s failed validation: %s", record.id, [e.field for e in errors])
            return Result.failure(*errors)
        return Result.success(self._normalized(record))

    def _passport_errors(self, passport) -> List[FieldError]:
        if not self.variant.requires_passport:
            if passport is None:
                return []
            return [FieldError(
                "passport", R.INVALID_CHOICE,
                "Passport information is not required for domestic flights",
            )]
        if passport is None:
            return [FieldError(
                "passport", R.REQUIRED,
                "Passport information is required for international flights",
            )]
        if not isinstance(passport, PassportDocument):
            return [FieldError("passport", R.INVALID_FORMAT, "Please enter valid passport information")]
        return [e.prefixed("passport") for e in validate_passport(passport, self.context.travel_date)]

    def _date_of_birth_errors(self, record: PassengerRecord) -> List[FieldError]:
        dob = record.date_of_birth
        if dob is None or dob == "":
            return [FieldError("date_of_birth", R.REQUIRED, "Please enter a valid date of birth")]
        if not isinstance(dob, date):
            return [FieldError("date_of_birth", R.INVALID_FORMAT, "Please enter a valid date of birth")]
        if dob >= self.today:
            return [FieldError("date_of_birth", R.OUT_OF_RANGE, "Date of birth must be in the past")]
        if age_on(dob, self.today) >= MAX_AGE:
            return [FieldError("date_of_birth", R.OUT_OF_RANGE, "Please enter a valid date of birth")]
        if dob > self.context.travel_date:
            return [FieldError("date_of_birth", R.OUT_OF_RANGE, "Date of birth must be before the travel date")]
        if not age_matches_category(dob, record.category, self.context.travel_date):
            # an unknown category is already reported on its own field
            if _enum_error("category", PassengerCategory, record.category):
                return []
            return [FieldError(
                "date_of_birth", R.AGE_MISMATCH,
                "Passenger age does not match passenger type for travel date",
            )]
        return []

    def _normalized(self, record: PassengerRecord) -> PassengerRecord:
        contact = record.contact
        passport = record.passport
        if contact is not None:
            contact = ContactInfo(
                email=contact.email.strip().lower(),
                phone=contact.phone.strip(),
                country_code=contact.country_code.strip(),
            )
        if passport is not None:
            passport = PassportDocument(
                number=passport.number.strip(),
                expiry_date=passport.expiry_date,
                nationality=passport.nationality.strip(),
                issuing_country=passport.issuing_country.strip(),
            )
        role = _role_of(record)
        if role is None:
            role = PassengerRole.PRIMARY if self.variant.requires_contact else PassengerRole.COMPANION
        return record.with_changes(
            id=record.id.strip(),
            role=role,
            category=PassengerCategory(record.category),
            gender=Gender(record.gender),
            first_name=record.first_name.strip(),
            last_name=record.last_name.strip(),
            passport=passport,
            contact=contact,
        )


def _role_of(record: PassengerRecord) -> Optional[PassengerRole]:
    try:
        return PassengerRole(record.role)
    except ValueError:
        return None


def validate_passenger(record: PassengerRecord, context: TripContext, today: Optional[date] = None) -> Result[PassengerRecord]:
    if context is None:
        raise MissingTripContextError("a TripContext is required to validate passengers")
    role = _role_of(record)
    result = PassengerValidator(context, is_primary=role is PassengerRole.PRIMARY, today=today).validate(record)
    if role is None:
        bad_role = FieldError("role", R.INVALID_CHOICE, "Please select a valid passenger role")
        return Result.failure(bad_role, *result.errors)
    return result


def validate_passenger_list(records: Iterable[PassengerRecord], context: TripContext,
                            today: Optional[date] = None) -> Result[List[PassengerRecord]]:
    if context is None:
        raise MissingTripContextError("a TripContext is required to validate passengers")
    records = list(records)
    if not records:
        return Result.failure(FieldError("passengers", R.EMPTY, "At least one passenger is required"))

    errors: List[FieldError] = []
    validated = []
    for idx, record in enumerate(records):
        result = validate_passenger(record, context, today=today)
        if result.ok:
            validated.append(result.value)
        else:
            errors.extend(e.prefixed(f"passengers[{idx}]") for e in result.errors)

    primaries = [r for r in records if _role_of(r) is PassengerRole.PRIMARY]
    if not primaries:
        errors.append(FieldError("passengers", R.NO_PRIMARY, "Exactly one primary passenger is required"))
    elif len(primaries) > 1:
        errors.append(FieldError("passengers", R.MULTIPLE_PRIMARY, "Only one passenger can be the primary contact"))

    seen = set()
    for idx, record in enumerate(records):
        pid = _as_text(record.id)
        if pid and pid in seen:
            errors.append(FieldError(f"passengers[{idx}].id", R.DUPLICATE_ID, "Passenger IDs must be unique"))
        seen.add(pid)

    if errors:
        return Result.failure(*errors)
    return Result.success(validated)
