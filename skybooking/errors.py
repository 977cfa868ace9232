from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class BookingEngineError(Exception):
    """Base exception for the booking engine."""
    pass


class MissingTripContextError(BookingEngineError, TypeError):
    pass


class UnknownExtraError(BookingEngineError, ValueError):
    pass


class InvalidReferenceError(BookingEngineError, ValueError):
    pass


class BookingNotFoundError(BookingEngineError):
    pass


class ValidationFailedError(BookingEngineError):
    def __init__(self, errors):
        self.errors = tuple(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"validation failed: {fields}")


# seat conflicts: caller should re-prompt seat selection
class SeatConflictError(BookingEngineError):
    code = "seat_conflict"

    def __init__(self, seat_id: str, message: str):
        self.seat_id = seat_id
        super().__init__(message)


class SeatUnavailableError(SeatConflictError):
    code = "seat_unavailable"

    def __init__(self, seat_id: str, status: str):
        self.status = status
        super().__init__(seat_id, f"Seat {seat_id} is {status}")


class SeatTakenError(SeatConflictError):
    code = "seat_taken"

    def __init__(self, seat_id: str, holder_id: str):
        self.holder_id = holder_id
        super().__init__(seat_id, f"Seat {seat_id} is already assigned to passenger {holder_id}")


class StateTransitionError(BookingEngineError):
    code = "invalid_transition"


class AlreadyCancelledError(StateTransitionError):
    code = "already_cancelled"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Booking {reference} is already cancelled")


# network / storage class failures, the only ones that propagate as exceptions
class CollaboratorError(BookingEngineError):
    retryable = False


class StoreUnavailableError(CollaboratorError):
    retryable = True


class NotificationError(CollaboratorError):
    pass


class FieldErrorReason(str, Enum):
    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    INVALID_CHOICE = "invalid_choice"
    EXPIRING_DOCUMENT = "expiring_document"
    AGE_MISMATCH = "age_mismatch"
    OUT_OF_RANGE = "out_of_range"
    NO_PRIMARY = "no_primary"
    MULTIPLE_PRIMARY = "multiple_primary"
    DUPLICATE_ID = "duplicate_id"
    EMPTY = "empty"


@dataclass(frozen=True)
class FieldError:
    """A recoverable, per-field validation failure. Returned, never raised."""
    field: str
    reason: FieldErrorReason
    message: str = ""

    def prefixed(self, prefix: str) -> "FieldError":
        path = f"{prefix}.{self.field}" if self.field else prefix
        return FieldError(path, self.reason, self.message)

    def as_dict(self) -> dict:
        return {"field": self.field, "reason": self.reason.value, "message": self.message}


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the errors that prevented it.

    Validation, seat conflicts and state transitions report through this type so
    callers can render every failure at once instead of catching exceptions.
    """
    value: Optional[T] = None
    errors: Tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, *errors) -> "Result[T]":
        return cls(errors=tuple(errors))

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error(self):
        return self.errors[0] if self.errors else None

    def unwrap(self) -> T:
        if self.ok:
            return self.value
        first = self.errors[0]
        if isinstance(first, BaseException):
            raise first
        raise ValidationFailedError(self.errors)
