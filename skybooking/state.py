from flask import session

from .extras import SelectedExtras
from .seats import SeatAssignmentManager

BOOKING_SESSION_KEY = "booking_context"


def get_booking_context() -> dict:
    return session.get(BOOKING_SESSION_KEY) or {}


def update_booking_context(data: dict) -> dict:
    """
    This keeps all steps (passengers → seats → extras → payment) in sync.
    """
    ctx = get_booking_context()
    ctx.update(data or {})
    session[BOOKING_SESSION_KEY] = ctx
    session.modified = True
    return ctx


def clear_booking_context():
    session.pop(BOOKING_SESSION_KEY, None)


def start_booking(flight_id: int) -> dict:
    """Switching flights throws away seats and extras picked for the old one."""
    ctx = get_booking_context()
    if ctx.get("flight_id") != flight_id:
        clear_booking_context()
        ctx = update_booking_context({"flight_id": flight_id})
    return ctx


def passenger_ids(ctx: dict) -> list:
    return [p["id"] for p in ctx.get("passengers") or []]


def load_seat_manager(ctx: dict) -> SeatAssignmentManager:
    return SeatAssignmentManager.from_dict(ctx.get("seats"))


def save_seat_manager(manager: SeatAssignmentManager) -> dict:
    return update_booking_context({"seats": manager.to_dict()})


def load_extras(ctx: dict) -> SelectedExtras:
    return SelectedExtras.from_dict(ctx.get("extras"))


def save_extras(extras: SelectedExtras) -> dict:
    return update_booking_context({"extras": extras.to_dict()})
