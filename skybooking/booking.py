from flask import Blueprint, jsonify, request

from . import db
from .domain import FlightFare, PassengerRecord, TripContext, as_decimal
from .errors import UnknownExtraError
from .extras import baggage_option, insurance_option, lounge_access_for, meal_option
from .models import Flight
from .pricing import breakdown_line_items, compute_price_breakdown, price_per_passenger
from .state import (
    get_booking_context,
    load_extras,
    load_seat_manager,
    passenger_ids,
    save_extras,
    save_seat_manager,
    start_booking,
    update_booking_context,
)
from .validation import validate_passenger_list

booking_bp = Blueprint("booking", __name__, url_prefix="/api/booking")


def fare_for(flight: Flight) -> FlightFare:
    return FlightFare(
        base_fare=as_decimal(flight.base_fare),
        taxes=as_decimal(flight.taxes),
        fees=as_decimal(flight.fees),
        currency=flight.currency,
    )


# recomputed from session inputs on every request, never stored
def _quote(ctx):
    flight = db.session.get(Flight, ctx.get("flight_id") or 0)
    if flight is None:
        return None
    count = len(passenger_ids(ctx)) or int(ctx.get("passenger_count") or 1)
    breakdown = compute_price_breakdown(fare_for(flight), count, load_seat_manager(ctx), load_extras(ctx))
    return {
        "currency": flight.currency,
        "passenger_count": count,
        "breakdown": breakdown.as_dict(),
        "line_items": breakdown_line_items(breakdown, flight.currency),
        "per_passenger": str(price_per_passenger(breakdown.total, count)),
    }


# validates the whole passenger list against the flight's trip context
@booking_bp.route("/passengers", methods=["POST"])
def submit_passengers():
    payload = request.get_json(silent=True) or {}
    try:
        flight_id = int(payload.get("flight_id") or 0)
    except (TypeError, ValueError):
        flight_id = 0
    if not flight_id:
        return jsonify({"ok": False, "error": "missing_flight_id"}), 400

    flight = db.session.get(Flight, flight_id)
    if not flight:
        return jsonify({"ok": False, "error": "flight_not_found"}), 404

    raw = payload.get("passengers")
    if not isinstance(raw, list):
        return jsonify({"ok": False, "error": "missing_passengers"}), 400
    records = [PassengerRecord.from_dict(p if isinstance(p, dict) else {}) for p in raw]

    result = validate_passenger_list(records, TripContext.for_flight(flight))
    if not result.ok:
        return jsonify({"ok": False, "errors": [e.as_dict() for e in result.errors]}), 422

    ctx = start_booking(flight_id)
    ids = {p.id for p in result.value}

    # drop seats and extras held by passengers who were removed from the list
    manager = load_seat_manager(ctx)
    for pid in list(manager.assignments()):
        if pid not in ids:
            manager.unassign(pid)
    extras = load_extras(ctx)
    for pid in set(extras.baggage_by_passenger) | set(extras.meals_by_passenger):
        if pid not in ids:
            extras.remove_passenger(pid)
    save_seat_manager(manager)
    save_extras(extras)

    ctx = update_booking_context({
        "passengers": [p.as_dict() for p in result.value],
        "passenger_count": len(result.value),
    })
    return jsonify({"ok": True, "passengers": ctx["passengers"], "price": _quote(ctx)})


@booking_bp.route("/extras", methods=["POST"])
def update_extras():
    payload = request.get_json(silent=True) or {}
    ctx = get_booking_context()
    if not ctx.get("flight_id"):
        return jsonify({"ok": False, "error": "no_booking_in_progress"}), 400
    flight = db.session.get(Flight, ctx["flight_id"])
    if flight is None:
        return jsonify({"ok": False, "error": "flight_not_found"}), 404
    known = set(passenger_ids(ctx))
    for key in ("baggage", "meals"):
        if not isinstance(payload.get(key) or {}, dict):
            message = f"{key} must map passenger ids to options"
            return jsonify({"ok": False, "error": "unknown_extra", "message": message}), 400

    extras = load_extras(ctx)
    try:
        for pid, weight in (payload.get("baggage") or {}).items():
            if known and pid not in known:
                return jsonify({"ok": False, "error": "unknown_passenger", "passenger_id": pid}), 400
            extras.set_baggage(pid, baggage_option(int(weight)) if weight else None)
        for pid, meal in (payload.get("meals") or {}).items():
            if known and pid not in known:
                return jsonify({"ok": False, "error": "unknown_passenger", "passenger_id": pid}), 400
            extras.set_meal(pid, meal_option(meal) if meal else None)
        if "insurance" in payload:
            plan = payload.get("insurance")
            extras.set_insurance(insurance_option(plan) if plan else None)
        if "lounge_access" in payload:
            extras.set_lounge_access(lounge_access_for(flight.origin) if payload.get("lounge_access") else None)
    except (UnknownExtraError, TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": "unknown_extra", "message": str(e)}), 400

    ctx = save_extras(extras)
    return jsonify({"ok": True, "extras": ctx["extras"], "price": _quote(ctx)})


@booking_bp.route("/price", methods=["GET"])
def price():
    quote = _quote(get_booking_context())
    if quote is None:
        return jsonify({"ok": False, "error": "no_booking_in_progress"}), 400
    return jsonify({"ok": True, **quote})
