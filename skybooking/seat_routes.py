from flask import Blueprint, jsonify, request
from skybooking.models import Flight
from skybooking import db
from .seat_map import SeatMapProvider
from .state import (
    get_booking_context,
    load_seat_manager,
    passenger_ids,
    save_seat_manager,
    start_booking,
)

bp = Blueprint("seats", __name__)


def _selection_payload(manager, ctx):
    ids = passenger_ids(ctx)
    return {
        "assignments": {pid: seat.id for pid, seat in manager.assignments().items()},
        "seat_fees": str(manager.seat_fees()),
        "complete": bool(ids) and manager.is_complete(ids),
    }


@bp.get("/api/flights/<int:flight_id>/seats")
def seats_api(flight_id):
    f = db.session.get(Flight, flight_id)
    if not f:
        return jsonify({"error": "flight_not_found"}), 404

    ctx = get_booking_context()
    selected = frozenset()
    if ctx.get("flight_id") == flight_id:
        selected = load_seat_manager(ctx).selected_seat_ids()

    seats = []
    for seat in SeatMapProvider().seats_for(flight_id):
        data = seat.as_dict()
        data["selected"] = seat.id in selected
        seats.append(data)

    return jsonify({
        "flight_id": flight_id,
        "origin": f.origin,
        "destination": f.destination,
        "depart_time": f.depart_time.isoformat(),
        "seats": seats,
    })


@bp.post("/api/booking/seats")
def assign_seat():
    payload = request.get_json(silent=True) or {}
    try:
        flight_id = int(payload.get("flight_id") or 0)
    except (TypeError, ValueError):
        flight_id = 0
    passenger_id = str(payload.get("passenger_id") or "").strip()
    seat_id = str(payload.get("seat_id") or "").strip().upper()

    if not flight_id:
        return jsonify({"error": "missing_flight_id"}), 400
    if not passenger_id or not seat_id:
        return jsonify({"error": "missing_passenger_or_seat"}), 400
    if not db.session.get(Flight, flight_id):
        return jsonify({"error": "flight_not_found"}), 404

    seat = SeatMapProvider().seat(flight_id, seat_id)
    if seat is None:
        return jsonify({"error": "seat_not_found"}), 404

    ctx = start_booking(flight_id)
    known = passenger_ids(ctx)
    if known and passenger_id not in known:
        return jsonify({"error": "unknown_passenger"}), 400

    manager = load_seat_manager(ctx)
    result = manager.assign(passenger_id, seat)
    if not result.ok:
        err = result.error
        return jsonify({"ok": False, "error": err.code, "message": str(err), "seat_id": err.seat_id}), 409

    ctx = save_seat_manager(manager)
    return jsonify({"ok": True, "action": result.value.value, **_selection_payload(manager, ctx)})


@bp.delete("/api/booking/seats/<passenger_id>")
def unassign_seat(passenger_id):
    ctx = get_booking_context()
    manager = load_seat_manager(ctx)
    manager.unassign(passenger_id)
    ctx = save_seat_manager(manager)
    return jsonify({"ok": True, **_selection_payload(manager, ctx)})
