import logging
from flask import Blueprint, current_app, jsonify, request
from .cancellation import CancellationService, compute_cancellation, is_valid_reference
from .errors import AlreadyCancelledError, BookingNotFoundError, InvalidReferenceError, StoreUnavailableError
from .store import BookingStore

logger = logging.getLogger(__name__)

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")


def _not_found():
    return jsonify({"ok": False, "error": "Booking not found or invalid credentials"}), 404


def _unavailable():
    return jsonify({"ok": False, "error": "Booking service temporarily unavailable", "retryable": True}), 503


# looks up a booking by reference + passenger last name, with a cancellation quote if still active
@bookings_bp.route("/<reference>", methods=["GET"])
def get_booking(reference):
    reference = reference.strip().upper()
    last_name = (request.args.get("last_name") or "").strip()
    if not is_valid_reference(reference):
        return jsonify({"ok": False, "error": "Invalid booking reference format"}), 400
    if not last_name:
        return jsonify({"ok": False, "error": "Last name is required for authentication"}), 400

    try:
        booking = BookingStore().find_by_reference_and_last_name(reference, last_name)
    except StoreUnavailableError:
        return _unavailable()
    if booking is None:
        return _not_found()

    data = booking.as_dict()
    if not booking.is_cancelled:
        data["cancellation_quote"] = compute_cancellation(booking).as_dict()
    return jsonify({"ok": True, "booking": data})


# cancels a confirmed booking and reports fee / refund
@bookings_bp.route("/<reference>/cancel", methods=["POST"])
def cancel_booking(reference):
    data = request.get_json(silent=True) or request.form or {}
    last_name = (data.get("last_name") or "").strip()
    if not last_name:
        return jsonify({"ok": False, "error": "Last name is required for authentication"}), 400

    service = CancellationService(BookingStore(), current_app.config.get("NOTIFIER"))
    try:
        result = service.cancel(reference, last_name)
    except InvalidReferenceError:
        return jsonify({"ok": False, "error": "Invalid booking reference format"}), 400
    except BookingNotFoundError:
        return _not_found()
    except StoreUnavailableError:
        logger.exception("cancellation of %s failed", reference)
        return _unavailable()

    if not result.ok:
        err = result.error
        if isinstance(err, AlreadyCancelledError):
            return jsonify({"ok": False, "error": "Booking is already cancelled", "code": err.code}), 409
        return jsonify({"ok": False, "error": str(err)}), 400

    booking = result.value
    return jsonify({
        "ok": True,
        "message": "Booking cancelled successfully",
        "cancellation_fee": str(booking.cancellation.fee),
        "refund_amount": str(booking.cancellation.refund),
        "currency": booking.currency,
        "booking": {
            "reference": booking.reference,
            "status": booking.status.value,
            "payment_status": booking.payment_status.value,
        },
    })
