"""Public surface of the booking construction & pricing engine.

Nothing here touches Flask or the database; the blueprints and the seed script
wire these functions to their collaborators.
"""

from .cancellation import CancellationService, compute_cancellation, transition_to_cancelled
from .extras import SelectedExtras, compute_extras_total
from .pricing import PriceBreakdown, compute_price_breakdown
from .seats import SeatAssignmentManager, assign_seat, is_seat_selection_complete, unassign_seat
from .validation import validate_passenger, validate_passenger_list

__all__ = [
    "CancellationService",
    "PriceBreakdown",
    "SeatAssignmentManager",
    "SelectedExtras",
    "assign_seat",
    "compute_cancellation",
    "compute_extras_total",
    "compute_price_breakdown",
    "is_seat_selection_complete",
    "transition_to_cancelled",
    "unassign_seat",
    "validate_passenger",
    "validate_passenger_list",
]
