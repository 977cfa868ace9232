import logging
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .domain import Seat, SeatStatus
from .errors import Result, SeatTakenError, SeatUnavailableError

logger = logging.getLogger(__name__)


class SeatAction(str, Enum):
    ASSIGNED = "assigned"
    DESELECTED = "deselected"


class SeatAssignmentManager:
    """Owns the passenger -> seat map for one booking in progress.

    All writes go through ``assign``/``unassign``/``clear`` so that a seat id
    never appears twice and only available seats get in. Conflicts are checked
    before the map is touched.
    """

    def __init__(self, assignments: Optional[Mapping[str, Seat]] = None):
        self._by_passenger: Dict[str, Seat] = {}
        self._observers: List[Callable[[frozenset], None]] = []
        for pid, seat in (assignments or {}).items():
            self.assign(pid, seat).unwrap()

    def subscribe(self, observer: Callable[[frozenset], None]) -> None:
        """Register a callable that receives the selected seat ids after every change."""
        self._observers.append(observer)

    def _notify(self) -> None:
        selected = self.selected_seat_ids()
        for observer in self._observers:
            observer(selected)

    def _holder_of(self, seat_id: str) -> Optional[str]:
        for pid, seat in self._by_passenger.items():
            if seat.id == seat_id:
                return pid
        return None

    def assign(self, passenger_id: str, seat: Seat) -> Result[SeatAction]:
        current = self._by_passenger.get(passenger_id)
        # picking your own seat again deselects it
        if current is not None and current.id == seat.id:
            del self._by_passenger[passenger_id]
            logger.debug("passenger %s released seat %s", passenger_id, seat.id)
            self._notify()
            return Result.success(SeatAction.DESELECTED)

        if not seat.is_available:
            return Result.failure(SeatUnavailableError(seat.id, SeatStatus(seat.status).value))

        holder = self._holder_of(seat.id)
        if holder is not None:
            return Result.failure(SeatTakenError(seat.id, holder))

        self._by_passenger[passenger_id] = seat
        logger.debug("passenger %s assigned seat %s", passenger_id, seat.id)
        self._notify()
        return Result.success(SeatAction.ASSIGNED)

    def unassign(self, passenger_id: str) -> None:
        if self._by_passenger.pop(passenger_id, None) is not None:
            self._notify()

    def clear(self) -> None:
        if self._by_passenger:
            self._by_passenger.clear()
            self._notify()

    def is_complete(self, passenger_ids: Iterable[str]) -> bool:
        return all(pid in self._by_passenger for pid in passenger_ids)

    def seat_for(self, passenger_id: str) -> Optional[Seat]:
        return self._by_passenger.get(passenger_id)

    def assignments(self) -> Dict[str, Seat]:
        return dict(self._by_passenger)

    def selected_seat_ids(self) -> frozenset:
        return frozenset(seat.id for seat in self._by_passenger.values())

    def is_selected(self, seat_id: str) -> bool:
        return self._holder_of(seat_id) is not None

    def seat_fees(self) -> Decimal:
        return sum((seat.price for seat in self._by_passenger.values()), Decimal("0"))

    def __len__(self) -> int:
        return len(self._by_passenger)

    def __contains__(self, passenger_id) -> bool:
        return passenger_id in self._by_passenger

    def to_dict(self) -> Dict[str, dict]:
        return {pid: seat.as_dict() for pid, seat in self._by_passenger.items()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, dict]]) -> "SeatAssignmentManager":
        return cls({pid: Seat.from_dict(raw) for pid, raw in (data or {}).items()})


def assign_seat(manager: SeatAssignmentManager, passenger_id: str, seat: Seat) -> Result[SeatAction]:
    return manager.assign(passenger_id, seat)


def unassign_seat(manager: SeatAssignmentManager, passenger_id: str) -> None:
    manager.unassign(passenger_id)


def is_seat_selection_complete(manager: SeatAssignmentManager, passenger_ids: Iterable[str]) -> bool:
    return manager.is_complete(passenger_ids)
