from typing import List, Optional

from . import db
from .domain import Seat, SeatStatus, as_decimal
from .models import Seat as SeatRow


def seat_from_row(row: SeatRow) -> Seat:
    return Seat(
        id=row.code(),
        row=row.row_num,
        column=row.seat_letter,
        status=SeatStatus(row.status),
        price=as_decimal(row.price),
        seat_type=row.seat_type,
        position=row.position,
    )


class SeatMapProvider:
    """Reads a flight's seats. Seat status here is owned by inventory and never written."""

    def __init__(self, session=None):
        self.session = session or db.session

    def seats_for(self, flight_id: int) -> List[Seat]:
        rows = (
            self.session.query(SeatRow)
            .filter(SeatRow.flight_id == flight_id)
            .order_by(SeatRow.row_num.asc(), SeatRow.seat_letter.asc())
            .all()
        )
        return [seat_from_row(r) for r in rows]

    def seat(self, flight_id: int, seat_id: str) -> Optional[Seat]:
        seat_id = (seat_id or "").strip().upper()
        for seat in self.seats_for(flight_id):
            if seat.id == seat_id:
                return seat
        return None
