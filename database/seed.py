import hashlib
import logging
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal

from skybooking import create_app, db
from skybooking.domain import (
    Booking,
    BookingStatus,
    ContactInfo,
    FareRules,
    PassengerRecord,
    PassportDocument,
)
from skybooking.models import Flight, Seat
from skybooking.store import BookingStore

logger = logging.getLogger("skybooking.seed")

app = create_app()

DOMESTIC = {"US"}
AIRPORT_COUNTRY = {
    "JFK": "US", "LAX": "US", "SFO": "US", "ORD": "US", "MIA": "US",
    "LHR": "GB", "CDG": "FR", "DXB": "AE", "HND": "JP", "YYZ": "CA",
}

# seat layout used for every seeded aircraft
LAYOUT = "ABC DEF"
TOTAL_ROWS = 30
EXIT_ROWS = (12, 13)


def stable_noise(key: str, low=-0.03, high=0.03) -> float:
    h = hashlib.sha256(key.encode()).hexdigest()
    rnd = int(h[:8], 16) / 0xFFFFFFFF
    return low + (high - low) * rnd


# helps generate seat order for each row.
def letters_from_layout(layout_str: str):
    letters = []
    for group in layout_str.split():
        letters.extend(list(group))
    return letters


def position_for(letter: str) -> str:
    if letter in ("A", "F"):
        return "window"
    if letter in ("C", "D"):
        return "aisle"
    return "middle"


# seat surcharge and type by row: exit rows and the first rows cost extra
def seat_pricing(row: int):
    if row in EXIT_ROWS:
        return "exit-row", Decimal("35")
    if row <= 3:
        return "extra-legroom", Decimal("30")
    if row <= 8:
        return "preferred", Decimal("15")
    return "standard", Decimal("0")


def seed_seats(flight: Flight):
    exists = db.session.query(Seat.id).filter_by(flight_id=flight.id).limit(1).first()
    if exists:
        return 0
    batch = []
    for r in range(1, TOTAL_ROWS + 1):
        seat_type, price = seat_pricing(r)
        for ch in letters_from_layout(LAYOUT):
            # a stable pseudo-random fifth of the cabin is already sold
            sold = stable_noise(f"{flight.id}-{r}{ch}", 0, 1) < 0.2
            batch.append(Seat(
                flight_id=flight.id,
                row_num=r,
                seat_letter=ch,
                status="blocked" if (r == 1 and ch in ("E", "F")) else ("occupied" if sold else "available"),
                seat_type=seat_type,
                position=position_for(ch),
                price=price,
            ))
    db.session.bulk_save_objects(batch)
    db.session.commit()
    return len(batch)


def seed_flights(now):
    routes = [
        ("JFK", "LAX", 280), ("LAX", "JFK", 285),
        ("JFK", "SFO", 300), ("ORD", "MIA", 190),
        ("JFK", "LHR", 600), ("LHR", "JFK", 600),
        ("YYZ", "CDG", 620), ("JFK", "DXB", 880),
        ("LAX", "HND", 820),
    ]
    existing = {f.flight_number for f in Flight.query.all()}
    created = []
    for idx, (origin, dest, base) in enumerate(routes):
        number = f"SW{idx + 100:04d}"
        if number in existing:
            continue
        depart = now + timedelta(days=14 + idx, hours=9)
        fare = Decimal(str(round(base * (1 + stable_noise(number)), 2)))
        international = not (AIRPORT_COUNTRY[origin] in DOMESTIC and AIRPORT_COUNTRY[dest] in DOMESTIC)
        flight = Flight(
            flight_number=number,
            origin=origin,
            destination=dest,
            depart_time=depart,
            is_international=international,
            base_fare=fare,
            taxes=(fare * Decimal("0.12")).quantize(Decimal("0.01")),
            fees=Decimal("25.00"),
            currency="USD",
            fare_rules={"refundable": True, "cancellation_fee": 150 if international else None},
        )
        db.session.add(flight)
        created.append(flight)
    db.session.commit()
    return created


def seed_demo_booking(flight: Flight):
    store = BookingStore()
    if store.find_by_reference("DEMO01"):
        return
    travel = flight.depart_time.date()
    booking = Booking(
        reference="DEMO01",
        status=BookingStatus.CONFIRMED,
        total_amount=Decimal("1000.00"),
        currency=flight.currency,
        fare_rules=FareRules.from_dict(flight.fare_rules),
        flight_summary=flight.summary,
        passengers=[
            PassengerRecord(
                id="p1", role="primary", category="adult",
                first_name="Amina", last_name="Khan",
                date_of_birth=date(travel.year - 30, 1, 15),
                gender="female",
                passport=PassportDocument("X1234567", travel + timedelta(days=900), "Canada", "Canada"),
                contact=ContactInfo("amina.khan@example.com", "4165550100", "+1"),
            ),
        ],
        seats={"p1": "14A"},
    )
    store.save(booking, flight_id=flight.id)
    logger.info("seeded demo booking DEMO01 on %s", flight.flight_number)


with app.app_context():
    now = datetime.now(UTC).replace(tzinfo=None, minute=0, second=0, microsecond=0)
    flights = seed_flights(now)
    logger.info("seeded %d flights", len(flights))

    total = sum(seed_seats(f) for f in Flight.query.all())
    logger.info("seeded %d seats", total)

    first_international = Flight.query.filter_by(is_international=True).order_by(Flight.id).first()
    if first_international:
        seed_demo_booking(first_international)
