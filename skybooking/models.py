from datetime import datetime
from . import db


# Flight model
class Flight(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    flight_number = db.Column(db.String(16), nullable=False)
    origin = db.Column(db.String(3), nullable=False)
    destination = db.Column(db.String(3), nullable=False)
    depart_time = db.Column(db.DateTime, nullable=False)
    is_international = db.Column(db.Boolean, nullable=False, default=False)
    base_fare = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    taxes = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    fees = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    fare_rules = db.Column(db.JSON, nullable=False, default=dict)

    # Seats backref
    seats = db.relationship(
        "Seat",
        back_populates="flight",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    @property
    def summary(self) -> str:
        when = self.depart_time.strftime("%A, %B %d, %Y at %H:%M") if self.depart_time else "N/A"
        return f"{self.flight_number} - {self.origin} → {self.destination} on {when}"

    def __repr__(self):
        return f"<Flight {self.flight_number} {self.origin}->{self.destination} {self.depart_time}>"


class Seat(db.Model):
    __tablename__ = "seats"

    id = db.Column(db.Integer, primary_key=True)
    flight_id = db.Column(db.Integer, db.ForeignKey("flight.id"), nullable=False, index=True)
    row_num = db.Column(db.Integer, nullable=False)
    seat_letter = db.Column(db.String(1), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="available")
    seat_type = db.Column(db.String(16), nullable=False, default="standard")
    position = db.Column(db.String(8), nullable=False, default="")
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint("flight_id", "row_num", "seat_letter", name="uniq_flight_row_letter"),
    )

    flight = db.relationship("Flight", back_populates="seats")

    def code(self) -> str:
        return f"{self.row_num}{self.seat_letter}"

    def __repr__(self):
        return f"<Seat {self.code()} {self.status} flight={self.flight_id}>"


# stored booking; nested seat / extras / flight snapshots live in JSON columns
class BookingRecord(db.Model):
    __tablename__ = "booking_record"

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(6), unique=True, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="confirmed")
    payment_status = db.Column(db.String(16), nullable=False, default="completed")
    flight_id = db.Column(db.Integer, db.ForeignKey("flight.id"), nullable=True, index=True)
    flight_summary = db.Column(db.String(255), nullable=False, default="")
    fare_rules = db.Column(db.JSON, nullable=False, default=dict)
    seats = db.Column(db.JSON, nullable=False, default=dict)
    extras = db.Column(db.JSON, nullable=False, default=dict)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    cancellation_fee = db.Column(db.Numeric(10, 2), nullable=True)
    refund_amount = db.Column(db.Numeric(10, 2), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    flight = db.relationship("Flight")
    passengers = db.relationship(
        "PassengerRow",
        back_populates="booking",
        order_by="PassengerRow.position",
        cascade="all, delete-orphan",
    )


class PassengerRow(db.Model):
    __tablename__ = "passenger"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("booking_record.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    passenger_key = db.Column(db.String(64), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="companion")
    category = db.Column(db.String(16), nullable=False)
    first_name = db.Column(db.String(64), nullable=False)
    last_name = db.Column(db.String(64), nullable=False, index=True)
    date_of_birth = db.Column(db.Date, nullable=False)
    gender = db.Column(db.String(16), nullable=False)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(32))
    country_code = db.Column(db.String(8))
    passport = db.Column(db.JSON)

    booking = db.relationship("BookingRecord", back_populates="passengers")

    def __repr__(self):
        return f"<PassengerRow {self.first_name} {self.last_name} booking={self.booking_id}>"
