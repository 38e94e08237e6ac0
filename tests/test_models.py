from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import configure_mappers
from sqlalchemy.schema import CreateIndex

import pytest

from reservations.db.base import Base
from reservations.models.booking import Booking, BookingSeat
from reservations.models.event import Event
from reservations.models.user import User
from reservations.utils import dates
from conftest import next_weekday


def test_mappers_configure():
    configure_mappers()
    assert {"events", "bookings", "booking_seats", "pending_reservations", "otp_challenges"} <= set(
        Base.metadata.tables
    )


def test_seat_index_is_partial_on_postgres():
    index = next(i for i in BookingSeat.__table__.indexes if i.name == "uq_booking_seats_event_seat_active")
    ddl = str(CreateIndex(index).compile(dialect=postgresql.dialect()))
    assert "UNIQUE" in ddl
    assert "WHERE is_active" in ddl


def _booking(db, event, user, ticket_id, seat_number, active=True):
    booking = Booking(
        ticket_id=ticket_id,
        user=user,
        event_id=event.id,
        event_date=event.event_date,
        status="attending" if active else "cancelled",
        qr_code="data:image/png;base64,",
        reservation_token="t" * 32,
        token_issued_at_ms=0,
    )
    booking.seats = [
        BookingSeat(event_id=event.id, seat_number=seat_number, seat_label="A1", is_active=active)
    ]
    db.add(booking)
    return booking


def test_one_active_holder_per_seat(db):
    event = Event(event_date=next_weekday(), start_time=dates.parse_event_time("16:00"), total_seats=80, available_seats=80)
    user = User(email="a@example.com", name="A", phone="08000000000", gender="male", age_range="18-25")
    db.add_all([event, user])
    db.commit()

    _booking(db, event, user, "OLD00001", 1, active=False)
    _booking(db, event, user, "LIVE0001", 1)
    db.commit()

    _booking(db, event, user, "LIVE0002", 1)
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
    assert db.query(BookingSeat).count() == 2


def test_event_date_is_unique():
    assert any(c.unique for c in inspect(Event).columns if c.name == "event_date")
