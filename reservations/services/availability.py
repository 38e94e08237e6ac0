from datetime import date, datetime
from typing import Optional, Set

from sqlalchemy.orm import Session

from reservations.models.booking import Booking, BookingSeat, SEAT_HOLDING_STATUSES
from reservations.models.event import Event
from reservations.models.reservation import PendingReservation
from reservations.schemas.seat import SeatAvailability, SeatInfo
from reservations.services.system_settings import get_system_settings
from reservations.utils import dates, seats


def booked_seat_numbers(db: Session, event_date: date) -> Set[int]:
    """Seats held by live (attending or attended) bookings on that day."""
    rows = (
        db.query(BookingSeat.seat_number)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .filter(
            Booking.event_date == event_date,
            Booking.status.in_(SEAT_HOLDING_STATUSES),
            BookingSeat.is_active == True,  # noqa: E712
        )
        .all()
    )
    return {row.seat_number for row in rows}


def pending_seat_numbers(db: Session, event_date: date, now: Optional[datetime] = None) -> Set[int]:
    """Seats inside holds that have not expired yet; expired rows are ignored even if not swept."""
    now = now or dates.utcnow()
    rows = (
        db.query(PendingReservation.seat_numbers)
        .filter(
            PendingReservation.event_date == event_date,
            PendingReservation.expires_at > now,
        )
        .all()
    )
    taken: Set[int] = set()
    for row in rows:
        taken.update(int(n) for n in (row.seat_numbers or []))
    return taken


def total_seats_for(db: Session, event_date: date) -> int:
    event = db.query(Event).filter(Event.event_date == event_date).first()
    if event:
        return event.total_seats
    return get_system_settings(db).default_total_seats


def resolve(db: Session, event_date: date, include_pending: bool = False) -> SeatAvailability:
    """
    Seat map for one day.

    Advisory: the authoritative conflict checks run when a seat is held
    and again when the booking is written.
    """
    total = total_seats_for(db, event_date)
    taken = booked_seat_numbers(db, event_date)
    if include_pending:
        taken |= pending_seat_numbers(db, event_date)

    all_seats = [
        SeatInfo(number=s.number, label=s.label, is_available=s.is_available)
        for s in seats.generate_all(total, taken)
    ]
    available = [s for s in all_seats if s.is_available]
    booked = [s for s in all_seats if not s.is_available]
    return SeatAvailability(
        event_date=event_date,
        total_seats=total,
        available_seats=len(available),
        booked_seats=len(booked),
        all_seats=all_seats,
        available_seat_list=available,
        booked_seat_list=booked,
    )
