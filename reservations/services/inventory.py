"""
Seat counter and seat-hold transitions.

``events.available_seats`` is only ever moved here, and only through
single-statement conditional UPDATEs, so concurrent requests never
lose an increment or push the counter below zero.
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from reservations.models.booking import Booking, BookingSeat
from reservations.models.event import Event


def take_seats(db: Session, event_id: UUID, count: int) -> bool:
    """Decrement the counter by ``count``; False when not enough seats are left."""
    result = db.execute(
        update(Event)
        .where(Event.id == event_id, Event.available_seats >= count)
        .values(available_seats=Event.available_seats - count)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def return_seats(db: Session, event_id: UUID, count: int) -> None:
    db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(available_seats=Event.available_seats + count)
        .execution_options(synchronize_session=False)
    )


def release_booking(
    db: Session,
    booking: Booking,
    to_status: str,
    expected_statuses: Iterable[str],
    now: datetime,
) -> bool:
    """
    Move a seat-holding booking to a terminal state and hand its seats back.

    The status change is conditional on the booking still being in one of
    ``expected_statuses``; if another request got there first nothing is
    touched and False is returned.
    """
    values = {"status": to_status}
    if to_status == "cancelled":
        values["cancelled_at"] = now

    result = db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status.in_(list(expected_statuses)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    released = db.execute(
        update(BookingSeat)
        .where(BookingSeat.booking_id == booking.id, BookingSeat.is_active == True)  # noqa: E712
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    ).rowcount
    if released:
        return_seats(db, booking.event_id, released)
    return True
