"""
Registration statistics as typed read models.

Each ``*_query`` builds a grouped count and nothing else, so the
aggregation can be inspected or reused without running it.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from reservations.models.booking import Booking, BookingSeat, SEAT_HOLDING_STATUSES
from reservations.models.user import User
from reservations.schemas.admin import CountRow, RegistrationStats


def _on_date(query: Query, event_date: Optional[date]) -> Query:
    if event_date:
        query = query.filter(Booking.event_date == event_date)
    return query


def status_counts_query(db: Session, event_date: Optional[date] = None) -> Query:
    query = db.query(Booking.status.label("key"), func.count(Booking.id).label("count"))
    return _on_date(query, event_date).group_by(Booking.status)


def gender_counts_query(db: Session, event_date: Optional[date] = None) -> Query:
    query = (
        db.query(User.gender.label("key"), func.count(Booking.id).label("count"))
        .select_from(Booking)
        .join(User, User.id == Booking.user_id)
        .filter(Booking.status.in_(SEAT_HOLDING_STATUSES))
    )
    return _on_date(query, event_date).group_by(User.gender)


def age_range_counts_query(db: Session, event_date: Optional[date] = None) -> Query:
    query = (
        db.query(User.age_range.label("key"), func.count(Booking.id).label("count"))
        .select_from(Booking)
        .join(User, User.id == Booking.user_id)
        .filter(Booking.status.in_(SEAT_HOLDING_STATUSES))
    )
    return _on_date(query, event_date).group_by(User.age_range)


def held_seats_query(db: Session, event_date: Optional[date] = None) -> Query:
    query = (
        db.query(func.count(BookingSeat.id))
        .select_from(BookingSeat)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .filter(BookingSeat.is_active == True)  # noqa: E712
    )
    return _on_date(query, event_date)


def _rows(query: Query) -> List[CountRow]:
    return sorted(
        (CountRow(key=str(row.key), count=row.count) for row in query.all()),
        key=lambda row: row.key,
    )


def registration_stats(db: Session, event_date: Optional[date] = None) -> RegistrationStats:
    by_status = _rows(status_counts_query(db, event_date))
    return RegistrationStats(
        event_date=event_date,
        total_bookings=sum(row.count for row in by_status),
        held_seats=held_seats_query(db, event_date).scalar() or 0,
        by_status=by_status,
        by_gender=_rows(gender_counts_query(db, event_date)),
        by_age_range=_rows(age_range_counts_query(db, event_date)),
    )
