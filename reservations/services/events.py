import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reservations.core.errors import BookingError, ErrorCode
from reservations.models.booking import Booking, BookingSeat, BookingStatus, SEAT_HOLDING_STATUSES
from reservations.models.event import Event
from reservations.models.system_settings import SystemSettings
from reservations.schemas.common import ApiResponse, PageMeta
from reservations.schemas.event import (
    Event as EventSchema,
    EventBookingStats,
    EventCreate,
    EventUpdate,
    EventWithStats,
    EventsSummary,
)
from reservations.services.base import as_envelope
from reservations.services.system_settings import default_event_time, get_system_settings
from reservations.utils import dates

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_or_create_event(db: Session, event_date: date, policy: SystemSettings) -> Event:
    """
    The Event row for ``event_date``, created with the policy defaults on
    first use. Two requests racing to create it meet on UNIQUE(event_date);
    the loser re-reads the winner's row.
    """
    event = db.query(Event).filter(Event.event_date == event_date).first()
    if event:
        return event

    event = Event(
        event_date=event_date,
        start_time=default_event_time(policy),
        total_seats=policy.default_total_seats,
        available_seats=policy.default_total_seats,
        is_active=True,
    )
    db.add(event)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return db.query(Event).filter(Event.event_date == event_date).one()
    db.refresh(event)
    logger.info("Created event for %s with %d seats", event_date, event.total_seats)
    return event


def held_seat_numbers(db: Session, event_id: UUID) -> List[int]:
    rows = (
        db.query(BookingSeat.seat_number)
        .filter(BookingSeat.event_id == event_id, BookingSeat.is_active == True)  # noqa: E712
        .all()
    )
    return [row.seat_number for row in rows]


def _stats_for(db: Session, events: Iterable[Event]) -> Dict[UUID, EventBookingStats]:
    events = list(events)
    ids = [e.id for e in events]
    status_counts: Dict[UUID, Dict[str, int]] = {i: {} for i in ids}
    seat_counts: Dict[UUID, int] = {i: 0 for i in ids}
    if ids:
        for event_id, status, count in (
            db.query(Booking.event_id, Booking.status, func.count(Booking.id))
            .filter(Booking.event_id.in_(ids))
            .group_by(Booking.event_id, Booking.status)
            .all()
        ):
            status_counts[event_id][status] = count
        for event_id, count in (
            db.query(BookingSeat.event_id, func.count(BookingSeat.id))
            .filter(BookingSeat.event_id.in_(ids), BookingSeat.is_active == True)  # noqa: E712
            .group_by(BookingSeat.event_id)
            .all()
        ):
            seat_counts[event_id] = count

    stats = {}
    for event in events:
        counts = status_counts[event.id]
        booked = seat_counts[event.id]
        stats[event.id] = EventBookingStats(
            total_bookings=sum(counts.get(s, 0) for s in SEAT_HOLDING_STATUSES),
            total_booked_seats=booked,
            attended_bookings=counts.get(BookingStatus.attended.value, 0),
            confirmed_bookings=counts.get(BookingStatus.attending.value, 0),
            available_seats=event.available_seats,
            occupancy_rate=round(booked / event.total_seats * 100, 2) if event.total_seats else 0.0,
        )
    return stats


def _with_stats(event: Event, stats: EventBookingStats, policy: SystemSettings, today: date) -> EventWithStats:
    is_working_day = event.event_date.isoweekday() in (policy.working_days or [])
    close = dates.as_utc(policy.reservation_close_date)
    is_fully_booked = event.available_seats <= 0
    return EventWithStats(
        **EventSchema.model_validate(event).model_dump(),
        booking_stats=stats,
        is_fully_booked=is_fully_booked,
        is_working_day=is_working_day,
        is_bookable=(
            bool(event.is_active)
            and is_working_day
            and not is_fully_booked
            and event.event_date >= today
            and (close is None or event.event_date <= close.date())
        ),
        day_of_week=event.event_date.strftime("%A"),
        formatted_date=dates.format_event_date(event.event_date),
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class EventService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, event_id: UUID) -> Event:
        event = self.db.get(Event, event_id)
        if not event:
            raise BookingError(ErrorCode.EVENT_NOT_FOUND, "Event not found")
        return event

    def _decorate(self, events: List[Event]) -> List[EventWithStats]:
        policy = get_system_settings(self.db)
        today = dates.local_today()
        stats = _stats_for(self.db, events)
        return [_with_stats(e, stats[e.id], policy, today) for e in events]

    @as_envelope("Failed to fetch events")
    def list_events(
        self,
        page: int = 1,
        limit: int = 20,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        is_active: Optional[bool] = None,
    ) -> ApiResponse[List[EventWithStats]]:
        query = self.db.query(Event)
        if date_from:
            query = query.filter(Event.event_date >= date_from)
        if date_to:
            query = query.filter(Event.event_date <= date_to)
        if is_active is not None:
            query = query.filter(Event.is_active == is_active)

        total = query.count()
        events = query.order_by(Event.event_date.asc()).offset((page - 1) * limit).limit(limit).all()
        return ApiResponse.ok(
            "Events retrieved successfully",
            data=self._decorate(events),
            meta=PageMeta.build(total, page, limit).model_dump(),
        )

    @as_envelope("Failed to fetch event")
    def get_event(self, event_id: UUID) -> ApiResponse[EventWithStats]:
        event = self._load(event_id)
        return ApiResponse.ok("Event retrieved successfully", data=self._decorate([event])[0])

    @as_envelope("Failed to create event")
    def create_event(self, payload: EventCreate) -> ApiResponse[EventSchema]:
        if self.db.query(Event).filter(Event.event_date == payload.event_date).first():
            raise BookingError(ErrorCode.DUPLICATE_EVENT, f"An event already exists on {payload.event_date}")

        event = Event(
            event_date=payload.event_date,
            start_time=payload.start_time,
            total_seats=payload.total_seats,
            available_seats=payload.total_seats,
            is_active=True,
        )
        self.db.add(event)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise BookingError(ErrorCode.DUPLICATE_EVENT, f"An event already exists on {payload.event_date}")
        self.db.refresh(event)
        logger.info("Event created for %s", event.event_date)
        return ApiResponse.ok("Event created successfully", data=EventSchema.model_validate(event))

    @as_envelope("Failed to update event")
    def update_event(self, event_id: UUID, payload: EventUpdate) -> ApiResponse[EventSchema]:
        event = self._load(event_id)
        changes = payload.model_dump(exclude_unset=True)

        new_total = changes.pop("total_seats", None)
        if new_total is not None and new_total != event.total_seats:
            held = held_seat_numbers(self.db, event.id)
            if new_total < len(held) or (held and new_total < max(held)):
                raise BookingError(
                    ErrorCode.INVALID_REQUEST,
                    f"Cannot reduce capacity to {new_total}: {len(held)} seat(s) are booked"
                    + (f", up to seat number {max(held)}" if held else ""),
                )
            delta = new_total - event.total_seats
            moved = self.db.execute(
                update(Event)
                .where(Event.id == event.id, Event.available_seats + delta >= 0)
                .values(total_seats=new_total, available_seats=Event.available_seats + delta)
                .execution_options(synchronize_session=False)
            ).rowcount
            if moved != 1:
                raise BookingError(ErrorCode.INVALID_REQUEST, "Capacity change would leave a negative seat count")

        for field, value in changes.items():
            if value is not None:
                setattr(event, field, value)

        self.db.commit()
        self.db.refresh(event)
        logger.info("Event %s updated: %s", event.event_date, sorted(payload.model_dump(exclude_unset=True)))
        return ApiResponse.ok("Event updated successfully", data=EventSchema.model_validate(event))

    @as_envelope("Failed to delete event")
    def delete_event(self, event_id: UUID) -> ApiResponse[None]:
        event = self._load(event_id)
        # Cancelled and voided bookings are kept as history, so they block deletion too
        if self.db.query(Booking.id).filter(Booking.event_id == event.id).first():
            raise BookingError(
                ErrorCode.EVENT_HAS_BOOKINGS,
                "Cannot delete an event that has bookings. Deactivate it instead.",
            )
        self.db.delete(event)
        self.db.commit()
        logger.info("Event %s deleted", event.event_date)
        return ApiResponse.ok("Event deleted successfully")

    @as_envelope("Failed to fetch upcoming events")
    def upcoming(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        include_fully_booked: bool = False,
    ) -> ApiResponse[List[EventWithStats]]:
        policy = get_system_settings(self.db)
        today = dates.local_today()
        close = dates.as_utc(policy.reservation_close_date).date()

        lower = max(start_date, today) if start_date else today
        upper = min(end_date, close) if end_date else close

        query = self.db.query(Event).filter(
            Event.is_active == True,  # noqa: E712
            Event.event_date >= lower,
            Event.event_date <= upper,
        )
        if not include_fully_booked:
            query = query.filter(Event.available_seats > 0)
        events = query.order_by(Event.event_date.asc()).all()
        return ApiResponse.ok(
            "Upcoming events retrieved successfully",
            data=self._decorate(events),
            meta={"count": len(events), "from": lower.isoformat(), "to": upper.isoformat()},
        )

    @as_envelope("Failed to fetch events summary")
    def summary(self) -> ApiResponse[EventsSummary]:
        today = dates.local_today()
        query = self.db.query(Event).filter(Event.is_active == True, Event.event_date >= today)  # noqa: E712
        count = query.count()
        next_events = query.order_by(Event.event_date.asc()).limit(5).all()
        return ApiResponse.ok(
            "Events summary retrieved successfully",
            data=EventsSummary(upcoming_events_count=count, next_events=self._decorate(next_events)),
        )
