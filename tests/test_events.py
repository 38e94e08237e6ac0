from datetime import time, timedelta

from reservations.core.errors import ErrorCode
from reservations.models.event import Event
from reservations.schemas.event import EventCreate, EventUpdate
from reservations.services.booking import BookingWorkflow
from reservations.services.events import EventService
from reservations.utils import dates
from conftest import complete_booking, next_weekday


def _create(db, event_date, total_seats=40, start="16:00"):
    result = EventService(db).create_event(
        EventCreate(event_date=event_date, start_time=start, total_seats=total_seats)
    )
    assert result.success, result.message
    return result.data


def test_create_event_parses_twelve_hour_times(db, policy):
    event = _create(db, next_weekday(), start="04:30 PM")
    assert event.start_time == time(16, 30)
    assert event.available_seats == event.total_seats == 40


def test_one_event_per_day(db, policy):
    show = next_weekday()
    _create(db, show)
    again = EventService(db).create_event(EventCreate(event_date=show, start_time="18:00", total_seats=10))
    assert again.error == ErrorCode.DUPLICATE_EVENT.value


def test_unknown_event(db, policy):
    event = _create(db, next_weekday())
    service = EventService(db)
    service.delete_event(event.id)
    assert service.get_event(event.id).error == ErrorCode.EVENT_NOT_FOUND.value


# ---------------------------------------------------------------------------
# Capacity changes
# ---------------------------------------------------------------------------


def test_growing_capacity_keeps_held_seats(db, policy, notifier):
    show = next_weekday()
    event = _create(db, show, total_seats=40)
    complete_booking(BookingWorkflow(db, notifier), notifier, event_date=show, seat_labels=["A1", "A2"])

    result = EventService(db).update_event(event.id, EventUpdate(total_seats=50))

    assert result.success, result.message
    assert result.data.total_seats == 50
    assert result.data.available_seats == 48


def test_shrinking_below_a_held_seat_is_refused(db, policy, notifier):
    show = next_weekday()
    event = _create(db, show, total_seats=40)
    complete_booking(BookingWorkflow(db, notifier), notifier, event_date=show, seat_labels=["C5"])

    refused = EventService(db).update_event(event.id, EventUpdate(total_seats=20))
    assert refused.error == ErrorCode.INVALID_REQUEST.value
    assert "seat number 25" in refused.message

    allowed = EventService(db).update_event(event.id, EventUpdate(total_seats=25))
    assert allowed.success
    assert allowed.data.available_seats == 24


def test_update_other_fields(db, policy):
    event = _create(db, next_weekday())
    result = EventService(db).update_event(event.id, EventUpdate(start_time="18:15", is_active=False))
    assert result.data.start_time == time(18, 15)
    assert result.data.is_active is False
    assert result.data.total_seats == 40


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


def test_delete_refused_with_bookings(db, policy, notifier):
    show = next_weekday()
    event = _create(db, show)
    complete_booking(BookingWorkflow(db, notifier), notifier, event_date=show)

    result = EventService(db).delete_event(event.id)
    assert result.error == ErrorCode.EVENT_HAS_BOOKINGS.value
    assert db.query(Event).count() == 1


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def test_list_events_reports_stats(db, policy, notifier):
    show = next_weekday()
    _create(db, show, total_seats=10)
    complete_booking(BookingWorkflow(db, notifier), notifier, event_date=show, seat_labels=["A1", "A2"])

    result = EventService(db).list_events()
    assert result.meta["total"] == 1
    listed = result.data[0]
    assert listed.booking_stats.total_bookings == 1
    assert listed.booking_stats.total_booked_seats == 2
    assert listed.booking_stats.confirmed_bookings == 1
    assert listed.booking_stats.occupancy_rate == 20.0
    assert listed.is_working_day
    assert listed.is_bookable
    assert listed.day_of_week == show.strftime("%A")


def test_upcoming_skips_past_full_and_out_of_window(db, policy):
    today = dates.local_today()
    _create(db, today - timedelta(days=3))
    soon = _create(db, today + timedelta(days=2))
    full = _create(db, today + timedelta(days=4), total_seats=1)
    _create(db, today + timedelta(days=90))
    db.query(Event).filter(Event.id == full.id).update({"available_seats": 0})
    db.commit()

    service = EventService(db)
    listed = service.upcoming()
    assert [e.id for e in listed.data] == [soon.id]

    with_full = service.upcoming(include_fully_booked=True)
    assert [e.id for e in with_full.data] == [soon.id, full.id]
    assert with_full.data[1].is_fully_booked
    assert not with_full.data[1].is_bookable


def test_summary_counts_active_future_events(db, policy):
    today = dates.local_today()
    _create(db, today - timedelta(days=1))
    _create(db, today + timedelta(days=1))
    hidden = _create(db, today + timedelta(days=2))
    EventService(db).update_event(hidden.id, EventUpdate(is_active=False))

    summary = EventService(db).summary().data
    assert summary.upcoming_events_count == 1
    assert [e.event_date for e in summary.next_events] == [today + timedelta(days=1)]
