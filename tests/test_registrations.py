from reservations.core.errors import ErrorCode
from reservations.models.event import Event
from reservations.schemas.admin import BulkActionRequest
from reservations.schemas.booking import CancelBookingRequest
from reservations.services import availability
from reservations.services.booking import BookingWorkflow
from reservations.services.cancellation import CancellationWorkflow
from reservations.services.registrations import RegistrationService
from reservations.utils import dates
from conftest import complete_booking, frozen_at, next_weekday, on_event_day


def _ticket(db, notifier, **overrides):
    return complete_booking(BookingWorkflow(db, notifier), notifier, **overrides).data


def _counter(db, show):
    return db.query(Event).filter(Event.event_date == show).one().available_seats


# ---------------------------------------------------------------------------
# Check-in
# ---------------------------------------------------------------------------


def test_check_in_on_the_day(db, policy, notifier, monkeypatch):
    show = next_weekday()
    ticket = _ticket(db, notifier, event_date=show)
    monkeypatch.setattr(dates, "utcnow", frozen_at(on_event_day(show, 15)))

    service = RegistrationService(db, notifier)
    result = service.check_in(ticket.ticket_id)

    assert result.success, result.message
    assert result.data.status == "attended"
    assert result.data.attended_at is not None
    assert service.check_in(ticket.ticket_id).error == ErrorCode.ALREADY_PROCESSED.value


def test_check_in_on_another_day(db, policy, notifier):
    ticket = _ticket(db, notifier, event_date=next_weekday())
    result = RegistrationService(db, notifier).check_in(ticket.ticket_id)
    assert result.error == ErrorCode.CHECK_IN_NOT_ALLOWED.value


def test_check_in_unknown_ticket(db, policy, notifier):
    assert RegistrationService(db, notifier).check_in("NOPE1234").error == ErrorCode.NOT_FOUND.value


# ---------------------------------------------------------------------------
# Void
# ---------------------------------------------------------------------------


def test_void_returns_held_seats(db, policy, notifier):
    show = next_weekday()
    ticket = _ticket(db, notifier, event_date=show, seat_labels=["F1", "F2"])
    held = _counter(db, show)

    service = RegistrationService(db, notifier)
    result = service.void(ticket.ticket_id)

    assert result.success
    assert result.data.status == "voided"
    assert _counter(db, show) == held + 2
    assert availability.resolve(db, show).booked_seats == 0
    assert service.void(ticket.ticket_id).error == ErrorCode.ALREADY_PROCESSED.value


def test_void_after_cancel_leaves_the_counter(db, policy, notifier):
    show = next_weekday()
    ticket = _ticket(db, notifier, event_date=show)
    CancellationWorkflow(db, notifier).cancel(
        CancelBookingRequest(ticket_id=ticket.ticket_id, reservation_token=ticket.reservation_token)
    )
    after_cancel = _counter(db, show)

    result = RegistrationService(db, notifier).void(ticket.ticket_id)
    assert result.data.status == "voided"
    assert _counter(db, show) == after_cancel


# ---------------------------------------------------------------------------
# Seat assignment
# ---------------------------------------------------------------------------


def test_assign_seat_moves_the_guest(db, policy, notifier):
    show = next_weekday()
    ticket = _ticket(db, notifier, event_date=show, seat_labels=["G1", "G2"])
    before = _counter(db, show)

    result = RegistrationService(db, notifier).assign_seat(ticket.ticket_id, "h5")

    assert result.success, result.message
    assert result.data.seat_labels == ["H5"]
    assert _counter(db, show) == before
    taken = [s.label for s in availability.resolve(db, show).booked_seat_list]
    assert taken == ["H5"]


def test_assign_seat_refuses_someone_elses_seat(db, policy, notifier):
    show = next_weekday()
    ada = _ticket(db, notifier, event_date=show, seat_labels=["A1"])
    _ticket(db, notifier, event_date=show, seat_labels=["A2"], email="bola@example.com")

    result = RegistrationService(db, notifier).assign_seat(ada.ticket_id, "A2")
    assert result.error == ErrorCode.SEATS_UNAVAILABLE.value
    assert RegistrationService(db, notifier).get_booking(ada.ticket_id).data.seat_labels == ["A1"]


def test_assign_seat_outside_capacity(db, policy, notifier):
    ticket = _ticket(db, notifier)
    result = RegistrationService(db, notifier).assign_seat(ticket.ticket_id, "Z1")
    assert result.error == ErrorCode.INVALID_SEAT_SELECTION.value


# ---------------------------------------------------------------------------
# Bulk, listing, stats, resend
# ---------------------------------------------------------------------------


def test_bulk_void_reports_each_ticket(db, policy, notifier):
    show = next_weekday()
    first = _ticket(db, notifier, event_date=show, seat_labels=["A1"])
    second = _ticket(db, notifier, event_date=show, seat_labels=["A2"], email="bola@example.com")
    service = RegistrationService(db, notifier)
    service.void(second.ticket_id)

    result = service.bulk_action(
        BulkActionRequest(action="void", ticket_ids=[first.ticket_id, second.ticket_id, "MISSING1"])
    )

    assert result.success
    assert result.data.matched_count == 2
    assert result.data.modified_count == 1
    assert result.data.failures == {
        second.ticket_id: ErrorCode.ALREADY_PROCESSED.value,
        "MISSING1": ErrorCode.NOT_FOUND.value,
    }


def test_list_bookings_filters(db, policy, notifier):
    show = next_weekday()
    _ticket(db, notifier, event_date=show, seat_labels=["A1"])
    bola = _ticket(db, notifier, event_date=show, seat_labels=["A2"], email="bola@example.com", name="Bola Ade")
    service = RegistrationService(db, notifier)

    everyone = service.list_bookings(page=1, limit=10)
    assert everyone.meta["total"] == 2

    found = service.list_bookings(search="bola")
    assert [b.ticket_id for b in found.data] == [bola.ticket_id]

    service.void(bola.ticket_id)
    voided = service.list_bookings(status="voided", event_date=show)
    assert [b.ticket_id for b in voided.data] == [bola.ticket_id]


def test_registration_stats(db, policy, notifier):
    show = next_weekday()
    _ticket(db, notifier, event_date=show, seat_labels=["A1", "A2"])
    bola = _ticket(db, notifier, event_date=show, seat_labels=["A3"], email="bola@example.com", gender="male")
    RegistrationService(db, notifier).void(bola.ticket_id)

    stats = RegistrationService(db, notifier).stats(show).data

    assert stats.total_bookings == 2
    assert stats.held_seats == 2
    assert {row.key: row.count for row in stats.by_status} == {"attending": 1, "voided": 1}
    assert {row.key: row.count for row in stats.by_gender} == {"female": 1}
    assert {row.key: row.count for row in stats.by_age_range} == {"26-35": 1}


def test_resend_confirmation(db, policy, notifier):
    ticket = _ticket(db, notifier)
    sent = len(notifier.emails)

    result = RegistrationService(db, notifier).resend_confirmation(ticket.ticket_id)
    assert result.success
    assert len(notifier.emails) == sent + 1
    assert ticket.ticket_id in notifier.emails[-1]["html"]

    notifier.fail = True
    failed = RegistrationService(db, notifier).resend_confirmation(ticket.ticket_id)
    assert failed.error == ErrorCode.NOTIFICATION_FAILURE.value
