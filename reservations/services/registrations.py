import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from reservations.core.errors import BookingError, ErrorCode, NotificationError
from reservations.models.booking import Booking, BookingSeat, BookingStatus, SEAT_HOLDING_STATUSES
from reservations.models.event import Event
from reservations.models.user import User
from reservations.schemas.admin import BulkActionRequest, BulkActionResult, RegistrationStats
from reservations.schemas.booking import AdminBooking
from reservations.schemas.common import ApiResponse, PageMeta
from reservations.services import inventory, reports
from reservations.services.base import as_envelope
from reservations.services.booking import conflicting_labels, select_seats
from reservations.services.cancellation import cancel_booking
from reservations.services.notifications import NotificationService
from reservations.services.system_settings import get_system_settings
from reservations.utils import dates, tickets

logger = logging.getLogger(__name__)


class RegistrationService:
    """Operator-side actions on confirmed bookings."""

    def __init__(self, db: Session, notifier: NotificationService):
        self.db = db
        self.notifier = notifier

    def _load(self, ticket_id: str) -> Booking:
        booking = (
            self.db.query(Booking)
            .options(joinedload(Booking.user), joinedload(Booking.event))
            .filter(Booking.ticket_id == ticket_id)
            .first()
        )
        if booking is None:
            raise BookingError(ErrorCode.NOT_FOUND, "Booking not found")
        return booking

    # ------------------------------------------------------------------
    # Single-ticket transitions (raise; caller commits)
    # ------------------------------------------------------------------

    def _check_in(self, booking: Booking, now: datetime) -> None:
        if booking.status != BookingStatus.attending.value:
            raise BookingError(
                ErrorCode.ALREADY_PROCESSED,
                f"Booking is not attending. Status: {booking.status}",
            )
        if booking.event_date != dates.local_today():
            raise BookingError(
                ErrorCode.CHECK_IN_NOT_ALLOWED,
                f"Check-in is only possible on the event date ({booking.event_date})",
            )
        claimed = self.db.execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == BookingStatus.attending.value)
            .values(status=BookingStatus.attended.value, attended_at=now)
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed != 1:
            raise BookingError(ErrorCode.ALREADY_PROCESSED, "Booking not found or already processed")

    def _void(self, booking: Booking, now: datetime) -> None:
        if booking.status == BookingStatus.voided.value:
            raise BookingError(ErrorCode.ALREADY_PROCESSED, "Registration is already voided")

        if booking.holds_seats:
            changed = inventory.release_booking(
                self.db, booking, BookingStatus.voided.value, SEAT_HOLDING_STATUSES, now
            )
        else:
            changed = self.db.execute(
                update(Booking)
                .where(Booking.id == booking.id, Booking.status == booking.status)
                .values(status=BookingStatus.voided.value)
                .execution_options(synchronize_session=False)
            ).rowcount == 1
        if not changed:
            raise BookingError(ErrorCode.ALREADY_PROCESSED, "Booking was changed by another request")

    def _cancel(self, booking: Booking, now: datetime) -> None:
        cancel_booking(self.db, booking)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @as_envelope("Failed to fetch booking")
    def get_booking(self, ticket_id: str) -> ApiResponse[AdminBooking]:
        booking = self._load(ticket_id)
        return ApiResponse.ok("Booking found", data=AdminBooking.model_validate(booking))

    @as_envelope("Failed to fetch bookings")
    def list_bookings(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        status: Optional[str] = None,
        event_date: Optional[date] = None,
    ) -> ApiResponse[List[AdminBooking]]:
        query = (
            self.db.query(Booking)
            .join(User, User.id == Booking.user_id)
            .options(joinedload(Booking.user), joinedload(Booking.event))
        )
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    User.name.ilike(term),
                    User.email.ilike(term),
                    User.phone.ilike(term),
                    Booking.ticket_id.ilike(term),
                )
            )
        if status:
            query = query.filter(Booking.status == status)
        if event_date:
            query = query.filter(Booking.event_date == event_date)

        total = query.count()
        bookings = (
            query.order_by(Booking.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return ApiResponse.ok(
            "Bookings fetched successfully",
            data=[AdminBooking.model_validate(b) for b in bookings],
            meta=PageMeta.build(total, page, limit).model_dump(),
        )

    @as_envelope("Failed to fetch registration stats")
    def stats(self, event_date: Optional[date] = None) -> ApiResponse[RegistrationStats]:
        return ApiResponse.ok(
            "Registration stats retrieved successfully",
            data=reports.registration_stats(self.db, event_date),
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    @as_envelope("Failed to check-in registration")
    def check_in(self, ticket_id: str) -> ApiResponse[AdminBooking]:
        booking = self._load(ticket_id)
        self._check_in(booking, dates.utcnow())
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s checked in", ticket_id)
        return ApiResponse.ok("Registration checked-in successfully", data=AdminBooking.model_validate(booking))

    @as_envelope("Failed to void registration")
    def void(self, ticket_id: str) -> ApiResponse[AdminBooking]:
        booking = self._load(ticket_id)
        self._void(booking, dates.utcnow())
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s voided", ticket_id)
        return ApiResponse.ok("Registration voided successfully", data=AdminBooking.model_validate(booking))

    @as_envelope("Failed to assign seat")
    def assign_seat(self, ticket_id: str, seat_label: str) -> ApiResponse[AdminBooking]:
        """Replace the booking's seats with one seat. The event counter is left alone."""
        booking = self._load(ticket_id)
        if not booking.holds_seats:
            raise BookingError(
                ErrorCode.ALREADY_PROCESSED,
                f"Cannot assign a seat to a {booking.status} booking",
            )

        event = self.db.get(Event, booking.event_id)
        selection = select_seats([seat_label.strip().upper()], event.total_seats)
        taken = {
            row.seat_number
            for row in self.db.query(BookingSeat.seat_number).filter(
                BookingSeat.event_id == event.id,
                BookingSeat.is_active == True,  # noqa: E712
                BookingSeat.booking_id != booking.id,
            )
        }
        conflicts = conflicting_labels(selection, taken)
        if conflicts:
            raise BookingError(
                ErrorCode.SEATS_UNAVAILABLE,
                f"Seat {conflicts[0]} is already assigned to another registration",
            )

        booking.seats.clear()
        self.db.flush()
        booking.seats.append(
            BookingSeat(
                event_id=event.id,
                seat_number=selection.numbers[0],
                seat_label=selection.labels[0],
                is_active=True,
            )
        )
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise BookingError(
                ErrorCode.SEATS_UNAVAILABLE,
                f"Seat {selection.labels[0]} is already assigned to another registration",
            )
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s moved to seat %s", ticket_id, selection.labels[0])
        return ApiResponse.ok(
            f"Seat {selection.labels[0]} assigned successfully",
            data=AdminBooking.model_validate(booking),
        )

    @as_envelope("Failed to perform bulk action")
    def bulk_action(self, request: BulkActionRequest) -> ApiResponse[BulkActionResult]:
        action = {"void": self._void, "checkin": self._check_in, "cancel": self._cancel}[request.action]
        now = dates.utcnow()
        matched = modified = 0
        failures = {}
        for ticket_id in dict.fromkeys(request.ticket_ids):
            booking = self.db.query(Booking).filter(Booking.ticket_id == ticket_id).first()
            if booking is None:
                failures[ticket_id] = ErrorCode.NOT_FOUND.value
                continue
            matched += 1
            try:
                action(booking, now)
            except BookingError as exc:
                self.db.rollback()
                failures[ticket_id] = exc.code.value
                continue
            self.db.commit()
            modified += 1

        logger.info("Bulk %s: %d of %d ticket(s) changed", request.action, modified, len(request.ticket_ids))
        return ApiResponse.ok(
            f"{modified} registration(s) updated",
            data=BulkActionResult(matched_count=matched, modified_count=modified, failures=failures),
        )

    @as_envelope("Failed to resend confirmation")
    def resend_confirmation(self, ticket_id: str) -> ApiResponse[None]:
        booking = self._load(ticket_id)
        if not booking.holds_seats:
            raise BookingError(
                ErrorCode.ALREADY_PROCESSED,
                f"Cannot send a confirmation for a {booking.status} booking",
            )
        policy = get_system_settings(self.db)
        try:
            self.notifier.send_confirmation(
                booking.user.email,
                booking.user.name,
                booking.ticket_id,
                booking.event_date,
                booking.event.start_time,
                booking.seat_labels,
                booking.qr_code,
                booking.calendar_link,
                tickets.cancellation_url(booking.ticket_id, booking.reservation_token),
                policy.min_cancellation_hours,
            )
        except NotificationError as exc:
            logger.error("Confirmation email for %s not re-sent: %s", ticket_id, exc)
            raise BookingError(ErrorCode.NOTIFICATION_FAILURE, "Failed to send confirmation email")
        return ApiResponse.ok("Confirmation email sent")
