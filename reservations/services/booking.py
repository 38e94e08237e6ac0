"""
Two-phase seat booking.

``initiate`` validates a request and either completes it straight away
(returning guests) or parks the seats in a ``PendingReservation`` and
emails a one-time code. ``verify_and_complete`` redeems that code.
Both paths end in ``_complete``, which re-checks the seats against
confirmed bookings and writes the booking. The partial unique index on
``booking_seats`` is what finally arbitrates two requests racing for the
same seat; the checks here exist to fail fast with a useful message.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reservations.core.config import settings
from reservations.core.errors import BookingError, ErrorCode, NotificationError
from reservations.core.security import (
    generate_reservation_token,
    generate_ticket_id,
    reservation_token_matches,
    timestamp_ms,
)
from reservations.models.booking import Booking, BookingSeat, BookingStatus, SEAT_HOLDING_STATUSES
from reservations.models.event import Event
from reservations.models.system_settings import SystemSettings
from reservations.models.user import User
from reservations.schemas.booking import (
    Booking as BookingSchema,
    BookingRequest,
    OTPVerificationRequest,
    PendingBookingResponse,
    ResendOTPRequest,
    ResendOTPResponse,
)
from reservations.schemas.common import ApiResponse
from reservations.schemas.seat import SeatAvailability
from reservations.services import availability, inventory, otp, pending
from reservations.services.base import as_envelope
from reservations.services.events import get_or_create_event
from reservations.services.notifications import NotificationService
from reservations.services.system_settings import get_system_settings
from reservations.utils import dates, seats, tickets

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {1: "Monday", 2: "Tuesday", 3: "Wednesday", 4: "Thursday", 5: "Friday", 6: "Saturday", 7: "Sunday"}


@dataclass
class BookingDraft:
    """Everything needed to write a booking, whichever path it came through."""

    email: str
    event_date: date
    seat_labels: List[str]
    name: str
    phone: str
    gender: str
    age_range: str
    reservation_token: str
    token_issued_at_ms: int

    def profile(self) -> dict:
        return {"name": self.name, "phone": self.phone, "gender": self.gender, "age_range": self.age_range}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def select_seats(labels: Iterable[str], total_seats: int) -> seats.SeatSelection:
    try:
        return seats.validate_selection(list(labels), total_seats)
    except (seats.InvalidSeatLabel, seats.SeatOutOfRange) as exc:
        raise BookingError(ErrorCode.INVALID_SEAT_SELECTION, str(exc))


def conflicting_labels(selection: seats.SeatSelection, taken: Iterable[int]) -> List[str]:
    taken = set(taken)
    return [label for number, label in zip(selection.numbers, selection.labels) if number in taken]


def _working_days_text(working_days: Iterable[int]) -> str:
    return ", ".join(WEEKDAY_NAMES[d] for d in sorted(working_days) if d in WEEKDAY_NAMES)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class BookingWorkflow:
    def __init__(self, db: Session, notifier: NotificationService):
        self.db = db
        self.notifier = notifier

    # --- Validation gates ---------------------------------------------------

    def _check_window(self, policy: SystemSettings, now: datetime) -> None:
        opens = dates.as_utc(policy.reservation_open_date)
        closes = dates.as_utc(policy.reservation_close_date)
        if (opens and now < opens) or (closes and now > closes):
            raise BookingError(ErrorCode.RESERVATIONS_CLOSED, "Reservations are currently closed")

    def _check_event_date(self, policy: SystemSettings, event_date: date) -> None:
        if event_date < dates.local_today():
            raise BookingError(ErrorCode.INVALID_EVENT_DATE, "Cannot book for past dates")
        working_days = policy.working_days or []
        if event_date.isoweekday() not in working_days:
            raise BookingError(
                ErrorCode.INVALID_EVENT_DATE,
                f"Bookings are only allowed on {_working_days_text(working_days)}",
            )

    def _has_live_booking(self, user: User, event_date: date) -> bool:
        return (
            self.db.query(Booking.id)
            .filter(
                Booking.user_id == user.id,
                Booking.event_date == event_date,
                Booking.status.in_(SEAT_HOLDING_STATUSES),
            )
            .first()
            is not None
        )

    # --- Completion -----------------------------------------------------------

    def _new_ticket_id(self) -> str:
        while True:
            ticket_id = generate_ticket_id()
            if not self.db.query(Booking.id).filter(Booking.ticket_id == ticket_id).first():
                return ticket_id

    def _upsert_user(self, draft: BookingDraft) -> User:
        user = self.db.query(User).filter(User.email == draft.email).first()
        if user is None:
            user = User(email=draft.email, **draft.profile())
            self.db.add(user)
        else:
            for field, value in draft.profile().items():
                setattr(user, field, value)
        return user

    def _complete(self, draft: BookingDraft, release: Optional[Tuple[str, str]] = None) -> Booking:
        """
        Write the confirmed booking and take its seats off the counter.

        ``release`` names the (email, temp_id) hold to drop in the same
        transaction when the draft came through the OTP path.
        """
        event = self.db.query(Event).filter(Event.event_date == draft.event_date).first()
        if event is None:
            raise BookingError(ErrorCode.EVENT_NOT_FOUND, "Event not found")

        selection = select_seats(draft.seat_labels, event.total_seats)
        taken = availability.booked_seat_numbers(self.db, draft.event_date)
        conflicts = conflicting_labels(selection, taken)
        if conflicts:
            raise BookingError(
                ErrorCode.SEATS_NO_LONGER_AVAILABLE,
                f"Seats {', '.join(conflicts)} were booked by someone else. Please select different seats.",
            )

        user = self._upsert_user(draft)
        ticket_id = self._new_ticket_id()
        booking = Booking(
            ticket_id=ticket_id,
            user=user,
            event_id=event.id,
            event_date=event.event_date,
            status=BookingStatus.attending.value,
            qr_code=tickets.qr_data_url(ticket_id),
            calendar_link=tickets.calendar_link(ticket_id, event.event_date, event.start_time, selection.labels),
            reservation_token=draft.reservation_token,
            token_issued_at_ms=draft.token_issued_at_ms,
        )
        booking.seats = [
            BookingSeat(event_id=event.id, seat_number=number, seat_label=label, is_active=True)
            for number, label in zip(selection.numbers, selection.labels)
        ]
        self.db.add(booking)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost the race on the seat index; report which seats went
            self.db.rollback()
            conflicts = conflicting_labels(selection, availability.booked_seat_numbers(self.db, draft.event_date))
            if conflicts:
                raise BookingError(
                    ErrorCode.SEATS_NO_LONGER_AVAILABLE,
                    f"Seats {', '.join(conflicts)} were booked by someone else. Please select different seats.",
                )
            raise

        if not inventory.take_seats(self.db, event.id, len(selection.numbers)):
            raise BookingError(ErrorCode.INSUFFICIENT_SEATS, "Not enough seats available")

        if release:
            otp.discard(self.db, *release)

        self.db.commit()
        self.db.refresh(booking)
        logger.info(
            "Booking %s confirmed for %s on %s, seats %s",
            booking.ticket_id, draft.email, draft.event_date, ",".join(selection.labels),
        )
        self._send_ticket(booking, event, draft)
        return booking

    def _send_ticket(self, booking: Booking, event: Event, draft: BookingDraft) -> None:
        policy = get_system_settings(self.db)
        try:
            self.notifier.send_ticket_sms(
                draft.phone, booking.ticket_id, event.event_date, event.start_time, booking.seat_labels
            )
        except NotificationError as exc:
            logger.error("Ticket SMS for %s not sent: %s", booking.ticket_id, exc)
        try:
            self.notifier.send_confirmation(
                draft.email,
                draft.name,
                booking.ticket_id,
                event.event_date,
                event.start_time,
                booking.seat_labels,
                booking.qr_code,
                booking.calendar_link,
                tickets.cancellation_url(booking.ticket_id, booking.reservation_token),
                policy.min_cancellation_hours,
            )
        except NotificationError as exc:
            logger.error("Confirmation email for %s not sent: %s", booking.ticket_id, exc)

    # --- Entry points ---------------------------------------------------------

    @as_envelope("Failed to initiate booking")
    def initiate(self, request: BookingRequest) -> ApiResponse:
        now = dates.utcnow()
        policy = get_system_settings(self.db)

        self._check_window(policy, now)
        self._check_event_date(policy, request.event_date)

        user = self.db.query(User).filter(User.email == request.email).first()
        if user and self._has_live_booking(user, request.event_date):
            raise BookingError(ErrorCode.DUPLICATE_BOOKING, "You already have a booking for this date")
        if pending.find_live_by_email(self.db, request.email, now):
            raise BookingError(
                ErrorCode.PENDING_BOOKING_EXISTS,
                "You already have a pending booking. Verify it or wait for it to expire.",
            )

        if len(request.seat_labels) > policy.max_seats_per_user:
            raise BookingError(
                ErrorCode.TOO_MANY_SEATS,
                f"Maximum {policy.max_seats_per_user} seats allowed per booking",
            )

        event = get_or_create_event(self.db, request.event_date, policy)
        if not event.is_active:
            raise BookingError(ErrorCode.INVALID_EVENT_DATE, "This date is not open for bookings")

        selection = select_seats(request.seat_labels, event.total_seats)
        if event.available_seats < len(selection.numbers):
            raise BookingError(ErrorCode.INSUFFICIENT_SEATS, "Not enough seats available")

        taken = availability.booked_seat_numbers(self.db, request.event_date)
        taken |= availability.pending_seat_numbers(self.db, request.event_date, now)
        conflicts = conflicting_labels(selection, taken)
        if conflicts:
            raise BookingError(
                ErrorCode.SEATS_UNAVAILABLE,
                f"Seats {', '.join(conflicts)} are already booked or pending",
            )

        issued_at_ms = timestamp_ms(now)
        draft = BookingDraft(
            email=request.email,
            event_date=request.event_date,
            seat_labels=selection.labels,
            name=request.name,
            phone=request.phone,
            gender=request.gender,
            age_range=request.age_range,
            reservation_token=generate_reservation_token(request.email, request.event_date, issued_at_ms),
            token_issued_at_ms=issued_at_ms,
        )

        if user:
            booking = self._complete(draft)
            return ApiResponse.ok(
                "Welcome back! Your booking is confirmed. Check your email for your ticket.",
                data=BookingSchema.model_validate(booking),
            )

        temp_id = str(uuid.uuid4())
        try:
            # Hold first: a live hold for this email makes the insert fail
            # before any existing challenge is touched
            pending.hold(
                self.db,
                email=draft.email,
                temp_id=temp_id,
                event_date=draft.event_date,
                selection=selection,
                booking_data=draft.profile(),
                token_issued_at_ms=issued_at_ms,
                now=now,
                expires_at=otp.expiry_from(now),
            )
            code, expires_at = otp.issue(self.db, draft.email, temp_id, now)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise BookingError(
                ErrorCode.PENDING_BOOKING_EXISTS,
                "You already have a pending booking. Verify it or wait for it to expire.",
            )

        # Records stay in place on a send failure so resend-otp can recover
        try:
            self.notifier.send_otp(draft.email, draft.name, code)
        except NotificationError as exc:
            logger.error("Verification email to %s not sent: %s", draft.email, exc)
            raise BookingError(
                ErrorCode.NOTIFICATION_FAILURE,
                "Failed to send verification email. Please try again.",
            )

        logger.info("Seats %s held for %s on %s until %s", selection.labels, draft.email, draft.event_date, expires_at)
        return ApiResponse.ok(
            "Verification code sent to your email. Please check and verify to complete booking.",
            data=PendingBookingResponse(
                temp_id=temp_id,
                expires_at=expires_at,
                reservation_token=draft.reservation_token,
            ),
        )

    @as_envelope("Failed to verify and complete booking")
    def verify_and_complete(self, request: OTPVerificationRequest) -> ApiResponse:
        now = dates.utcnow()
        otp.verify(self.db, request.email, request.temp_id, request.otp, now)

        # The code is spent from here on: whatever happens, the hold goes
        try:
            held = pending.find_live(self.db, request.email, request.temp_id, now)
            if held is None:
                raise BookingError(ErrorCode.PENDING_EXPIRED, "Booking session expired. Please start again.")

            if not reservation_token_matches(
                request.reservation_token, held.email, held.event_date, held.token_issued_at_ms
            ):
                raise BookingError(ErrorCode.INVALID_TOKEN, "Reservation token does not match this booking")

            data = held.booking_data or {}
            draft = BookingDraft(
                email=held.email,
                event_date=held.event_date,
                seat_labels=list(held.seat_labels),
                name=data.get("name", ""),
                phone=data.get("phone", ""),
                gender=data.get("gender", ""),
                age_range=data.get("age_range", ""),
                reservation_token=generate_reservation_token(held.email, held.event_date, held.token_issued_at_ms),
                token_issued_at_ms=held.token_issued_at_ms,
            )
            booking = self._complete(draft, release=(request.email, request.temp_id))
        except Exception:
            self.db.rollback()
            otp.discard(self.db, request.email, request.temp_id)
            self.db.commit()
            raise

        return ApiResponse.ok(
            "Booking completed successfully! Check your email for confirmation.",
            data=BookingSchema.model_validate(booking),
        )

    @as_envelope("Failed to resend verification code")
    def resend_otp(self, request: ResendOTPRequest) -> ApiResponse[ResendOTPResponse]:
        now = dates.utcnow()
        held = pending.find_live_by_email(self.db, request.email, now)
        if held is None:
            raise BookingError(
                ErrorCode.PENDING_EXPIRED,
                "No pending booking found for this email or session expired. Kindly book again.",
            )

        if not pending.count_resend(self.db, held):
            raise BookingError(
                ErrorCode.TOO_MANY_RESENDS,
                f"Verification code already resent {settings.OTP_MAX_RESENDS} times. Please book again later.",
            )
        code, expires_at = otp.issue(self.db, held.email, held.temp_id, now)
        held.expires_at = expires_at
        self.db.commit()

        name = (held.booking_data or {}).get("name", "")
        try:
            self.notifier.send_otp(request.email, name, code)
        except NotificationError as exc:
            logger.error("Verification email to %s not re-sent: %s", request.email, exc)
            raise BookingError(
                ErrorCode.NOTIFICATION_FAILURE,
                "Failed to send verification email. Please try again.",
            )

        return ApiResponse.ok(
            "New verification code sent to your email",
            data=ResendOTPResponse(expires_at=expires_at),
        )

    @as_envelope("Failed to fetch available seats")
    def seat_availability(self, event_date: date, include_pending: bool = False) -> ApiResponse[SeatAvailability]:
        return ApiResponse.ok(
            "Available seats retrieved successfully",
            data=availability.resolve(self.db, event_date, include_pending=include_pending),
        )
