import logging

from sqlalchemy.orm import Session, joinedload

from reservations.core.errors import BookingError, ErrorCode, NotificationError
from reservations.core.security import reservation_token_matches
from reservations.models.booking import Booking, BookingStatus
from reservations.schemas.booking import AdminBooking, Booking as BookingSchema, CancelBookingRequest
from reservations.schemas.common import ApiResponse
from reservations.services import inventory
from reservations.services.base import as_envelope
from reservations.services.notifications import NotificationService
from reservations.services.system_settings import get_system_settings
from reservations.utils import dates

logger = logging.getLogger(__name__)

NOT_CANCELLABLE = "Booking not found or already processed"


def _load_attending(db: Session, ticket_id: str) -> Booking:
    booking = (
        db.query(Booking)
        .options(joinedload(Booking.user), joinedload(Booking.event))
        .filter(Booking.ticket_id == ticket_id, Booking.status == BookingStatus.attending.value)
        .first()
    )
    if booking is None:
        raise BookingError(ErrorCode.NOT_FOUND, NOT_CANCELLABLE)
    return booking


def cancel_booking(db: Session, booking: Booking) -> None:
    """Attending -> Cancelled, returning the seats. Caller commits."""
    if not inventory.release_booking(
        db,
        booking,
        BookingStatus.cancelled.value,
        (BookingStatus.attending.value,),
        dates.utcnow(),
    ):
        raise BookingError(ErrorCode.NOT_FOUND, NOT_CANCELLABLE)


class CancellationWorkflow:
    def __init__(self, db: Session, notifier: NotificationService):
        self.db = db
        self.notifier = notifier

    @as_envelope("Failed to cancel booking")
    def cancel(self, request: CancelBookingRequest) -> ApiResponse[BookingSchema]:
        """Self-service cancellation from the link in the confirmation email."""
        booking = _load_attending(self.db, request.ticket_id)

        if not reservation_token_matches(
            request.reservation_token, booking.user.email, booking.event_date, booking.token_issued_at_ms
        ):
            logger.warning("Cancellation of %s refused: token mismatch", booking.ticket_id)
            raise BookingError(
                ErrorCode.INVALID_TOKEN,
                "Invalid cancellation request. Please use the link from your booking confirmation email.",
            )

        policy = get_system_settings(self.db)
        starts_at = dates.event_start(booking.event_date, booking.event.start_time)
        hours_left = (starts_at - dates.utcnow()).total_seconds() / 3600
        if hours_left < policy.min_cancellation_hours:
            raise BookingError(
                ErrorCode.TOO_LATE_TO_CANCEL,
                f"Cancellation not allowed within {policy.min_cancellation_hours} hours of the event",
            )

        cancel_booking(self.db, booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s cancelled by %s", booking.ticket_id, booking.user.email)

        try:
            self.notifier.send_cancellation(
                booking.user.email, booking.user.name, booking.ticket_id, booking.event_date, booking.seat_labels
            )
        except NotificationError as exc:
            logger.error("Cancellation email for %s not sent: %s", booking.ticket_id, exc)

        return ApiResponse.ok(
            "Booking cancelled successfully. You will receive a confirmation email shortly.",
            data=BookingSchema.model_validate(booking),
        )

    @as_envelope("Failed to cancel booking")
    def admin_cancel(self, ticket_id: str) -> ApiResponse[AdminBooking]:
        """Operator override: no token and no notice window."""
        booking = _load_attending(self.db, ticket_id)
        cancel_booking(self.db, booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info("Booking %s cancelled by an administrator", booking.ticket_id)
        return ApiResponse.ok("Booking cancelled successfully", data=AdminBooking.model_validate(booking))
