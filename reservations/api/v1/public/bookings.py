from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from reservations.api.deps import get_notifier
from reservations.api.rate_limit import otp_limiter
from reservations.api.responses import envelope_response
from reservations.db.session import get_db
from reservations.schemas.booking import (
    BookingRequest,
    CancelBookingRequest,
    OTPVerificationRequest,
    ResendOTPRequest,
)
from reservations.services.booking import BookingWorkflow
from reservations.services.cancellation import CancellationWorkflow
from reservations.services.notifications import NotificationService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/initiate")
def initiate_booking(
    body: BookingRequest,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    """
    Start a booking.

    New guests get a verification code by email and a `temp_id` to verify
    with; returning guests are booked immediately.
    """
    result = BookingWorkflow(db, notifier).initiate(body)
    return envelope_response(result)


@router.post("/verify", dependencies=[Depends(otp_limiter)])
def verify_booking(
    body: OTPVerificationRequest,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    result = BookingWorkflow(db, notifier).verify_and_complete(body)
    return envelope_response(result, success_status=status.HTTP_201_CREATED)


@router.post("/resend-otp", dependencies=[Depends(otp_limiter)])
def resend_otp(
    body: ResendOTPRequest,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    result = BookingWorkflow(db, notifier).resend_otp(body)
    return envelope_response(result)


@router.get("/seats/{event_date}")
def get_available_seats(
    event_date: date,
    include_pending: bool = Query(False, description="Also treat seats held by unverified bookings as taken"),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    result = BookingWorkflow(db, notifier).seat_availability(event_date, include_pending=include_pending)
    return envelope_response(result)


@router.post("/cancel")
def cancel_booking(
    body: CancelBookingRequest,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
):
    """Self-service cancellation with the ticket id and reservation token from the confirmation email."""
    result = CancellationWorkflow(db, notifier).cancel(body)
    return envelope_response(result)
