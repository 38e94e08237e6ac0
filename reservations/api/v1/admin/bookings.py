from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from reservations.api.deps import get_current_admin, get_notifier
from reservations.api.responses import envelope_response
from reservations.db.session import get_db
from reservations.models.admin import Admin
from reservations.models.booking import BookingStatus
from reservations.services.cancellation import CancellationWorkflow
from reservations.services.notifications import NotificationService
from reservations.services.registrations import RegistrationService

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])

STATUS_PATTERN = "^(" + "|".join(s.value for s in BookingStatus) + ")$"


@router.get("/")
def list_all_bookings(
    # --- Filters ---
    search: Optional[str] = Query(None, description="Match name, email, phone or ticket id"),
    status: Optional[str] = Query(None, pattern=STATUS_PATTERN, description="Filter by booking status"),
    event_date: Optional[date] = Query(None, description="Filter by event date (YYYY-MM-DD)"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    result = RegistrationService(db, notifier).list_bookings(
        page=page, limit=limit, search=search, status=status, event_date=event_date
    )
    return envelope_response(result)


@router.get("/{ticket_id}")
def get_booking(
    ticket_id: str,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(RegistrationService(db, notifier).get_booking(ticket_id))


@router.get("/{ticket_id}/verify")
def verify_ticket(
    ticket_id: str,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    """QR scan target: checks the guest in."""
    return envelope_response(RegistrationService(db, notifier).check_in(ticket_id))


@router.patch("/{ticket_id}/cancel")
def admin_cancel_booking(
    ticket_id: str,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(CancellationWorkflow(db, notifier).admin_cancel(ticket_id))


@router.post("/{ticket_id}/resend-confirmation")
def resend_confirmation(
    ticket_id: str,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(RegistrationService(db, notifier).resend_confirmation(ticket_id))
