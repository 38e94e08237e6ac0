from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from reservations.api.deps import get_current_admin, get_notifier
from reservations.api.responses import envelope_response
from reservations.db.session import get_db
from reservations.models.admin import Admin
from reservations.schemas.admin import AssignSeatRequest, BulkActionRequest
from reservations.services.notifications import NotificationService
from reservations.services.registrations import RegistrationService

router = APIRouter(prefix="/admin/registrations", tags=["Admin - Registrations"])


@router.get("/stats")
def registration_stats(
    event_date: Optional[date] = Query(None, description="Restrict counts to one event date"),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(RegistrationService(db, notifier).stats(event_date))


@router.post("/bulk-action")
def bulk_action(
    body: BulkActionRequest,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    """Apply void, checkin or cancel to each ticket; per-ticket failures are reported, not raised."""
    return envelope_response(RegistrationService(db, notifier).bulk_action(body))


@router.patch("/{ticket_id}/checkin")
def check_in(
    ticket_id: str,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(RegistrationService(db, notifier).check_in(ticket_id))


@router.patch("/{ticket_id}/void")
def void_registration(
    ticket_id: str,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(RegistrationService(db, notifier).void(ticket_id))


@router.patch("/{ticket_id}/assign-seat")
def assign_seat(
    ticket_id: str,
    body: AssignSeatRequest,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(RegistrationService(db, notifier).assign_seat(ticket_id, body.seat_label))
