from uuid import UUID
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from reservations.api.deps import get_current_admin
from reservations.api.responses import envelope_response
from reservations.db.session import get_db
from reservations.models.admin import Admin
from reservations.schemas.event import EventCreate, EventUpdate
from reservations.services.events import EventService

router = APIRouter(prefix="/admin/events", tags=["Admin - Events"])


# ---------------------------------------------------------------------------
# Read views (declared before /{event_id} so the literal paths win)
# ---------------------------------------------------------------------------


@router.get("/upcoming")
def upcoming_events(
    start_date: Optional[date] = Query(None, description="Earliest date (defaults to today)"),
    end_date: Optional[date] = Query(None, description="Latest date (capped at reservation close)"),
    include_fully_booked: bool = Query(False),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    result = EventService(db).upcoming(
        start_date=start_date, end_date=end_date, include_fully_booked=include_fully_booked
    )
    return envelope_response(result)


@router.get("/summary")
def events_summary(
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(EventService(db).summary())


@router.get("/")
def list_events(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    result = EventService(db).list_events(
        page=page, limit=limit, date_from=date_from, date_to=date_to, is_active=is_active
    )
    return envelope_response(result)


@router.get("/{event_id}")
def get_event(
    event_id: UUID,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(EventService(db).get_event(event_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@router.post("/")
def create_event(
    body: EventCreate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(EventService(db).create_event(body), success_status=status.HTTP_201_CREATED)


@router.put("/{event_id}")
def update_event(
    event_id: UUID,
    body: EventUpdate,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(EventService(db).update_event(event_id, body))


@router.delete("/{event_id}")
def delete_event(
    event_id: UUID,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    return envelope_response(EventService(db).delete_event(event_id))
