"""Time-bounded seat holds for guests who still have to confirm their email."""

from datetime import date, datetime
from typing import Dict, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from reservations.core.config import settings
from reservations.models.reservation import PendingReservation
from reservations.utils.seats import SeatSelection


def find_live_by_email(db: Session, email: str, now: datetime) -> Optional[PendingReservation]:
    return (
        db.query(PendingReservation)
        .filter(PendingReservation.email == email, PendingReservation.expires_at > now)
        .first()
    )


def find_live(db: Session, email: str, temp_id: str, now: datetime) -> Optional[PendingReservation]:
    return (
        db.query(PendingReservation)
        .filter(
            PendingReservation.email == email,
            PendingReservation.temp_id == temp_id,
            PendingReservation.expires_at > now,
        )
        .first()
    )


def hold(
    db: Session,
    *,
    email: str,
    temp_id: str,
    event_date: date,
    selection: SeatSelection,
    booking_data: Dict[str, str],
    token_issued_at_ms: int,
    now: datetime,
    expires_at: datetime,
) -> PendingReservation:
    """
    Insert the hold for ``email``, clearing an expired one first.

    A live hold for the same email is never replaced: the second insert
    fails with an IntegrityError on UNIQUE(email) when flushed.
    """
    db.query(PendingReservation).filter(
        PendingReservation.email == email, PendingReservation.expires_at <= now
    ).delete(synchronize_session=False)
    pending = PendingReservation(
        temp_id=temp_id,
        email=email,
        event_date=event_date,
        seat_numbers=list(selection.numbers),
        seat_labels=list(selection.labels),
        booking_data=booking_data,
        token_issued_at_ms=token_issued_at_ms,
        created_at=now,
        expires_at=expires_at,
    )
    db.add(pending)
    db.flush()
    return pending


def count_resend(db: Session, held: PendingReservation) -> bool:
    """Use up one resend of the hold; False once ``OTP_MAX_RESENDS`` are spent."""
    return db.execute(
        update(PendingReservation)
        .where(
            PendingReservation.id == held.id,
            PendingReservation.resend_count < settings.OTP_MAX_RESENDS,
        )
        .values(resend_count=PendingReservation.resend_count + 1)
        .execution_options(synchronize_session=False)
    ).rowcount == 1


def purge_expired(db: Session, now: datetime) -> int:
    return (
        db.query(PendingReservation)
        .filter(PendingReservation.expires_at <= now)
        .delete(synchronize_session=False)
    )
