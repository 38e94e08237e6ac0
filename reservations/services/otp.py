"""
One-time codes proving a guest controls the email they booked with.

One challenge per email. A code is good for ``OTP_TTL_MINUTES`` and
``OTP_MAX_ATTEMPTS`` wrong guesses; running out of either discards
the challenge together with the seat hold it guards.
"""

import hmac
import logging
from datetime import datetime, timedelta
from typing import Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from reservations.core.config import settings
from reservations.core.errors import BookingError, ErrorCode
from reservations.core.security import generate_otp
from reservations.models.reservation import OTPChallenge, PendingReservation
from reservations.utils import dates

logger = logging.getLogger(__name__)


def expiry_from(now: datetime) -> datetime:
    return now + timedelta(minutes=settings.OTP_TTL_MINUTES)


def issue(db: Session, email: str, temp_id: str, now: datetime) -> Tuple[str, datetime]:
    """
    Replace any challenge stored for ``email`` with a fresh code. Caller commits.

    Only call this while holding the live hold for ``email``; anything it
    replaces then belongs to that hold or to an expired one.
    """
    db.query(OTPChallenge).filter(OTPChallenge.email == email).delete(synchronize_session=False)
    code = generate_otp()
    expires_at = expiry_from(now)
    db.add(
        OTPChallenge(
            email=email,
            temp_id=temp_id,
            code=code,
            expires_at=expires_at,
            verified=False,
            attempts=0,
            created_at=now,
        )
    )
    db.flush()
    return code, expires_at


def discard(db: Session, email: str, temp_id: str) -> None:
    """Drop the challenge and the hold it guards."""
    db.query(OTPChallenge).filter(
        OTPChallenge.email == email, OTPChallenge.temp_id == temp_id
    ).delete(synchronize_session=False)
    db.query(PendingReservation).filter(
        PendingReservation.email == email, PendingReservation.temp_id == temp_id
    ).delete(synchronize_session=False)


def purge_expired(db: Session, now: datetime) -> int:
    return (
        db.query(OTPChallenge)
        .filter(OTPChallenge.expires_at <= now)
        .delete(synchronize_session=False)
    )


def verify(db: Session, email: str, temp_id: str, code: str, now: datetime) -> OTPChallenge:
    """
    Check ``code`` against the stored challenge and mark it used.

    Failure paths commit their own bookkeeping (attempt counter, discarded
    records) before raising, so a rollback further up cannot undo them.
    """
    challenge = (
        db.query(OTPChallenge)
        .filter(OTPChallenge.email == email, OTPChallenge.temp_id == temp_id)
        .first()
    )
    if challenge is None:
        raise BookingError(ErrorCode.NOT_FOUND, "No verification code found for this booking")

    if dates.as_utc(challenge.expires_at) <= now:
        discard(db, email, temp_id)
        db.commit()
        raise BookingError(ErrorCode.OTP_EXPIRED, "Verification code has expired. Please start a new booking.")

    if challenge.verified:
        raise BookingError(ErrorCode.OTP_ALREADY_USED, "Verification code has already been used")

    if challenge.attempts >= settings.OTP_MAX_ATTEMPTS:
        discard(db, email, temp_id)
        db.commit()
        raise BookingError(
            ErrorCode.OTP_EXHAUSTED,
            "Too many failed attempts. Please start a new booking.",
        )

    if not hmac.compare_digest(challenge.code.encode(), (code or "").strip().encode()):
        db.execute(
            update(OTPChallenge)
            .where(OTPChallenge.id == challenge.id)
            .values(attempts=OTPChallenge.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(challenge)
        remaining = max(settings.OTP_MAX_ATTEMPTS - challenge.attempts, 0)
        logger.info("Wrong verification code for %s (%d attempts left)", email, remaining)
        raise BookingError(
            ErrorCode.OTP_MISMATCH,
            f"Invalid verification code. {remaining} attempt(s) remaining.",
        )

    claimed = db.execute(
        update(OTPChallenge)
        .where(OTPChallenge.id == challenge.id, OTPChallenge.verified == False)  # noqa: E712
        .values(verified=True)
        .execution_options(synchronize_session=False)
    ).rowcount
    if claimed != 1:
        raise BookingError(ErrorCode.OTP_ALREADY_USED, "Verification code has already been used")
    return challenge
