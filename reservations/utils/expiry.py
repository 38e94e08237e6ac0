from sqlalchemy.orm import Session

from reservations.services import otp, pending
from reservations.utils import dates


def purge_expired_reservations(db: Session) -> int:
    """
    Delete seat holds and verification codes whose ``expires_at`` has passed.

    Housekeeping only: every read that decides availability already
    ignores expired rows. Returns the number of holds removed.
    """
    now = dates.utcnow()
    holds = pending.purge_expired(db, now)
    otp.purge_expired(db, now)
    db.commit()
    return holds
