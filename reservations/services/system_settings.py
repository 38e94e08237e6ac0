import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reservations.core.config import settings
from reservations.core.errors import BookingError, ErrorCode
from reservations.models.system_settings import SystemSettings
from reservations.schemas.common import ApiResponse
from reservations.schemas.system_settings import SystemSettings as SystemSettingsSchema, SystemSettingsUpdate
from reservations.services.base import as_envelope
from reservations.utils import dates

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def seed_system_settings(db: Session) -> SystemSettings:
    """Create the policy row from environment defaults if it does not exist yet."""
    existing = db.get(SystemSettings, SETTINGS_ROW_ID)
    if existing:
        return existing

    now = dates.utcnow()
    row = SystemSettings(
        id=SETTINGS_ROW_ID,
        reservation_open_date=now,
        reservation_close_date=now + timedelta(days=settings.RESERVATION_WINDOW_DAYS),
        default_total_seats=settings.DEFAULT_TOTAL_SEATS,
        event_times=list(settings.EVENT_TIMES) or [settings.DEFAULT_EVENT_TIME],
        working_days=list(settings.WORKING_DAYS),
        max_seats_per_user=settings.MAX_SEATS_PER_USER,
        min_cancellation_hours=settings.MIN_CANCELLATION_HOURS,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Another worker seeded it first
        db.rollback()
        return db.get(SystemSettings, SETTINGS_ROW_ID)
    db.refresh(row)
    logger.info("Seeded system settings (window closes %s).", row.reservation_close_date)
    return row


def get_system_settings(db: Session) -> SystemSettings:
    row = db.get(SystemSettings, SETTINGS_ROW_ID)
    if row is None:
        row = seed_system_settings(db)
    return row


def update_system_settings(db: Session, changes: SystemSettingsUpdate) -> SystemSettings:
    row = get_system_settings(db)
    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(row, field, value)

    if dates.as_utc(row.reservation_open_date) >= dates.as_utc(row.reservation_close_date):
        raise BookingError(
            ErrorCode.INVALID_REQUEST,
            "Reservation open date must be before the close date",
        )

    db.commit()
    db.refresh(row)
    return row


def default_event_time(policy: SystemSettings):
    times = policy.event_times or [settings.DEFAULT_EVENT_TIME]
    return dates.parse_event_time(times[0])


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    @as_envelope("Failed to fetch settings")
    def get(self) -> ApiResponse[SystemSettingsSchema]:
        row = get_system_settings(self.db)
        return ApiResponse.ok("Settings retrieved successfully", data=SystemSettingsSchema.model_validate(row))

    @as_envelope("Failed to update settings")
    def update(self, changes: SystemSettingsUpdate) -> ApiResponse[SystemSettingsSchema]:
        row = update_system_settings(self.db, changes)
        logger.info("System settings updated: %s", sorted(changes.model_dump(exclude_unset=True)))
        return ApiResponse.ok("Settings updated successfully", data=SystemSettingsSchema.model_validate(row))
