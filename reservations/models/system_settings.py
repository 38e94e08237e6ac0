
from sqlalchemy import Column, DateTime, Integer, JSON, func
from reservations.db.session import Base

class SystemSettings(Base):
    """Operator-editable booking policy. There is exactly one row."""

    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True)
    reservation_open_date = Column(DateTime(timezone=True), nullable=False)
    reservation_close_date = Column(DateTime(timezone=True), nullable=False)
    default_total_seats = Column(Integer, nullable=False, default=80)
    event_times = Column(JSON, nullable=False) # ["16:00", ...]; the first one is used for new events
    working_days = Column(JSON, nullable=False) # ISO weekday numbers, 1 = Monday
    max_seats_per_user = Column(Integer, nullable=False, default=2)
    min_cancellation_hours = Column(Integer, nullable=False, default=2)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
