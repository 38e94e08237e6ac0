
import uuid
from sqlalchemy import Column, Boolean, Date, DateTime, Integer, Time, CheckConstraint, Uuid, func
from sqlalchemy.orm import relationship
from reservations.db.session import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_date = Column(Date, unique=True, nullable=False, index=True) # one event per calendar day
    start_time = Column(Time, nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False) # denormalised; only ever moved with atomic UPDATEs
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    __table_args__ = (
        CheckConstraint("total_seats >= 1", name="ck_events_total_seats_positive"),
        CheckConstraint("available_seats >= 0", name="ck_events_available_seats_non_negative"),
    )

    # Relationships
    bookings = relationship("Booking", back_populates="event")
