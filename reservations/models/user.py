
import uuid
from sqlalchemy import Column, String, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from reservations.db.session import Base

class User(Base):
    """A guest, identified by email and upserted on every completed booking."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    gender = Column(String(10), nullable=False) # male, female, other
    age_range = Column(String(10), nullable=False) # 18-25, 26-35, 36-45, 46-55, 55+
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    bookings = relationship("Booking", back_populates="user")
