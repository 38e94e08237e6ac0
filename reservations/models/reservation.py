
import uuid
from sqlalchemy import Column, String, Boolean, BigInteger, Date, DateTime, Integer, JSON, Uuid, func
from reservations.db.session import Base

class PendingReservation(Base):
    """Seat selection held for a new guest while they confirm their email."""

    __tablename__ = "pending_reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    temp_id = Column(String(36), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True) # one live hold per guest
    event_date = Column(Date, nullable=False, index=True)
    seat_numbers = Column(JSON, nullable=False)
    seat_labels = Column(JSON, nullable=False)
    booking_data = Column(JSON, nullable=False) # name, phone, gender, age_range
    token_issued_at_ms = Column(BigInteger, nullable=False)
    resend_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

class OTPChallenge(Base):
    __tablename__ = "otp_challenges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    temp_id = Column(String(36), nullable=False, index=True)
    code = Column(String(8), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
