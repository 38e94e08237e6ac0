
import enum
import uuid
from sqlalchemy import Column, String, Boolean, BigInteger, DateTime, Date, Integer, ForeignKey, Index, Text, Uuid, func, text
from sqlalchemy.orm import relationship
from reservations.db.session import Base

class BookingStatus(str, enum.Enum):
    attending = "attending"
    attended = "attended"
    cancelled = "cancelled"
    voided = "voided"

# Bookings in these states own their seats
SEAT_HOLDING_STATUSES = (BookingStatus.attending.value, BookingStatus.attended.value)

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id = Column(String(16), unique=True, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False, index=True)
    event_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), default=BookingStatus.attending.value, nullable=False, index=True)
    qr_code = Column(Text, nullable=False)
    calendar_link = Column(Text, nullable=True)
    reservation_token = Column(String(64), nullable=False)
    token_issued_at_ms = Column(BigInteger, nullable=False) # HMAC input, needed to re-derive the token
    attended_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    user = relationship("User", back_populates="bookings")
    event = relationship("Event", back_populates="bookings")
    seats = relationship(
        "BookingSeat",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingSeat.seat_number",
    )

    @property
    def seat_numbers(self) -> list[int]:
        return [s.seat_number for s in self.seats]

    @property
    def seat_labels(self) -> list[str]:
        return [s.seat_label for s in self.seats]

    @property
    def holds_seats(self) -> bool:
        return self.status in SEAT_HOLDING_STATUSES

class BookingSeat(Base):
    __tablename__ = "booking_seats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), nullable=False, index=True)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False) # Disambiguation
    seat_number = Column(Integer, nullable=False)
    seat_label = Column(String(8), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False) # False once the booking is cancelled/voided

    __table_args__ = (
        # A seat can be held by at most one live booking per event.
        Index(
            "uq_booking_seats_event_seat_active",
            "event_id",
            "seat_number",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    booking = relationship("Booking", back_populates="seats")
