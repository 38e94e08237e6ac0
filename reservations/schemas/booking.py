
from __future__ import annotations

from typing import Annotated, Literal, Optional, List
from pydantic import BaseModel, EmailStr, Field, UUID4, field_validator
from datetime import date, datetime, time

Gender = Literal["male", "female", "other"]
AgeRange = Literal["18-25", "26-35", "36-45", "46-55", "55+"]


# Booking: Initiate (POST /bookings/initiate)
class BookingRequest(BaseModel):
    event_date: date
    seat_labels: Annotated[List[str], Field(min_length=1, max_length=10)]
    name: Annotated[str, Field(min_length=2, max_length=100)]
    email: EmailStr
    phone: Annotated[str, Field(min_length=10, max_length=20, pattern=r"^[0-9+\-\s()]+$")]
    gender: Gender
    age_range: AgeRange
    about_yourself: Optional[Annotated[str, Field(max_length=500)]] = None
    agree_to_terms: bool

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("seat_labels")
    @classmethod
    def normalise_labels(cls, v: List[str]) -> List[str]:
        return [label.strip().upper() for label in v]

    @field_validator("agree_to_terms")
    @classmethod
    def must_agree(cls, v: bool) -> bool:
        if not v:
            raise ValueError("You must agree to the terms to book a seat")
        return v


# Booking: Verify (POST /bookings/verify)
class OTPVerificationRequest(BaseModel):
    email: EmailStr
    otp: Annotated[str, Field(min_length=4, max_length=8)]
    temp_id: str
    reservation_token: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ResendOTPRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class CancelBookingRequest(BaseModel):
    ticket_id: str
    reservation_token: str


# Two-phase result when the guest still has to confirm their email
class PendingBookingResponse(BaseModel):
    temp_id: str
    expires_at: datetime
    reservation_token: str
    requires_otp: bool = True


class ResendOTPResponse(BaseModel):
    expires_at: datetime


# Nested response objects
class BookingUserSummary(BaseModel):
    name: str
    email: str
    phone: str

    class Config:
        from_attributes = True


class BookingEventSummary(BaseModel):
    id: UUID4
    event_date: date
    start_time: time

    class Config:
        from_attributes = True


# Booking: Full response
class Booking(BaseModel):
    ticket_id: str
    event_date: date
    seat_numbers: List[int]
    seat_labels: List[str]
    status: str
    qr_code: str
    calendar_link: Optional[str] = None
    reservation_token: str
    requires_otp: bool = False
    attended_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    user: Optional[BookingUserSummary] = None
    event: Optional[BookingEventSummary] = None

    class Config:
        from_attributes = True


# Booking: Admin view; no reservation token, the QR is enough to look it up
class AdminBooking(BaseModel):
    id: UUID4
    ticket_id: str
    event_date: date
    seat_numbers: List[int]
    seat_labels: List[str]
    status: str
    attended_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    user: Optional[BookingUserSummary] = None
    event: Optional[BookingEventSummary] = None

    class Config:
        from_attributes = True
