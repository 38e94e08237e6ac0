from typing import Annotated, Optional, List
from pydantic import BaseModel, Field, UUID4, field_validator
from datetime import date, datetime, time

from reservations.utils.dates import parse_event_time
from reservations.utils.seats import ROW_LETTERS, SEATS_PER_ROW

MAX_TOTAL_SEATS = SEATS_PER_ROW * len(ROW_LETTERS)


def _coerce_time(v):
    if isinstance(v, str):
        return parse_event_time(v)
    return v


# Event: Create (POST /admin/events)
class EventCreate(BaseModel):
    event_date: date
    start_time: time
    total_seats: Annotated[int, Field(ge=1, le=MAX_TOTAL_SEATS)]

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_start_time(cls, v):
        return _coerce_time(v)


# Event: Update (PUT /admin/events/{id})
class EventUpdate(BaseModel):
    start_time: Optional[time] = None
    total_seats: Optional[Annotated[int, Field(ge=1, le=MAX_TOTAL_SEATS)]] = None
    is_active: Optional[bool] = None

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_start_time(cls, v):
        return _coerce_time(v)


class Event(BaseModel):
    id: UUID4
    event_date: date
    start_time: time
    total_seats: int
    available_seats: int
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventBookingStats(BaseModel):
    total_bookings: int
    total_booked_seats: int
    attended_bookings: int
    confirmed_bookings: int
    available_seats: int
    occupancy_rate: float


# GET /admin/events, GET /admin/events/upcoming
class EventWithStats(Event):
    booking_stats: EventBookingStats
    is_fully_booked: bool
    is_working_day: bool
    is_bookable: bool
    day_of_week: str
    formatted_date: str


class EventsSummary(BaseModel):
    upcoming_events_count: int
    next_events: List[EventWithStats]
