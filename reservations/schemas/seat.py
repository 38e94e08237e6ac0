from typing import List
from datetime import date
from pydantic import BaseModel


class SeatInfo(BaseModel):
    number: int
    label: str
    is_available: bool

    class Config:
        from_attributes = True


# GET /bookings/seats/{date}
class SeatAvailability(BaseModel):
    event_date: date
    total_seats: int
    available_seats: int
    booked_seats: int
    all_seats: List[SeatInfo]
    available_seat_list: List[SeatInfo]
    booked_seat_list: List[SeatInfo]
