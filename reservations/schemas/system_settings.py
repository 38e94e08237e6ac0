from typing import Annotated, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime

from reservations.utils.dates import as_utc, parse_event_time


class SystemSettingsBase(BaseModel):
    reservation_open_date: datetime
    reservation_close_date: datetime
    default_total_seats: Annotated[int, Field(ge=1, le=260)]
    event_times: Annotated[List[str], Field(min_length=1)]
    working_days: Annotated[List[int], Field(min_length=1)]
    max_seats_per_user: Annotated[int, Field(ge=1, le=10)]
    min_cancellation_hours: Annotated[int, Field(ge=0)] = 2


# PUT /admin/settings: every field optional, unspecified ones stay as they are
class SystemSettingsUpdate(BaseModel):
    reservation_open_date: Optional[datetime] = None
    reservation_close_date: Optional[datetime] = None
    default_total_seats: Optional[Annotated[int, Field(ge=1, le=260)]] = None
    event_times: Optional[Annotated[List[str], Field(min_length=1)]] = None
    working_days: Optional[Annotated[List[int], Field(min_length=1)]] = None
    max_seats_per_user: Optional[Annotated[int, Field(ge=1, le=10)]] = None
    min_cancellation_hours: Optional[Annotated[int, Field(ge=0)]] = None

    @field_validator("reservation_open_date", "reservation_close_date")
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)

    @field_validator("event_times")
    @classmethod
    def check_times(cls, v):
        if v is not None:
            for value in v:
                parse_event_time(value)
        return v

    @field_validator("working_days")
    @classmethod
    def check_days(cls, v):
        if v is not None and any(day < 1 or day > 7 for day in v):
            raise ValueError("Working days are ISO weekday numbers between 1 (Monday) and 7 (Sunday)")
        return v

    @model_validator(mode="after")
    def check_window(self):
        if (
            self.reservation_open_date
            and self.reservation_close_date
            and self.reservation_open_date >= self.reservation_close_date
        ):
            raise ValueError("reservation_open_date must be before reservation_close_date")
        return self


class SystemSettings(SystemSettingsBase):
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
