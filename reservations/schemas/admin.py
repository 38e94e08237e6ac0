from typing import Annotated, Dict, List, Literal, Optional
from pydantic import BaseModel, EmailStr, Field, UUID4, model_validator
from datetime import date, datetime


class Admin(BaseModel):
    id: UUID4
    username: str
    email: str
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
    admin: Admin


# POST /auth/change-password
class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: Annotated[str, Field(min_length=8, max_length=128)]

    @model_validator(mode="after")
    def must_differ(self):
        if self.current_password == self.new_password:
            raise ValueError("New password must be different from the current password")
        return self


# POST /auth/admins (superadmin only)
class AdminCreate(BaseModel):
    username: Annotated[str, Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")]
    email: EmailStr
    password: Annotated[str, Field(min_length=8, max_length=128)]
    role: Literal["admin", "superadmin"] = "admin"


# PATCH /admin/registrations/{ticket_id}/assign-seat
class AssignSeatRequest(BaseModel):
    seat_label: Annotated[str, Field(min_length=2, max_length=4)]


# POST /admin/registrations/bulk-action
class BulkActionRequest(BaseModel):
    action: Literal["void", "checkin", "cancel"]
    ticket_ids: Annotated[List[str], Field(min_length=1, max_length=200)]


class BulkActionResult(BaseModel):
    matched_count: int
    modified_count: int
    failures: Dict[str, str] = {}


# GET /admin/registrations/stats
class CountRow(BaseModel):
    key: str
    count: int


class RegistrationStats(BaseModel):
    event_date: Optional[date] = None
    total_bookings: int
    held_seats: int
    by_status: List[CountRow]
    by_gender: List[CountRow]
    by_age_range: List[CountRow]
