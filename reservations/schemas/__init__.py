
from reservations.schemas.common import ApiResponse, PageMeta
from reservations.schemas.booking import (
    BookingRequest, OTPVerificationRequest, ResendOTPRequest, CancelBookingRequest,
    PendingBookingResponse, ResendOTPResponse, Booking, AdminBooking,
    BookingUserSummary, BookingEventSummary,
)
from reservations.schemas.seat import SeatInfo, SeatAvailability
from reservations.schemas.event import (
    Event, EventCreate, EventUpdate, EventBookingStats, EventWithStats, EventsSummary,
)
from reservations.schemas.system_settings import SystemSettings, SystemSettingsUpdate
from reservations.schemas.admin import (
    Admin, Token, AssignSeatRequest, BulkActionRequest, BulkActionResult,
    CountRow, RegistrationStats,
)
