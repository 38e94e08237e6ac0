
from reservations.models.admin import Admin
from reservations.models.user import User
from reservations.models.event import Event
from reservations.models.booking import Booking, BookingSeat, BookingStatus
from reservations.models.reservation import PendingReservation, OTPChallenge
from reservations.models.system_settings import SystemSettings
