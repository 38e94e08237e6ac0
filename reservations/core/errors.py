"""Rejection codes for the booking workflows.

Services raise ``BookingError`` at a validation gate; the workflow entry
points turn it into a failed ``ApiResponse`` envelope so nothing
business-related ever reaches the HTTP layer as an exception.
"""

from enum import Enum


class ErrorCode(str, Enum):
    RESERVATIONS_CLOSED = "RESERVATIONS_CLOSED"
    INVALID_EVENT_DATE = "INVALID_EVENT_DATE"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    PENDING_BOOKING_EXISTS = "PENDING_BOOKING_EXISTS"
    TOO_MANY_SEATS = "TOO_MANY_SEATS"
    INVALID_SEAT_SELECTION = "INVALID_SEAT_SELECTION"
    INSUFFICIENT_SEATS = "INSUFFICIENT_SEATS"
    SEATS_UNAVAILABLE = "SEATS_UNAVAILABLE"
    SEATS_NO_LONGER_AVAILABLE = "SEATS_NO_LONGER_AVAILABLE"

    OTP_EXPIRED = "OTP_EXPIRED"
    OTP_MISMATCH = "OTP_MISMATCH"
    OTP_EXHAUSTED = "OTP_EXHAUSTED"
    OTP_ALREADY_USED = "OTP_ALREADY_USED"
    TOO_MANY_RESENDS = "TOO_MANY_RESENDS"
    PENDING_EXPIRED = "PENDING_EXPIRED"

    TOO_LATE_TO_CANCEL = "TOO_LATE_TO_CANCEL"
    INVALID_TOKEN = "INVALID_TOKEN"

    NOT_FOUND = "NOT_FOUND"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    CHECK_IN_NOT_ALLOWED = "CHECK_IN_NOT_ALLOWED"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    EVENT_HAS_BOOKINGS = "EVENT_HAS_BOOKINGS"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"

    NOTIFICATION_FAILURE = "NOTIFICATION_FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Codes that map to 404 rather than 400
NOT_FOUND_CODES = {ErrorCode.NOT_FOUND, ErrorCode.EVENT_NOT_FOUND}


class BookingError(Exception):
    """A recoverable business-rule rejection."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotificationError(Exception):
    """Raised by the notification transport when a send did not go through."""


def status_for(code: ErrorCode) -> int:
    if code in NOT_FOUND_CODES:
        return 404
    if code == ErrorCode.UNAUTHORIZED:
        return 401
    if code == ErrorCode.TOO_MANY_RESENDS:
        return 429
    if code in (ErrorCode.INTERNAL_ERROR, ErrorCode.NOTIFICATION_FAILURE):
        return 500
    return 400
