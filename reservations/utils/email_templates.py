"""HTML and SMS bodies for guest notifications."""

from datetime import date, time
from typing import List

from reservations.core.config import settings
from reservations.utils import dates

_LAYOUT = """<html><head></head><body style="font-family: Arial, sans-serif; color: #222;">
<h2>{title}</h2>
{body}
<p style="color: #888; font-size: 12px;">{event_title} &middot; {location}</p>
</body></html>"""


def _wrap(title: str, body: str) -> str:
    return _LAYOUT.format(
        title=title,
        body=body,
        event_title=settings.EVENT_TITLE,
        location=settings.EVENT_LOCATION,
    )


def otp_email(name: str, code: str, minutes: int) -> str:
    body = (
        f"<p>Hi {name},</p>"
        f"<p>Your verification code is <strong style=\"font-size: 24px;\">{code}</strong>.</p>"
        f"<p>It expires in {minutes} minutes. If you did not request this, ignore this email.</p>"
    )
    return _wrap("Confirm your booking", body)


def confirmation_email(
    name: str,
    ticket_id: str,
    event_date: date,
    start_time: time,
    seat_labels: List[str],
    qr_code: str,
    calendar_link: str,
    cancel_link: str,
    cancel_hours: int,
) -> str:
    body = (
        f"<p>Hi {name},</p>"
        f"<p>Your booking is confirmed.</p>"
        f"<ul>"
        f"<li>Ticket: <strong>{ticket_id}</strong></li>"
        f"<li>Date: {dates.format_event_date(event_date)}</li>"
        f"<li>Time: {dates.format_event_time(start_time)}</li>"
        f"<li>Seats: {', '.join(seat_labels)}</li>"
        f"</ul>"
        f"<p><img src=\"{qr_code}\" alt=\"Ticket QR code\" width=\"200\" height=\"200\"/></p>"
        f"<p><a href=\"{calendar_link}\">Add to calendar</a></p>"
        f"<p>Can't make it? <a href=\"{cancel_link}\">Cancel your booking</a> "
        f"at least {cancel_hours} hours before the show.</p>"
    )
    return _wrap("You're booked!", body)


def cancellation_email(name: str, ticket_id: str, event_date: date, seat_labels: List[str]) -> str:
    body = (
        f"<p>Hi {name},</p>"
        f"<p>Your booking <strong>{ticket_id}</strong> for "
        f"{dates.format_event_date(event_date)} (seats {', '.join(seat_labels)}) has been cancelled.</p>"
        f"<p>We hope to see you another time.</p>"
    )
    return _wrap("Booking cancelled", body)


def ticket_sms(ticket_id: str, event_date: date, start_time: time, seat_labels: List[str]) -> str:
    return (
        f"{settings.EVENT_TITLE}: booking confirmed. Ticket {ticket_id}, "
        f"{dates.format_event_date(event_date)} {dates.format_event_time(start_time)}, "
        f"seats {', '.join(seat_labels)}."
    )
