import base64
import io
from datetime import date, time
from urllib.parse import urlencode

import qrcode

from reservations.core.config import settings
from reservations.utils import dates


def verification_url(ticket_id: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/verify/{ticket_id}"


def cancellation_url(ticket_id: str, reservation_token: str) -> str:
    query = urlencode({"ticket": ticket_id, "token": reservation_token})
    return f"{settings.FRONTEND_URL.rstrip('/')}/cancel?{query}"


def qr_data_url(ticket_id: str) -> str:
    """PNG QR code for the ticket, inlined as a data URL so it survives in emails."""
    img = qrcode.make(verification_url(ticket_id))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def calendar_link(ticket_id: str, event_date: date, start_time: time, seat_labels) -> str:
    """Google Calendar 'add event' link covering the show."""
    fmt = "%Y%m%dT%H%M%SZ"
    start = dates.event_start(event_date, start_time)
    end = dates.event_end(event_date, start_time)
    details = f"Ticket {ticket_id}. Seats: {', '.join(seat_labels)}."
    query = urlencode(
        {
            "action": "TEMPLATE",
            "text": settings.EVENT_TITLE,
            "dates": f"{start.strftime(fmt)}/{end.strftime(fmt)}",
            "details": details,
            "location": settings.EVENT_LOCATION,
        }
    )
    return f"https://calendar.google.com/calendar/render?{query}"
