"""
Outbound email and SMS over HTTP transactional APIs.

Email goes to a Brevo-style ``/v3/smtp/email`` endpoint, SMS to an
Africa's Talking-style messaging endpoint. Every failure (missing
credentials, transport error, non-2xx reply) surfaces as
``NotificationError``; callers decide whether that is fatal.
"""

import json
import logging
from datetime import date, time
from typing import List, Optional

import requests

from reservations.core.config import settings
from reservations.core.errors import NotificationError
from reservations.utils import email_templates

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def send_email(self, to_email: str, to_name: str, subject: str, html: str) -> None:
        if not settings.MAIL_API_KEY:
            raise NotificationError("Email delivery is not configured (MAIL_API_KEY is empty)")

        email_data = {
            "sender": {"name": settings.MAIL_SENDER_NAME, "email": settings.MAIL_SENDER_EMAIL},
            "to": [{"email": to_email, "name": to_name or to_email}],
            "subject": subject,
            "htmlContent": html,
        }
        headers = {
            "accept": "application/json",
            "api-key": settings.MAIL_API_KEY,
            "content-type": "application/json",
        }
        try:
            response = self.session.post(
                settings.MAIL_API_URL,
                headers=headers,
                data=json.dumps(email_data),
                timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise NotificationError(f"Email to {to_email} failed: {exc}") from exc

        if response.status_code >= 300:
            raise NotificationError(
                f"Email to {to_email} rejected: {response.status_code}, {response.text}"
            )
        logger.info("Email '%s' sent to %s", subject, to_email)

    def send_sms(self, phone: str, message: str) -> None:
        if not settings.SMS_API_KEY:
            raise NotificationError("SMS delivery is not configured (SMS_API_KEY is empty)")

        payload = {"username": settings.SMS_USERNAME, "to": phone, "message": message}
        if settings.SMS_SENDER_ID:
            payload["from"] = settings.SMS_SENDER_ID
        headers = {"accept": "application/json", "apiKey": settings.SMS_API_KEY}
        try:
            response = self.session.post(
                settings.SMS_API_URL,
                headers=headers,
                data=payload,
                timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            raise NotificationError(f"SMS to {phone} failed: {exc}") from exc

        if response.status_code >= 300:
            raise NotificationError(f"SMS to {phone} rejected: {response.status_code}, {response.text}")
        logger.info("SMS sent to %s", phone)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def send_otp(self, email: str, name: str, code: str) -> None:
        html = email_templates.otp_email(name, code, settings.OTP_TTL_MINUTES)
        self.send_email(email, name, f"{code} is your verification code", html)

    def send_confirmation(
        self,
        email: str,
        name: str,
        ticket_id: str,
        event_date: date,
        start_time: time,
        seat_labels: List[str],
        qr_code: str,
        calendar_link: str,
        cancel_link: str,
        cancel_hours: int,
    ) -> None:
        html = email_templates.confirmation_email(
            name, ticket_id, event_date, start_time, seat_labels,
            qr_code, calendar_link, cancel_link, cancel_hours,
        )
        self.send_email(email, name, f"Your ticket {ticket_id} for {settings.EVENT_TITLE}", html)

    def send_cancellation(self, email: str, name: str, ticket_id: str, event_date: date, seat_labels: List[str]) -> None:
        html = email_templates.cancellation_email(name, ticket_id, event_date, seat_labels)
        self.send_email(email, name, f"Booking {ticket_id} cancelled", html)

    def send_ticket_sms(self, phone: str, ticket_id: str, event_date: date, start_time: time, seat_labels: List[str]) -> None:
        self.send_sms(phone, email_templates.ticket_sms(ticket_id, event_date, start_time, seat_labels))
