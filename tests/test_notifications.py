import json
from datetime import date, time
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from reservations.core.config import settings
from reservations.core.errors import NotificationError
from reservations.services.notifications import NotificationService
from reservations.utils import tickets


class FakeResponse:
    def __init__(self, status_code=201, text="{}"):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for ``requests.Session``; records posts and replays ``reply``."""

    def __init__(self, reply=None):
        self.calls = []
        self.reply = reply or FakeResponse()

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def mail_configured(monkeypatch):
    monkeypatch.setattr(settings, "MAIL_API_KEY", "mail-key")
    monkeypatch.setattr(settings, "SMS_API_KEY", "sms-key")


def test_email_payload(mail_configured):
    session = FakeSession()
    NotificationService(session).send_otp("ada@example.com", "Ada Obi", "123456")

    call = session.calls[0]
    assert call["url"] == settings.MAIL_API_URL
    assert call["headers"]["api-key"] == "mail-key"
    assert call["timeout"] == settings.NOTIFICATION_TIMEOUT_SECONDS
    body = json.loads(call["data"])
    assert body["to"] == [{"email": "ada@example.com", "name": "Ada Obi"}]
    assert body["subject"] == "123456 is your verification code"
    assert "123456" in body["htmlContent"]


def test_email_without_key_is_refused(monkeypatch):
    monkeypatch.setattr(settings, "MAIL_API_KEY", "")
    session = FakeSession()
    with pytest.raises(NotificationError):
        NotificationService(session).send_email("ada@example.com", "Ada", "Hi", "<p>Hi</p>")
    assert session.calls == []


def test_rejected_email_raises(mail_configured):
    session = FakeSession(FakeResponse(400, '{"message": "invalid sender"}'))
    with pytest.raises(NotificationError, match="400"):
        NotificationService(session).send_email("ada@example.com", "Ada", "Hi", "<p>Hi</p>")


def test_transport_error_raises(mail_configured):
    session = FakeSession(requests.ConnectionError("connection refused"))
    with pytest.raises(NotificationError, match="connection refused"):
        NotificationService(session).send_sms("+2348012345678", "hello")


def test_ticket_sms(mail_configured):
    session = FakeSession()
    NotificationService(session).send_ticket_sms(
        "+2348012345678", "TKT12345", date(2026, 11, 2), time(16, 0), ["A1", "A2"]
    )

    call = session.calls[0]
    assert call["url"] == settings.SMS_API_URL
    assert call["headers"]["apiKey"] == "sms-key"
    assert call["data"]["to"] == "+2348012345678"
    assert "TKT12345" in call["data"]["message"]
    assert "A1, A2" in call["data"]["message"]


def test_confirmation_email_carries_ticket_links(mail_configured):
    session = FakeSession()
    cancel_link = tickets.cancellation_url("TKT12345", "f" * 32)
    NotificationService(session).send_confirmation(
        "ada@example.com", "Ada Obi", "TKT12345", date(2026, 11, 2), time(16, 0), ["B3"],
        "data:image/png;base64,AAAA", "https://calendar.example/add", cancel_link, 2,
    )

    body = json.loads(session.calls[0]["data"])
    assert body["subject"] == f"Your ticket TKT12345 for {settings.EVENT_TITLE}"
    html = body["htmlContent"]
    assert "B3" in html
    assert "data:image/png;base64,AAAA" in html
    assert "2 hours" in html


# ---------------------------------------------------------------------------
# Ticket links
# ---------------------------------------------------------------------------


def test_cancellation_url_carries_token():
    url = urlparse(tickets.cancellation_url("TKT12345", "abc"))
    assert url.path == "/cancel"
    assert parse_qs(url.query) == {"ticket": ["TKT12345"], "token": ["abc"]}


def test_qr_code_is_a_png_data_url():
    assert tickets.qr_data_url("TKT12345").startswith("data:image/png;base64,iVBORw0KGgo")


def test_calendar_link_is_in_utc():
    url = urlparse(tickets.calendar_link("TKT12345", date(2026, 11, 2), time(16, 0), ["C1"]))
    query = parse_qs(url.query)
    assert query["action"] == ["TEMPLATE"]
    assert query["dates"][0].startswith("20261102T150000Z/")
    assert "C1" in query["details"][0]
