import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import date, datetime, time, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reservations.api.deps import get_notifier
from reservations.api.rate_limit import auth_limiter, otp_limiter
from reservations.core.errors import NotificationError
from reservations.core.security import get_password_hash
from reservations.db.base import Base
from reservations.db.session import get_db
from reservations.main import app
from reservations.models.admin import Admin
from reservations.schemas.booking import BookingRequest, OTPVerificationRequest
from reservations.services.notifications import NotificationService
from reservations.services.system_settings import seed_system_settings
from reservations.utils import dates

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_USERNAME = "boxoffice"
ADMIN_PASSWORD = "boxoffice-password"
SUPERADMIN_USERNAME = "headoffice"
SUPERADMIN_PASSWORD = "headoffice-password"


class RecordingNotifier(NotificationService):
    """Keeps every message instead of sending it; ``fail`` makes every send raise."""

    def __init__(self):
        super().__init__()
        self.emails = []
        self.sms = []
        self.fail = False

    def send_email(self, to_email, to_name, subject, html):
        if self.fail:
            raise NotificationError("mail transport down")
        self.emails.append({"to": to_email, "name": to_name, "subject": subject, "html": html})

    def send_sms(self, phone, message):
        if self.fail:
            raise NotificationError("sms transport down")
        self.sms.append({"to": phone, "message": message})

    def last_otp(self, email):
        for message in reversed(self.emails):
            if message["to"] == email and message["subject"].endswith("is your verification code"):
                return message["subject"].split()[0]
        raise AssertionError(f"no verification code sent to {email}")


def next_weekday(after=None, offset_days=1):
    """First Monday-to-Friday date at least ``offset_days`` after ``after`` (default: today at the venue)."""
    day = (after or dates.local_today()) + timedelta(days=offset_days)
    while day.isoweekday() > 5:
        day += timedelta(days=1)
    return day


def next_saturday():
    day = dates.local_today() + timedelta(days=1)
    while day.isoweekday() != 6:
        day += timedelta(days=1)
    return day


def frozen_at(moment):
    """Replacement for ``dates.utcnow`` pinned to ``moment``."""
    return lambda: moment


def booking_request(**overrides):
    payload = {
        "event_date": next_weekday(),
        "seat_labels": ["A1"],
        "name": "Ada Obi",
        "email": "ada@example.com",
        "phone": "+2348012345678",
        "gender": "female",
        "age_range": "26-35",
        "agree_to_terms": True,
    }
    payload.update(overrides)
    return BookingRequest(**payload)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def policy(db):
    """Booking policy with a window that is already open."""
    row = seed_system_settings(db)
    now = dates.utcnow()
    row.reservation_open_date = now - timedelta(days=1)
    row.reservation_close_date = now + timedelta(days=60)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, policy, notifier):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    auth_limiter.reset()
    otp_limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def login_as(client, db, username, password, role="admin"):
    """Create an active admin account and return bearer headers for it."""
    db.add(
        Admin(
            username=username,
            email=f"{username}@example.com",
            password_hash=get_password_hash(password),
            role=role,
            is_active=True,
        )
    )
    db.commit()
    response = client.post("/api/v1/auth/login", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client, db):
    return login_as(client, db, ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def superadmin_headers(client, db):
    return login_as(client, db, SUPERADMIN_USERNAME, SUPERADMIN_PASSWORD, role="superadmin")


def on_event_day(event_date, local_hour):
    """UTC instant for ``local_hour``:00 at the venue on ``event_date``."""
    return datetime.combine(event_date, time(local_hour), tzinfo=dates.event_timezone()).astimezone(timezone.utc)


def verify_latest(workflow, notifier, started, email="ada@example.com", token=None):
    """Redeem the last code emailed to ``email`` for the hold in ``started``."""
    return workflow.verify_and_complete(
        OTPVerificationRequest(
            email=email,
            otp=notifier.last_otp(email),
            temp_id=started.data.temp_id,
            reservation_token=token or started.data.reservation_token,
        )
    )


def complete_booking(workflow, notifier, **overrides):
    request = booking_request(**overrides)
    started = workflow.initiate(request)
    assert started.success, started.message
    done = verify_latest(workflow, notifier, started, email=request.email)
    assert done.success, done.message
    return done
