from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Seat Reservation API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "reservations_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Public site; QR codes point at {FRONTEND_URL}/verify/{ticket_id}
    FRONTEND_URL: str = "http://localhost:3000"

    # The show itself
    EVENT_TITLE: str = "The Morning Show"
    EVENT_LOCATION: str = "Conference Hall A"
    EVENT_TIMEZONE: str = "Africa/Lagos"
    EVENT_DURATION_MINUTES: int = 120

    # Transactional email (HTTP API)
    MAIL_API_URL: str = "https://api.brevo.com/v3/smtp/email"
    MAIL_API_KEY: str = ""
    MAIL_SENDER_EMAIL: str = "hello@example.com"
    MAIL_SENDER_NAME: str = "The Morning Show"

    # SMS (HTTP API)
    SMS_API_URL: str = "https://api.africastalking.com/version1/messaging"
    SMS_API_KEY: str = ""
    SMS_USERNAME: str = "sandbox"
    SMS_SENDER_ID: str = ""

    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # Two-phase booking
    OTP_TTL_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 3
    OTP_MAX_RESENDS: int = 3
    PENDING_SWEEP_INTERVAL_SECONDS: int = 600

    # Per-client request throttling (sliding window, per process)
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    OTP_RATE_LIMIT_MAX_REQUESTS: int = 10
    OTP_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # Seed values for the system_settings row (editable by admins afterwards)
    DEFAULT_TOTAL_SEATS: int = 80
    DEFAULT_EVENT_TIME: str = "16:00"
    EVENT_TIMES: List[str] = ["16:00"]
    WORKING_DAYS: List[int] = [1, 2, 3, 4, 5]
    MAX_SEATS_PER_USER: int = 2
    MIN_CANCELLATION_HOURS: int = 2
    RESERVATION_WINDOW_DAYS: int = 90

    # First admin, created on startup when no admin exists
    FIRST_ADMIN_USERNAME: str = "admin"
    FIRST_ADMIN_EMAIL: str = "admin@example.com"
    FIRST_ADMIN_PASSWORD: str = "change-this-admin-password"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
