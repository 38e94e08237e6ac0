
import hashlib
import hmac
import secrets
import string
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext
from reservations.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"
TICKET_ID_ALPHABET = string.ascii_uppercase + string.digits
TICKET_ID_LENGTH = 8
RESERVATION_TOKEN_LENGTH = 32


# ---------------------------------------------------------------------------
# Admin authentication
# ---------------------------------------------------------------------------


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[str]:
    """Returns admin ID (sub claim) or None if token is invalid/expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return payload.get("sub")
    except JWTError:
        return None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# ---------------------------------------------------------------------------
# Booking secrets
# ---------------------------------------------------------------------------


def timestamp_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def generate_reservation_token(email: str, event_date: date, issued_at_ms: int) -> str:
    """
    HMAC-SHA256 over ``email:event_date:issued_at_ms``, truncated to 32 hex chars.

    The issuance timestamp is part of the input, so it has to be stored next
    to the token for the server to ever derive the same value again.
    """
    data = f"{email.lower()}:{event_date.isoformat()}:{issued_at_ms}"
    digest = hmac.new(
        settings.SECRET_KEY.encode(), data.encode(), hashlib.sha256
    ).hexdigest()
    return digest[:RESERVATION_TOKEN_LENGTH]


def reservation_token_matches(
    supplied: Optional[str], email: str, event_date: date, issued_at_ms: int
) -> bool:
    if not supplied:
        return False
    expected = generate_reservation_token(email, event_date, issued_at_ms)
    return hmac.compare_digest(supplied.encode(), expected.encode())


def generate_otp() -> str:
    """Four-digit code, uniform in [1000, 9999]."""
    return str(1000 + secrets.randbelow(9000))


def generate_ticket_id() -> str:
    return "".join(secrets.choice(TICKET_ID_ALPHABET) for _ in range(TICKET_ID_LENGTH))
