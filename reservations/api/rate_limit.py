import logging
import threading
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import HTTPException, Request, status

from reservations.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding-window request cap per client address, used as a route dependency.

    Counts live in process memory, so each worker enforces its own window.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def __call__(self, request: Request) -> None:
        client = request.client.host if request.client else "unknown"
        now = time.monotonic()
        with self._lock:
            hits = self._hits[client]
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                retry_after = int(hits[0] + self.window_seconds - now) + 1
                logger.warning("%s rate limit exceeded for %s", self.name, client)
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Too many requests, please try again later.",
                    headers={"Retry-After": str(retry_after)},
                )
            hits.append(now)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


# Admin sign-in
auth_limiter = RateLimiter(
    "auth", settings.AUTH_RATE_LIMIT_MAX_REQUESTS, settings.AUTH_RATE_LIMIT_WINDOW_SECONDS
)

# Code entry and code resends
otp_limiter = RateLimiter(
    "otp", settings.OTP_RATE_LIMIT_MAX_REQUESTS, settings.OTP_RATE_LIMIT_WINDOW_SECONDS
)
