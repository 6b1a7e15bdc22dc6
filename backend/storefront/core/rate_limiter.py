"""
Rate Limiting for Storefront API
================================
Two layers:

- slowapi ``Limiter`` for general per-route request limits, keyed by
  authenticated user or client IP:
    - /auth/register: 3 req/min
    - /auth/login: 10 req/min
    - /upload: 30 req/min
    - everything else: RATE_LIMIT_PER_MINUTE
- ``LoginAttemptLimiter`` for brute force protection on login, keyed by
  email and by client IP. In-memory, per process.
"""

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from storefront.core.config import settings
from storefront.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key.

    Priority:
    1. Authenticated user ID (set on request.state by the auth dependency)
    2. IP address (for anonymous users)
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


def get_client_ip(request: Request) -> str:
    """Peer address of the connection; X-Forwarded-For is client controlled and ignored"""
    return get_remote_address(request) or "unknown"


# Special endpoint rate limits
REGISTER_LIMIT = "3/minute"
LOGIN_LIMIT = "10/minute"
UPLOAD_LIMIT = "30/minute"
DEFAULT_LIMIT = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[DEFAULT_LIMIT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns the standard error envelope with a Retry-After header.
    """
    retry_after = "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": "Too many requests. Please slow down.",
                "details": {
                    "limit": str(exc.detail),
                    "retry_after_seconds": int(retry_after),
                },
            },
        },
        headers={
            "Retry-After": retry_after,
            "X-RateLimit-Limit": str(settings.RATE_LIMIT_PER_MINUTE),
        }
    )


@dataclass
class _AttemptRecord:
    count: int
    last_attempt: float


class LoginAttemptLimiter:
    """
    Fixed-count limiter over a sliding window anchored at the last
    allowed attempt.

    - unknown identifier: start counting at 1, allow
    - window elapsed since the last allowed attempt: restart at 1, allow
    - count reached max_attempts: reject, state untouched
    - otherwise: count + 1, allow
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._attempts: Dict[str, _AttemptRecord] = {}
        self._lock = Lock()

    def check(self, identifier: str) -> bool:
        """Record an attempt for identifier; False when it must be rejected"""
        now = self._clock()
        with self._lock:
            record = self._attempts.get(identifier)

            if record is None or now - record.last_attempt > self.window_seconds:
                self._attempts[identifier] = _AttemptRecord(count=1, last_attempt=now)
                return True

            if record.count >= self.max_attempts:
                return False

            record.count += 1
            record.last_attempt = now
            return True

    def retry_after(self, identifier: str) -> int:
        """Seconds until identifier may try again (0 when not blocked)"""
        with self._lock:
            record = self._attempts.get(identifier)
            if record is None or record.count < self.max_attempts:
                return 0
            remaining = self.window_seconds - (self._clock() - record.last_attempt)
        if remaining <= 0:
            return 0
        return math.ceil(remaining)

    def attempts(self, identifier: str) -> int:
        record = self._attempts.get(identifier)
        return record.count if record else 0

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._attempts.pop(identifier, None)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()


email_login_limiter = LoginAttemptLimiter(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS,
    window_seconds=settings.LOGIN_WINDOW_SECONDS,
)

ip_login_limiter = LoginAttemptLimiter(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS_PER_IP,
    window_seconds=settings.LOGIN_WINDOW_SECONDS,
)
