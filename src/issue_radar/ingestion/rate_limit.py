"""Quota telemetry checks for the GitHub API."""
import math
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate limit information returned with each API response."""
    remaining: int
    limit: int
    reset_at: datetime


class RateLimitExceeded(Exception):
    """
    Raised when the API quota is (nearly) exhausted.

    Carries the wait duration and absolute reset instant so callers can
    branch on the exception type instead of parsing messages.
    """

    def __init__(self, wait_seconds: float, reset_at: datetime, info: Optional[RateLimitInfo] = None):
        self.wait_seconds = max(0.0, wait_seconds)
        self.reset_at = reset_at
        self.info = info
        super().__init__(
            f"Rate limit exceeded. Retry after {math.ceil(self.wait_seconds)} seconds."
        )


class RateLimitGuard:
    """Stops a scan before the remaining quota hits zero."""

    def __init__(self, safety_margin: int = 3, clock: Optional[Callable[[], datetime]] = None):
        self.safety_margin = safety_margin
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def check(self, info: RateLimitInfo) -> None:
        logger.info(f"RATE_LIMIT remaining={info.remaining} limit={info.limit} reset_at={info.reset_at.isoformat()}")
        if info.remaining < self.safety_margin:
            wait_seconds = (info.reset_at - self._clock()).total_seconds()
            logger.warning(
                f"RATE_LIMIT_GUARD tripped remaining={info.remaining} "
                f"margin={self.safety_margin} wait_seconds={max(0, math.ceil(wait_seconds))}"
            )
            raise RateLimitExceeded(wait_seconds, info.reset_at, info)
