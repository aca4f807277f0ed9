# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

from api.utils.debug import print__rate_limit_debug


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int
    count: int
    limit: int


class FixedWindowRateLimiter:
    """Per-client request counter over fixed windows.

    Holds ``client_id -> (window_start, count)`` in memory only. One instance
    lives on ``app.state``; it is not shared across processes.
    """

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def check(self, client_id: str) -> RateLimitDecision:
        """Count one request for ``client_id`` and decide whether it may proceed."""
        now = self._clock()
        window_start, count = self._windows.get(client_id, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0

        count += 1
        self._windows[client_id] = (window_start, count)

        allowed = count <= self.limit
        retry_after = 0
        if not allowed:
            retry_after = max(int(window_start + self.window_seconds - now + 0.999), 1)
            print__rate_limit_debug(
                f"⚠️ Rate limit hit for {client_id}: {count}/{self.limit}, retry in {retry_after}s"
            )
        return RateLimitDecision(
            allowed=allowed,
            remaining=max(self.limit - count, 0),
            retry_after=retry_after,
            count=count,
            limit=self.limit,
        )

    def reset(self) -> None:
        self._windows.clear()
