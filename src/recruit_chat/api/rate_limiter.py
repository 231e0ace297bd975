"""Per-client sliding window rate limiting."""

import asyncio
import time
from collections import deque
from typing import Deque, Dict, Optional

from fastapi import Request
from structlog import get_logger

logger = get_logger()


class RateLimitExceeded(Exception):
    """Raised when a client exceeds its request budget."""
    pass


class RateLimiter:
    """Allows ``rate_limit`` requests per ``time_window`` seconds for each key."""

    def __init__(self, rate_limit: int = 100, time_window: int = 60):
        self.rate_limit = rate_limit
        self.time_window = time_window
        self.requests: Dict[str, Deque[float]] = {}
        self._sweep_task: Optional[asyncio.Task] = None
        logger.info("rate_limiter_initialized", rate_limit=rate_limit, time_window=time_window)

    async def start(self) -> None:
        """Start the periodic sweep of idle keys."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._periodic_sweep())

    async def stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None

    async def _periodic_sweep(self) -> None:
        while True:
            await asyncio.sleep(self.time_window)
            self.sweep(time.monotonic())

    def sweep(self, now: float) -> None:
        """Drop timestamps outside the window and keys left empty."""
        for key in list(self.requests):
            self._trim(key, now)
            if not self.requests[key]:
                del self.requests[key]

    def _trim(self, key: str, now: float) -> Deque[float]:
        window = self.requests.setdefault(key, deque())
        while window and now - window[0] >= self.time_window:
            window.popleft()
        return window

    def check_rate_limit(self, key: str) -> None:
        """Record a request for ``key`` or raise RateLimitExceeded."""
        now = time.monotonic()
        window = self._trim(key, now)
        if len(window) >= self.rate_limit:
            logger.warning(
                "rate_limit_exceeded",
                key=key,
                current_requests=len(window),
                rate_limit=self.rate_limit,
            )
            raise RateLimitExceeded(
                f"Rate limit of {self.rate_limit} requests per {self.time_window} seconds exceeded"
            )
        window.append(now)

    def get_remaining_requests(self, key: str) -> int:
        return max(0, self.rate_limit - len(self._trim(key, time.monotonic())))


def client_key(request: Request) -> str:
    client_ip = request.client.host if request.client else "unknown"
    return f"{client_ip}:{request.url.path}"
