#!/usr/bin/env python3
"""
Toolkit Security - Per-address windowed rate limiting for the HTTP transport
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict

from starlette.datastructures import MutableHeaders
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


@dataclass
class RateLimitWindow:
    """Request counter for one client address"""
    count: int = 0
    reset_at: float = 0.0


@dataclass
class RateLimitDecision:
    """Outcome of one rate limit check, used for the RateLimit-* headers"""
    allowed: bool
    limit: int
    remaining: int
    reset_in: int


class RateLimiter:
    """
    Fixed-window request counter keyed by client address.

    Each address gets max_requests per window_seconds; the window starts with
    the first request after the previous one expired.
    """

    def __init__(self,
                 max_requests: int = 100,
                 window_seconds: int = 900,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}

    def check(self, address: str) -> RateLimitDecision:
        """Count one request from address and decide whether it may proceed"""
        now = self._clock()
        window = self._windows.get(address)

        # Reset counter if window has passed
        if window is None or now >= window.reset_at:
            window = RateLimitWindow(count=0, reset_at=now + self.window_seconds)
            self._windows[address] = window

        reset_in = max(0, int(round(window.reset_at - now)))

        if window.count >= self.max_requests:
            logger.warning(f"Rate limit exceeded for {address}")
            return RateLimitDecision(False, self.max_requests, 0, reset_in)

        window.count += 1
        return RateLimitDecision(True, self.max_requests, self.max_requests - window.count, reset_in)

    def purge_expired(self) -> int:
        """Drop counters whose window has passed"""
        now = self._clock()
        expired = [address for address, window in self._windows.items() if now >= window.reset_at]
        for address in expired:
            del self._windows[address]
        return len(expired)


class RateLimitMiddleware:
    """
    ASGI middleware that counts every HTTP request against its client address.

    Event streams pass through unbuffered. The RateLimit-* headers are added
    to every response start message, rejected or not.
    """

    def __init__(self, app: ASGIApp, limiter: RateLimiter):
        self.app = app
        self.limiter = limiter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        decision = self.limiter.check(client[0] if client else "unknown")

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers["RateLimit-Limit"] = str(decision.limit)
                headers["RateLimit-Remaining"] = str(decision.remaining)
                headers["RateLimit-Reset"] = str(decision.reset_in)
            await send(message)

        if not decision.allowed:
            response = PlainTextResponse("Too many requests from this IP, please try again later", status_code=429)
            await response(scope, receive, send_with_headers)
            return

        await self.app(scope, receive, send_with_headers)
