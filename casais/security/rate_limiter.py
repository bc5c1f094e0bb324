"""Sliding window rate limiting for the public credential endpoints."""

from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Deque, Protocol

from ..config import Settings

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def allow(self, key: str) -> bool:
        ...


class SlidingWindowRateLimiter:
    """Thread-safe in-process limiter keyed by an arbitrary string."""

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._events: defaultdict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def allow(self, key: str) -> bool:
        """Return ``True`` when the request is within the configured rate limit."""
        now = time.monotonic()
        with self._lock:
            hits = self._events[key]
            while hits and now - hits[0] > self._window:
                hits.popleft()
            if len(hits) >= self._max_requests:
                return False
            hits.append(now)
            return True


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Instantiate the configured backend, preferring Redis when reachable."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        import redis

        from .redis_rate_limiter import RedisSlidingWindowRateLimiter

        client = redis.from_url(settings.redis_url)
        try:
            # fail fast so a dead Redis falls back to process memory
            client.ping()
        except redis.RedisError as exc:
            logger.warning("redis rate limiter unavailable, falling back to in-memory: %s", exc)
        else:
            logger.info("rate limiter configured for redis backend at %s", settings.redis_url)
            return RedisSlidingWindowRateLimiter(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )

    logger.info("rate limiter using in-memory backend")
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
