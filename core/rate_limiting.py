"""
Fixed-window rate limiting for API endpoints.

Two interchangeable backends sit behind the same ``check()`` interface:

    - MemoryRateLimiter: process-local counters. Best-effort only; every
      process (worker, instance) keeps its own buckets.
    - RedisRateLimiter: shared INCR/PEXPIRE counters for multi-instance
      deployments.

The backend is chosen by ``settings.RATE_LIMIT_BACKEND`` and built once per
process by ``get_rate_limiter()``.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from functools import lru_cache, wraps

import redis
from django.conf import settings
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = 'unknown-client'
SWEEP_INTERVAL = 100


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at_ms: int

    def retry_after_seconds(self, current_ms=None) -> int:
        current_ms = now_ms() if current_ms is None else current_ms
        return max(0, math.ceil((self.reset_at_ms - current_ms) / 1000))


@dataclass
class RateLimitEntry:
    count: int
    reset_at_ms: int


class MemoryRateLimiter:
    """
    Fixed-window counter per identifier held in a process-local dict.

    Expired entries are swept every ``sweep_interval`` calls, and also
    whenever the table grows past ``max_entries``.
    """

    def __init__(self, max_entries: int = 10000, sweep_interval: int = SWEEP_INTERVAL, clock=None):
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock or now_ms
        self._entries = {}
        self._calls = 0
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entries)

    def check(self, identifier: str, max_requests: int, window_ms: int) -> RateLimitResult:
        current = self._clock()
        with self._lock:
            self._calls += 1
            if self._calls >= self.sweep_interval or len(self._entries) >= self.max_entries:
                self._sweep(current)
                self._calls = 0

            entry = self._entries.get(identifier)
            if entry is None or entry.reset_at_ms < current:
                entry = RateLimitEntry(count=1, reset_at_ms=current + window_ms)
                self._entries[identifier] = entry
                return RateLimitResult(True, max_requests - 1, entry.reset_at_ms)

            if entry.count >= max_requests:
                return RateLimitResult(False, 0, entry.reset_at_ms)

            entry.count += 1
            return RateLimitResult(True, max_requests - entry.count, entry.reset_at_ms)

    def _sweep(self, current: int) -> None:
        expired = [key for key, entry in self._entries.items() if entry.reset_at_ms < current]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Rate limiter swept {len(expired)} expired entries")

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()
            self._calls = 0


class RedisRateLimiter:
    """
    Fixed-window counter shared through Redis.

    Fails open: if Redis errors, the request is allowed.
    """

    key_prefix = 'rate_limit'

    def __init__(self, client):
        self.client = client

    def check(self, identifier: str, max_requests: int, window_ms: int) -> RateLimitResult:
        key = f"{self.key_prefix}:{identifier}"
        current = now_ms()
        try:
            count = self.client.incr(key)
            if count == 1:
                self.client.pexpire(key, window_ms)
            ttl = self.client.pttl(key)
            if ttl is None or ttl < 0:
                # Key lost its expiry (e.g. crash between INCR and PEXPIRE)
                self.client.pexpire(key, window_ms)
                ttl = window_ms
        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            return RateLimitResult(True, max_requests, current + window_ms)

        reset_at = current + ttl
        if count > max_requests:
            return RateLimitResult(False, 0, reset_at)
        return RateLimitResult(True, max_requests - count, reset_at)

    def reset(self) -> None:
        try:
            for key in self.client.scan_iter(f"{self.key_prefix}:*"):
                self.client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Redis error while resetting rate limits: {e}")


@lru_cache(maxsize=1)
def get_rate_limiter():
    """Build the configured rate limiter once per process."""
    backend = getattr(settings, 'RATE_LIMIT_BACKEND', 'memory')
    if backend == 'redis':
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5
        )
        logger.info("Using Redis rate limiter")
        return RedisRateLimiter(client)
    return MemoryRateLimiter(max_entries=getattr(settings, 'RATE_LIMIT_MAX_ENTRIES', 10000))


def get_client_identifier(request) -> str:
    """
    Extract the client identifier from request headers.

    Clients without forwarding headers all share the ``unknown-client``
    bucket.
    """
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        first = forwarded_for.split(',')[0].strip()
        if first:
            return first
    real_ip = request.META.get('HTTP_X_REAL_IP', '').strip()
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


def rate_limit(max_requests: int = 5, window_seconds: int = 60):
    """
    Fixed-window rate limiting decorator for DRF view methods.

    Args:
        max_requests: Maximum number of requests allowed in the window
        window_seconds: Time window in seconds

    Usage:
        @rate_limit(5, 60)  # 5 requests per minute
        def post(self, request):
            ...
    """
    window_ms = window_seconds * 1000

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(self, request, *args, **kwargs):
            if not getattr(settings, 'RATE_LIMIT_ENABLED', True):
                return view_func(self, request, *args, **kwargs)

            identifier = get_client_identifier(request)
            result = get_rate_limiter().check(identifier, max_requests, window_ms)
            retry_after = result.retry_after_seconds()

            if not result.allowed:
                logger.info(f"Rate limit exceeded for {identifier}")
                return Response(
                    {
                        'error': 'Too many requests. Please try again later.',
                        'retryAfter': retry_after
                    },
                    status=status.HTTP_429_TOO_MANY_REQUESTS,
                    headers={
                        'X-RateLimit-Limit': str(max_requests),
                        'X-RateLimit-Remaining': '0',
                        'X-RateLimit-Reset': str(retry_after),
                        'Retry-After': str(retry_after)
                    }
                )

            response = view_func(self, request, *args, **kwargs)
            response['X-RateLimit-Limit'] = str(max_requests)
            response['X-RateLimit-Remaining'] = str(result.remaining)
            response['X-RateLimit-Reset'] = str(retry_after)
            return response

        return wrapper
    return decorator
