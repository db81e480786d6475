"""Sliding-window rate limiting for public endpoints.

Two backends share one contract: an in-process limiter for single-worker
deployments and tests, and a Redis limiter whose windows are shared by
every API worker.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections import deque
from collections.abc import Callable
from typing import Protocol
from uuid import uuid4

from redis.asyncio import Redis

from app.core.config import Settings, get_settings
from app.shared.exceptions import RateLimitException


class RateLimiter(Protocol):
    """Limiter backend contract."""

    async def acquire(
        self,
        key: str,
        *,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, int]:
        """Reserve one request; return (allowed, retry_after_seconds)."""

    async def clear(self) -> None:
        """Forget all tracked requests."""


def _retry_after(oldest_hit: float, window_seconds: int, now: float) -> int:
    return max(1, math.ceil(oldest_hit + window_seconds - now))


class InMemorySlidingWindowRateLimiter:
    """Per-process limiter keeping accepted request times per key."""

    def __init__(self, now_provider: Callable[[], float] | None = None) -> None:
        self._now = now_provider or time.monotonic
        self._hits: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    async def acquire(
        self,
        key: str,
        *,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, int]:
        now = self._now()
        async with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()
            if len(hits) >= max_requests:
                return False, _retry_after(hits[0], window_seconds, now)
            hits.append(now)
            return True, 0

    async def clear(self) -> None:
        async with self._lock:
            self._hits.clear()


class RedisSlidingWindowRateLimiter:
    """Limiter on Redis sorted sets, one set per key scored by request time."""

    def __init__(
        self,
        *,
        redis_url: str,
        namespace: str,
        now_provider: Callable[[], float] | None = None,
    ) -> None:
        self._client = Redis.from_url(redis_url, decode_responses=True)
        self._namespace = namespace
        self._now = now_provider or time.time

    def _storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def acquire(
        self,
        key: str,
        *,
        max_requests: int,
        window_seconds: int,
    ) -> tuple[bool, int]:
        now = self._now()
        storage_key = self._storage_key(key)
        member = f"{now}:{uuid4().hex}"

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(storage_key, "-inf", now - window_seconds)
            pipe.zadd(storage_key, {member: now})
            pipe.zcard(storage_key)
            pipe.zrange(storage_key, 0, 0, withscores=True)
            pipe.expire(storage_key, math.ceil(window_seconds))
            _, _, count, oldest, _ = await pipe.execute()

        if count <= max_requests:
            return True, 0

        # Rejected requests do not occupy the window.
        await self._client.zrem(storage_key, member)
        oldest_hit = float(oldest[0][1]) if oldest else now
        return False, _retry_after(oldest_hit, window_seconds, now)

    async def clear(self) -> None:
        keys = [key async for key in self._client.scan_iter(match=self._storage_key("*"), count=100)]
        if keys:
            await self._client.delete(*keys)


_rate_limiter: RateLimiter | None = None
_rate_limiter_signature: tuple[str, str | None, str] | None = None


def _limiter_signature(settings: Settings) -> tuple[str, str | None, str]:
    return settings.rate_limit_backend, settings.redis_url, settings.rate_limit_redis_namespace


def get_rate_limiter() -> RateLimiter:
    """Shared limiter; rebuilt when backend settings change."""
    global _rate_limiter, _rate_limiter_signature
    settings = get_settings()
    signature = _limiter_signature(settings)
    if _rate_limiter is not None and _rate_limiter_signature == signature:
        return _rate_limiter

    if settings.rate_limit_backend == "redis":
        _rate_limiter = RedisSlidingWindowRateLimiter(
            redis_url=settings.redis_url or "",
            namespace=settings.rate_limit_redis_namespace,
        )
    else:
        _rate_limiter = InMemorySlidingWindowRateLimiter()
    _rate_limiter_signature = signature
    return _rate_limiter


async def enforce_rate_limit(key: str, *, action: str, max_requests: int) -> None:
    """Reserve one request for key or raise RateLimitException."""
    settings = get_settings()
    allowed, retry_after = await get_rate_limiter().acquire(
        key,
        max_requests=max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    if not allowed:
        raise RateLimitException(f"Too many {action} requests. Try again in {retry_after} second(s).")
