from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core import rate_limit as rate_limit_module
from app.core.rate_limit import InMemorySlidingWindowRateLimiter, RedisSlidingWindowRateLimiter
from app.modules.booking import rate_limit as booking_rate_limit
from app.shared.exceptions import RateLimitException


class FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.commands: list = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    def zremrangebyscore(self, key: str, minimum: str, maximum: float) -> None:
        self.commands.append(lambda: self.redis.drop_older(key, maximum))

    def zadd(self, key: str, mapping: dict[str, float]) -> None:
        self.commands.append(lambda: self.redis.sets.setdefault(key, {}).update(mapping) or len(mapping))

    def zcard(self, key: str) -> None:
        self.commands.append(lambda: len(self.redis.sets.get(key, {})))

    def zrange(self, key: str, start: int, end: int, withscores: bool = False) -> None:
        def _oldest() -> list[tuple[str, float]]:
            ordered = sorted(self.redis.sets.get(key, {}).items(), key=lambda item: item[1])
            return ordered[start : end + 1]

        self.commands.append(_oldest)

    def expire(self, key: str, seconds: int) -> None:
        self.commands.append(lambda: self.redis.expirations.__setitem__(key, seconds) or True)

    async def execute(self) -> list:
        return [command() for command in self.commands]


class FakeRedis:
    def __init__(self) -> None:
        self.sets: dict[str, dict[str, float]] = {}
        self.expirations: dict[str, int] = {}
        self.removed: list[str] = []

    def drop_older(self, key: str, maximum: float) -> int:
        members = self.sets.get(key, {})
        stale = [member for member, score in members.items() if score <= maximum]
        for member in stale:
            del members[member]
        return len(stale)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        assert transaction is True
        return FakePipeline(self)

    async def zrem(self, key: str, member: str) -> int:
        self.removed.append(member)
        return 1 if self.sets.get(key, {}).pop(member, None) is not None else 0

    async def scan_iter(self, match: str, count: int):
        prefix = match.rstrip("*")
        for key in list(self.sets):
            if key.startswith(prefix):
                yield key

    async def delete(self, *keys: str) -> int:
        for key in keys:
            self.sets.pop(key, None)
        return len(keys)


def _redis_limiter(
    monkeypatch: pytest.MonkeyPatch,
    clock: list[float],
) -> tuple[RedisSlidingWindowRateLimiter, FakeRedis]:
    fake_redis = FakeRedis()
    monkeypatch.setattr(
        rate_limit_module,
        "Redis",
        SimpleNamespace(from_url=lambda url, decode_responses: fake_redis),
    )
    limiter = RedisSlidingWindowRateLimiter(
        redis_url="redis://redis:6379/0",
        namespace="rizq_test",
        now_provider=lambda: clock[0],
    )
    return limiter, fake_redis


@pytest.mark.asyncio
async def test_in_memory_window_is_tracked_per_tutor_key() -> None:
    clock = [500.0]
    limiter = InMemorySlidingWindowRateLimiter(now_provider=lambda: clock[0])
    busy_key = f"booking:lesson_request:{uuid4()}"
    quiet_key = f"booking:lesson_request:{uuid4()}"

    assert await limiter.acquire(busy_key, max_requests=1, window_seconds=30) == (True, 0)
    clock[0] = 512.0
    assert await limiter.acquire(busy_key, max_requests=1, window_seconds=30) == (False, 18)
    assert await limiter.acquire(quiet_key, max_requests=1, window_seconds=30) == (True, 0)

    clock[0] = 530.0
    assert await limiter.acquire(busy_key, max_requests=1, window_seconds=30) == (True, 0)


@pytest.mark.asyncio
async def test_rejected_in_memory_hits_do_not_extend_the_window() -> None:
    clock = [0.0]
    limiter = InMemorySlidingWindowRateLimiter(now_provider=lambda: clock[0])
    key = f"booking:rating:{uuid4()}"

    await limiter.acquire(key, max_requests=1, window_seconds=10)
    for second in (2.0, 5.0, 9.0):
        clock[0] = second
        allowed, _ = await limiter.acquire(key, max_requests=1, window_seconds=10)
        assert allowed is False

    clock[0] = 10.0
    assert await limiter.acquire(key, max_requests=1, window_seconds=10) == (True, 0)


@pytest.mark.asyncio
async def test_enforce_rate_limit_reports_retry_after(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [1000.0]
    limiter = InMemorySlidingWindowRateLimiter(now_provider=lambda: clock[0])
    settings = SimpleNamespace(rate_limit_window_seconds=60, rate_limit_lesson_request_requests=1)
    monkeypatch.setattr(rate_limit_module, "get_rate_limiter", lambda: limiter)
    monkeypatch.setattr(rate_limit_module, "get_settings", lambda: settings)
    monkeypatch.setattr(booking_rate_limit, "get_settings", lambda: settings)
    tutor_id = uuid4()

    await booking_rate_limit.enforce_lesson_request_rate_limit(tutor_id)
    clock[0] = 1045.5

    with pytest.raises(RateLimitException) as exc_info:
        await booking_rate_limit.enforce_lesson_request_rate_limit(tutor_id)

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Too many lesson request requests. Try again in 15 second(s)."


@pytest.mark.asyncio
async def test_redis_limiter_drops_rejected_member(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [100.0]
    limiter, fake_redis = _redis_limiter(monkeypatch, clock)
    lesson_id = uuid4()
    storage_key = f"rizq_test:booking:rating:{lesson_id}"

    assert await limiter.acquire(f"booking:rating:{lesson_id}", max_requests=2, window_seconds=60) == (True, 0)
    clock[0] = 110.0
    assert await limiter.acquire(f"booking:rating:{lesson_id}", max_requests=2, window_seconds=60) == (True, 0)
    clock[0] = 120.0
    allowed, retry_after = await limiter.acquire(
        f"booking:rating:{lesson_id}",
        max_requests=2,
        window_seconds=60,
    )

    assert allowed is False
    assert retry_after == 40
    assert len(fake_redis.removed) == 1
    assert sorted(fake_redis.sets[storage_key].values()) == [100.0, 110.0]
    assert fake_redis.expirations[storage_key] == 60

    clock[0] = 161.0
    assert await limiter.acquire(f"booking:rating:{lesson_id}", max_requests=2, window_seconds=60) == (True, 0)
    assert sorted(fake_redis.sets[storage_key].values()) == [110.0, 161.0]


@pytest.mark.asyncio
async def test_redis_clear_only_touches_own_namespace(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [10.0]
    limiter, fake_redis = _redis_limiter(monkeypatch, clock)
    fake_redis.sets["other_app:key"] = {"member": 1.0}

    await limiter.acquire("identity:otp_send:+9613123456", max_requests=5, window_seconds=60)
    await limiter.clear()

    assert list(fake_redis.sets) == ["other_app:key"]


def test_get_rate_limiter_follows_backend_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_redis = FakeRedis()
    monkeypatch.setattr(
        rate_limit_module,
        "Redis",
        SimpleNamespace(from_url=lambda url, decode_responses: fake_redis),
    )
    settings = SimpleNamespace(
        rate_limit_backend="memory",
        redis_url=None,
        rate_limit_redis_namespace="rizq_rate_limit",
    )
    monkeypatch.setattr(rate_limit_module, "get_settings", lambda: settings)
    monkeypatch.setattr(rate_limit_module, "_rate_limiter", None)
    monkeypatch.setattr(rate_limit_module, "_rate_limiter_signature", None)

    memory_limiter = rate_limit_module.get_rate_limiter()
    assert isinstance(memory_limiter, InMemorySlidingWindowRateLimiter)
    assert rate_limit_module.get_rate_limiter() is memory_limiter

    settings.rate_limit_backend = "redis"
    settings.redis_url = "redis://redis:6379/0"
    redis_limiter = rate_limit_module.get_rate_limiter()

    assert isinstance(redis_limiter, RedisSlidingWindowRateLimiter)
    assert redis_limiter._storage_key("booking:rating:x") == "rizq_rate_limit:booking:rating:x"
