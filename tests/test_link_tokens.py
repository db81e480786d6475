from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from app.core.enums import LessonStatusEnum, LinkTokenPurposeEnum
from app.core.security import generate_link_token, hash_link_token
from app.modules.links.service import LessonLinkService, LinkTokenService, ParentLinkDispatcher
from app.shared.exceptions import InvalidLinkTokenException


@dataclass
class FakeToken:
    id: UUID
    lesson_id: UUID
    token_hash: str
    purpose: LinkTokenPurposeEnum
    expires_at: datetime
    used_at: datetime | None = None


@dataclass
class FakeLinkTokensRepository:
    lesson_statuses: dict[UUID, LessonStatusEnum] = field(default_factory=dict)
    tokens: list[FakeToken] = field(default_factory=list)

    async def create_token(self, lesson_id, token_hash, purpose, expires_at) -> FakeToken:
        token = FakeToken(uuid4(), lesson_id, token_hash, purpose, expires_at)
        self.tokens.append(token)
        return token

    async def find_redeemable(self, token_hash, purpose, lesson_id, lesson_status, now) -> FakeToken | None:
        for token in self.tokens:
            if (
                token.token_hash == token_hash
                and token.purpose == purpose
                and token.lesson_id == lesson_id
                and token.used_at is None
                and token.expires_at > now
                and self.lesson_statuses.get(lesson_id) == lesson_status
            ):
                return token
        return None

    async def mark_used(self, token_id: UUID, now: datetime) -> bool:
        token = next(item for item in self.tokens if item.id == token_id)
        if token.used_at is not None:
            return False
        token.used_at = now
        return True


class FakeLessonsRepository:
    def __init__(self, cards: dict[UUID, tuple]) -> None:
        self.cards = cards

    async def get_lesson_card(self, lesson_id: UUID):
        return self.cards.get(lesson_id)


def _in_days(days: int) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


def test_generated_tokens_are_long_random_hex() -> None:
    first = generate_link_token()
    second = generate_link_token()

    assert len(first) == 64
    assert int(first, 16) >= 0
    assert first != second
    assert hash_link_token(first) != first
    assert hash_link_token(first) == hash_link_token(first)


@pytest.mark.asyncio
async def test_issue_stores_only_the_hash() -> None:
    lesson_id = uuid4()
    repository = FakeLinkTokensRepository({lesson_id: LessonStatusEnum.CONFIRMED})
    service = LinkTokenService(repository)

    raw_token = await service.issue(lesson_id, LinkTokenPurposeEnum.CANCEL, _in_days(2))

    stored = repository.tokens[0]
    assert stored.token_hash == hash_link_token(raw_token)
    assert raw_token not in {stored.token_hash, str(stored.id)}


@pytest.mark.asyncio
async def test_redeem_requires_matching_lesson_status() -> None:
    lesson_id = uuid4()
    repository = FakeLinkTokensRepository({lesson_id: LessonStatusEnum.REQUESTED})
    service = LinkTokenService(repository)
    raw_token = await service.issue(lesson_id, LinkTokenPurposeEnum.CANCEL, _in_days(2))

    with pytest.raises(InvalidLinkTokenException):
        await service.redeem(raw_token, LinkTokenPurposeEnum.CANCEL, lesson_id)

    repository.lesson_statuses[lesson_id] = LessonStatusEnum.CONFIRMED
    token = await service.redeem(raw_token, LinkTokenPurposeEnum.CANCEL, lesson_id)
    assert token.used_at is None


@pytest.mark.asyncio
async def test_empty_or_unknown_token_is_rejected() -> None:
    lesson_id = uuid4()
    service = LinkTokenService(FakeLinkTokensRepository({lesson_id: LessonStatusEnum.CONFIRMED}))

    with pytest.raises(InvalidLinkTokenException):
        await service.redeem("", LinkTokenPurposeEnum.CANCEL, lesson_id)
    with pytest.raises(InvalidLinkTokenException):
        await service.redeem(generate_link_token(), LinkTokenPurposeEnum.CANCEL, lesson_id)


@pytest.mark.asyncio
async def test_consume_is_single_use() -> None:
    lesson_id = uuid4()
    repository = FakeLinkTokensRepository({lesson_id: LessonStatusEnum.CONFIRMED})
    service = LinkTokenService(repository)
    raw_token = await service.issue(lesson_id, LinkTokenPurposeEnum.RESCHEDULE, _in_days(2))
    token = await service.redeem(raw_token, LinkTokenPurposeEnum.RESCHEDULE, lesson_id)

    await service.consume(token)

    with pytest.raises(InvalidLinkTokenException):
        await service.consume(token)
    with pytest.raises(InvalidLinkTokenException):
        await service.redeem(raw_token, LinkTokenPurposeEnum.RESCHEDULE, lesson_id)


def test_dispatcher_builds_parent_urls() -> None:
    lesson_id = uuid4()
    dispatcher = ParentLinkDispatcher("https://rizq.example/")

    urls = dispatcher.dispatch(lesson_id, {LinkTokenPurposeEnum.CANCEL: "abc"})

    assert urls == {LinkTokenPurposeEnum.CANCEL: f"https://rizq.example/l/{lesson_id}/cancel/abc"}


@pytest.mark.asyncio
async def test_peek_describes_lesson_without_consuming_token() -> None:
    lesson_id = uuid4()
    start_at = _in_days(3)
    repository = FakeLinkTokensRepository({lesson_id: LessonStatusEnum.CONFIRMED})
    token_service = LinkTokenService(repository)
    raw_token = await token_service.issue(lesson_id, LinkTokenPurposeEnum.CANCEL, start_at)
    lesson = SimpleNamespace(
        id=lesson_id,
        status=LessonStatusEnum.CONFIRMED,
        student_name="Maya",
        duration_minutes=60,
        confirmed_start_at=start_at,
    )
    service = LessonLinkService(token_service, FakeLessonsRepository({lesson_id: (lesson, "Math", "Farah", None)}))

    details = await service.peek(raw_token, LinkTokenPurposeEnum.CANCEL, lesson_id)

    assert details.lesson_label == "Math"
    assert details.tutor_name == "Farah"
    assert details.cutoff_hours == 24
    assert repository.tokens[0].used_at is None


@pytest.mark.asyncio
async def test_peek_with_wrong_purpose_is_rejected() -> None:
    lesson_id = uuid4()
    repository = FakeLinkTokensRepository({lesson_id: LessonStatusEnum.CONFIRMED})
    token_service = LinkTokenService(repository)
    raw_token = await token_service.issue(lesson_id, LinkTokenPurposeEnum.CANCEL, _in_days(3))
    service = LessonLinkService(token_service, FakeLessonsRepository({}))

    with pytest.raises(InvalidLinkTokenException):
        await service.peek(raw_token, LinkTokenPurposeEnum.RATE, lesson_id)
