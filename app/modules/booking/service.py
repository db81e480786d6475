"""Booking lifecycle business logic layer."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import (
    ActorEnum,
    LinkTokenPurposeEnum,
    NotificationTypeEnum,
    RescheduleStatusEnum,
)
from app.core.metrics import record_lesson_transition
from app.modules.booking.models import Rating, RescheduleRequest
from app.modules.booking.repository import BookingRepository
from app.modules.booking.schemas import LessonRequestCreate
from app.modules.booking.state_machine import LessonEvent, get_transition
from app.modules.lessons.models import Lesson
from app.modules.lessons.repository import LessonsRepository
from app.modules.links.repository import LinkTokensRepository
from app.modules.links.service import LinkTokenService, ParentLinkDispatcher
from app.modules.notifications.repository import NotificationsRepository
from app.modules.notifications.service import NotificationsService
from app.modules.tutors.repository import TutorsRepository
from app.shared.exceptions import (
    AppException,
    BadRequestException,
    InvalidLinkTokenException,
    TransitionConflictException,
)
from app.shared.utils import ensure_utc, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

INVALID_PRICING_MESSAGE = "Invalid lesson or pricing details provided."


def is_late_cancellation(start_at: datetime, now: datetime, cutoff_hours: int) -> bool:
    """Late when fewer than cutoff_hours remain; exactly cutoff_hours is on time."""
    hours_until_start = (start_at - now).total_seconds() / 3600
    return hours_until_start < cutoff_hours


def round_average(value: Decimal | float | None) -> Decimal:
    """Round rating average to two places."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def overlaps(
    start_at: datetime,
    duration_minutes: int,
    other_start_at: datetime,
    other_duration_minutes: int,
) -> bool:
    """Whether two lesson intervals intersect."""
    end_at = start_at + timedelta(minutes=duration_minutes)
    other_end_at = other_start_at + timedelta(minutes=other_duration_minutes)
    return start_at < other_end_at and other_start_at < end_at


class BookingService:
    """Lesson lifecycle engine: request, accept, reschedule, cancel, complete, rate."""

    def __init__(
        self,
        lessons_repository: LessonsRepository,
        booking_repository: BookingRepository,
        tutors_repository: TutorsRepository,
        link_token_service: LinkTokenService,
        notifications_service: NotificationsService,
        link_dispatcher: ParentLinkDispatcher | None = None,
    ) -> None:
        self.lessons_repository = lessons_repository
        self.booking_repository = booking_repository
        self.tutors_repository = tutors_repository
        self.link_token_service = link_token_service
        self.notifications_service = notifications_service
        self.link_dispatcher = link_dispatcher or ParentLinkDispatcher()

    async def _apply(
        self,
        event: LessonEvent,
        lesson_id: UUID,
        *,
        tutor_id: UUID | None = None,
        conflict: type[AppException] = TransitionConflictException,
        **values: Any,
    ) -> None:
        transition = get_transition(event)
        applied = await self.lessons_repository.transition(
            lesson_id,
            source=transition.source,
            target=transition.target,
            tutor_id=tutor_id,
            **values,
        )
        record_lesson_transition(event, "applied" if applied else "rejected")
        if not applied:
            logger.info("Transition %s rejected for lesson %s", event, lesson_id)
            raise conflict()

    async def _reload(self, lesson_id: UUID) -> Lesson:
        lesson = await self.lessons_repository.get_lesson_by_id(lesson_id)
        if lesson is None:
            raise TransitionConflictException()
        return lesson

    async def _cutoff_hours(self, tutor_id: UUID) -> int:
        policy = await self.tutors_repository.get_cancellation_policy(tutor_id)
        if policy is None:
            return settings.default_cancellation_cutoff_hours
        return policy.cutoff_hours

    async def create_lesson_request(self, payload: LessonRequestCreate) -> Lesson:
        """Create lesson in requested status at the tutor's verified price."""
        requested_start_at = ensure_utc(payload.requested_start_at)
        if requested_start_at <= utc_now():
            raise BadRequestException("Requested start must be in the future")

        tutor = await self.tutors_repository.get_tutor_by_id(payload.tutor_id)
        if tutor is None or not tutor.is_active:
            raise BadRequestException(INVALID_PRICING_MESSAGE)

        lesson_type = await self.tutors_repository.get_active_lesson_type(payload.lesson_type_id, tutor.id)
        if lesson_type is None:
            raise BadRequestException(INVALID_PRICING_MESSAGE)

        price = await self.tutors_repository.get_active_price(
            lesson_type.id,
            tutor.id,
            payload.duration_minutes,
        )
        if price is None:
            raise BadRequestException(INVALID_PRICING_MESSAGE)

        for other in await self.lessons_repository.list_blocking_lessons(tutor.id):
            other_start = other.confirmed_start_at or other.requested_start_at
            if overlaps(requested_start_at, payload.duration_minutes, other_start, other.duration_minutes):
                raise BadRequestException("Requested time overlaps an existing lesson")

        lesson = await self.lessons_repository.create_lesson(
            tutor_id=tutor.id,
            lesson_type_id=lesson_type.id,
            student_name=payload.student_name.strip(),
            duration_minutes=payload.duration_minutes,
            price_amount=price.price_amount,
            requested_start_at=requested_start_at,
            level=payload.level,
            note=payload.note,
            district=payload.district,
        )
        await self.lessons_repository.create_payment(lesson.id)
        record_lesson_transition(LessonEvent.CREATE, "applied")

        await self.notifications_service.notify_tutor(
            tutor_id=tutor.id,
            notification_type=NotificationTypeEnum.LESSON_REQUESTED,
            title="New lesson request",
            body=f"{lesson.student_name} requested {lesson_type.label} ({lesson.duration_minutes} min)",
            lesson_id=lesson.id,
        )
        return lesson

    async def accept_request(self, lesson_id: UUID, tutor_id: UUID) -> Lesson:
        """Confirm requested lesson and send cancel/reschedule links."""
        lesson = await self.lessons_repository.get_lesson_for_tutor(lesson_id, tutor_id)
        if lesson is None:
            raise TransitionConflictException()

        confirmed_start_at = lesson.requested_start_at
        await self._apply(
            LessonEvent.ACCEPT,
            lesson_id,
            tutor_id=tutor_id,
            confirmed_start_at=confirmed_start_at,
        )

        tokens = {
            purpose: await self.link_token_service.issue(lesson_id, purpose, confirmed_start_at)
            for purpose in (LinkTokenPurposeEnum.CANCEL, LinkTokenPurposeEnum.RESCHEDULE)
        }
        self.link_dispatcher.dispatch(lesson_id, tokens)
        return await self._reload(lesson_id)

    async def reject_request(self, lesson_id: UUID, tutor_id: UUID) -> Lesson:
        """Cancel requested lesson on the tutor's behalf."""
        await self._apply(LessonEvent.REJECT, lesson_id, tutor_id=tutor_id)
        await self.booking_repository.create_cancellation(
            lesson_id=lesson_id,
            canceled_by=ActorEnum.TUTOR,
            is_late=False,
            note=None,
            canceled_at=utc_now(),
        )
        return await self._reload(lesson_id)

    async def decide_request(self, lesson_id: UUID, tutor_id: UUID, action: str) -> Lesson:
        """Dispatch tutor accept/reject action."""
        if action == "accept":
            return await self.accept_request(lesson_id, tutor_id)
        if action == "reject":
            return await self.reject_request(lesson_id, tutor_id)
        raise BadRequestException("Invalid action")

    async def complete_lesson(self, lesson_id: UUID, tutor_id: UUID) -> Lesson:
        """Mark confirmed lesson completed and send the rating link."""
        await self._apply(LessonEvent.COMPLETE, lesson_id, tutor_id=tutor_id)

        expires_at = utc_now() + timedelta(days=settings.rate_token_ttl_days)
        raw_token = await self.link_token_service.issue(lesson_id, LinkTokenPurposeEnum.RATE, expires_at)
        self.link_dispatcher.dispatch(lesson_id, {LinkTokenPurposeEnum.RATE: raw_token})
        return await self._reload(lesson_id)

    async def cancel_by_parent(
        self,
        lesson_id: UUID,
        raw_token: str,
        note: str | None = None,
    ) -> tuple[Lesson, bool]:
        """Cancel confirmed lesson via cancel link; returns lesson and lateness."""
        token = await self.link_token_service.redeem(raw_token, LinkTokenPurposeEnum.CANCEL, lesson_id)
        lesson = await self.lessons_repository.get_lesson_by_id(lesson_id)
        if lesson is None or lesson.confirmed_start_at is None:
            raise InvalidLinkTokenException()

        now = utc_now()
        cutoff_hours = await self._cutoff_hours(lesson.tutor_id)
        is_late = is_late_cancellation(lesson.confirmed_start_at, now, cutoff_hours)

        await self.link_token_service.consume(token)
        await self._apply(
            LessonEvent.PARENT_CANCEL,
            lesson_id,
            conflict=InvalidLinkTokenException,
            confirmed_start_at=None,
        )
        await self.booking_repository.create_cancellation(
            lesson_id=lesson_id,
            canceled_by=ActorEnum.PARENT,
            is_late=is_late,
            note=note,
            canceled_at=now,
        )

        await self.notifications_service.notify_tutor(
            tutor_id=lesson.tutor_id,
            notification_type=NotificationTypeEnum.LESSON_CANCELED,
            title="Lesson canceled",
            body=f"{lesson.student_name} canceled{' (late)' if is_late else ''}",
            lesson_id=lesson_id,
        )
        return await self._reload(lesson_id), is_late

    async def request_reschedule(
        self,
        lesson_id: UUID,
        raw_token: str,
        proposed_start_at: datetime,
        reason: str | None = None,
    ) -> RescheduleRequest:
        """Propose new time via reschedule link."""
        proposed_start_at = ensure_utc(proposed_start_at)
        if proposed_start_at <= utc_now():
            raise BadRequestException("Proposed time must be in the future")

        token = await self.link_token_service.redeem(raw_token, LinkTokenPurposeEnum.RESCHEDULE, lesson_id)
        await self.link_token_service.consume(token)
        await self._apply(LessonEvent.PARENT_RESCHEDULE, lesson_id, conflict=InvalidLinkTokenException)

        request = await self.booking_repository.create_reschedule_request(
            lesson_id=lesson_id,
            requested_by=ActorEnum.PARENT,
            proposed_start_at=proposed_start_at,
            reason=reason,
        )

        lesson = await self._reload(lesson_id)
        await self.notifications_service.notify_tutor(
            tutor_id=lesson.tutor_id,
            notification_type=NotificationTypeEnum.RESCHEDULE_REQUESTED,
            title="Reschedule requested",
            body=f"{lesson.student_name} proposed {proposed_start_at.isoformat()}",
            lesson_id=lesson_id,
        )
        return request

    async def _resolve_reschedule(
        self,
        request_id: UUID,
        tutor_id: UUID,
        status: RescheduleStatusEnum,
    ) -> Lesson:
        request = await self.booking_repository.get_pending_reschedule_for_tutor(request_id, tutor_id)
        if request is None:
            raise TransitionConflictException()

        if not await self.booking_repository.resolve_reschedule_request(request.id, status):
            raise TransitionConflictException()

        if status == RescheduleStatusEnum.APPROVED:
            await self._apply(
                LessonEvent.APPROVE_RESCHEDULE,
                request.lesson_id,
                tutor_id=tutor_id,
                confirmed_start_at=request.proposed_start_at,
            )
        else:
            await self._apply(LessonEvent.DECLINE_RESCHEDULE, request.lesson_id, tutor_id=tutor_id)
        return await self._reload(request.lesson_id)

    async def approve_reschedule(self, request_id: UUID, tutor_id: UUID) -> Lesson:
        """Accept proposed time; lesson returns to confirmed at the new start."""
        return await self._resolve_reschedule(request_id, tutor_id, RescheduleStatusEnum.APPROVED)

    async def decline_reschedule(self, request_id: UUID, tutor_id: UUID) -> Lesson:
        """Refuse proposed time; lesson returns to confirmed at the old start."""
        return await self._resolve_reschedule(request_id, tutor_id, RescheduleStatusEnum.DECLINED)

    async def decide_reschedule(self, request_id: UUID, tutor_id: UUID, action: str) -> Lesson:
        """Dispatch tutor approve/decline action."""
        if action == "approve":
            return await self.approve_reschedule(request_id, tutor_id)
        if action == "decline":
            return await self.decline_reschedule(request_id, tutor_id)
        raise BadRequestException("Invalid action")

    async def list_pending_reschedules(self, tutor_id: UUID) -> list[tuple[RescheduleRequest, Lesson, str]]:
        """Pending reschedule requests on the tutor's lessons."""
        return await self.booking_repository.list_pending_reschedules(tutor_id)

    async def rate_lesson(
        self,
        lesson_id: UUID,
        raw_token: str,
        stars: int,
        comment: str | None = None,
    ) -> tuple[Rating, Decimal, int]:
        """Store rating via rate link and refresh the tutor aggregate."""
        if not 1 <= stars <= 5:
            raise BadRequestException("Stars must be between 1 and 5")
        if comment is not None and len(comment) > 140:
            raise BadRequestException("Comment must be at most 140 characters")

        token = await self.link_token_service.redeem(raw_token, LinkTokenPurposeEnum.RATE, lesson_id)
        await self.link_token_service.consume(token)
        await self._apply(LessonEvent.RATE, lesson_id, conflict=InvalidLinkTokenException)

        lesson = await self._reload(lesson_id)
        rating = await self.booking_repository.create_rating(
            lesson_id=lesson_id,
            tutor_id=lesson.tutor_id,
            stars=stars,
            comment=comment or None,
        )

        average, count = await self.tutors_repository.rating_stats(lesson.tutor_id)
        avg_stars = round_average(average)
        await self.tutors_repository.save_rating_summary(lesson.tutor_id, avg_stars, count)

        await self.notifications_service.notify_tutor(
            tutor_id=lesson.tutor_id,
            notification_type=NotificationTypeEnum.LESSON_RATED,
            title="New rating",
            body=f"{lesson.student_name} rated {stars}/5",
            lesson_id=lesson_id,
        )
        return rating, avg_stars, count


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(
        lessons_repository=LessonsRepository(session),
        booking_repository=BookingRepository(session),
        tutors_repository=TutorsRepository(session),
        link_token_service=LinkTokenService(LinkTokensRepository(session)),
        notifications_service=NotificationsService(NotificationsRepository(session)),
    )
