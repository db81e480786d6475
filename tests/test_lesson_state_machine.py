from __future__ import annotations

import pytest

from app.core.enums import ActorEnum, LessonStatusEnum
from app.modules.booking.state_machine import (
    SCHEDULED_STATUSES,
    TRANSITIONS,
    LessonEvent,
    allowed_events,
    can_apply,
    get_transition,
)


def test_every_event_has_exactly_one_transition() -> None:
    assert set(TRANSITIONS) == set(LessonEvent)


@pytest.mark.parametrize(
    ("event", "source", "target"),
    [
        (LessonEvent.ACCEPT, LessonStatusEnum.REQUESTED, LessonStatusEnum.CONFIRMED),
        (LessonEvent.REJECT, LessonStatusEnum.REQUESTED, LessonStatusEnum.CANCELED),
        (LessonEvent.PARENT_CANCEL, LessonStatusEnum.CONFIRMED, LessonStatusEnum.CANCELED),
        (LessonEvent.PARENT_RESCHEDULE, LessonStatusEnum.CONFIRMED, LessonStatusEnum.RESCHEDULE_REQUESTED),
        (LessonEvent.APPROVE_RESCHEDULE, LessonStatusEnum.RESCHEDULE_REQUESTED, LessonStatusEnum.CONFIRMED),
        (LessonEvent.DECLINE_RESCHEDULE, LessonStatusEnum.RESCHEDULE_REQUESTED, LessonStatusEnum.CONFIRMED),
        (LessonEvent.COMPLETE, LessonStatusEnum.CONFIRMED, LessonStatusEnum.COMPLETED),
    ],
)
def test_transition_table_entries(
    event: LessonEvent,
    source: LessonStatusEnum,
    target: LessonStatusEnum,
) -> None:
    transition = get_transition(event)

    assert transition.source == source
    assert transition.target == target


def test_create_starts_from_nothing() -> None:
    assert can_apply(LessonEvent.CREATE, None) is True
    assert can_apply(LessonEvent.CREATE, LessonStatusEnum.REQUESTED) is False


def test_terminal_canceled_status_allows_no_events() -> None:
    assert allowed_events(LessonStatusEnum.CANCELED) == []


def test_completed_lesson_can_only_be_rated_by_parent() -> None:
    assert allowed_events(LessonStatusEnum.COMPLETED) == [LessonEvent.RATE]
    assert allowed_events(LessonStatusEnum.COMPLETED, ActorEnum.TUTOR) == []


def test_confirmed_lesson_events_split_by_actor() -> None:
    assert allowed_events(LessonStatusEnum.CONFIRMED, ActorEnum.PARENT) == [
        LessonEvent.PARENT_CANCEL,
        LessonEvent.PARENT_RESCHEDULE,
    ]
    assert allowed_events(LessonStatusEnum.CONFIRMED, ActorEnum.TUTOR) == [LessonEvent.COMPLETE]


def test_requested_lesson_cannot_be_completed_or_canceled_by_parent() -> None:
    assert can_apply(LessonEvent.COMPLETE, LessonStatusEnum.REQUESTED) is False
    assert can_apply(LessonEvent.PARENT_CANCEL, LessonStatusEnum.REQUESTED) is False


def test_scheduled_statuses_are_reached_only_with_a_confirmed_start() -> None:
    targets_with_start = {
        item.target for item in TRANSITIONS.values() if item.target in SCHEDULED_STATUSES
    }
    assert LessonStatusEnum.REQUESTED not in SCHEDULED_STATUSES
    assert LessonStatusEnum.CANCELED not in SCHEDULED_STATUSES
    assert targets_with_start == set(SCHEDULED_STATUSES)
