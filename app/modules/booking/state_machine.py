"""Lesson lifecycle transition table.

Every status change of a lesson goes through one of these entries; the
service applies the entry as ``UPDATE ... WHERE status = source``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from app.core.enums import ActorEnum, LessonStatusEnum


class LessonEvent(StrEnum):
    """Lifecycle events."""

    CREATE = "create"
    ACCEPT = "accept"
    REJECT = "reject"
    PARENT_CANCEL = "parent_cancel"
    PARENT_RESCHEDULE = "parent_reschedule"
    APPROVE_RESCHEDULE = "approve_reschedule"
    DECLINE_RESCHEDULE = "decline_reschedule"
    COMPLETE = "complete"
    RATE = "rate"


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""

    event: LessonEvent
    actor: ActorEnum
    source: LessonStatusEnum | None
    target: LessonStatusEnum


TRANSITIONS: dict[LessonEvent, Transition] = {
    item.event: item
    for item in (
        Transition(LessonEvent.CREATE, ActorEnum.PARENT, None, LessonStatusEnum.REQUESTED),
        Transition(LessonEvent.ACCEPT, ActorEnum.TUTOR, LessonStatusEnum.REQUESTED, LessonStatusEnum.CONFIRMED),
        Transition(LessonEvent.REJECT, ActorEnum.TUTOR, LessonStatusEnum.REQUESTED, LessonStatusEnum.CANCELED),
        Transition(
            LessonEvent.PARENT_CANCEL,
            ActorEnum.PARENT,
            LessonStatusEnum.CONFIRMED,
            LessonStatusEnum.CANCELED,
        ),
        Transition(
            LessonEvent.PARENT_RESCHEDULE,
            ActorEnum.PARENT,
            LessonStatusEnum.CONFIRMED,
            LessonStatusEnum.RESCHEDULE_REQUESTED,
        ),
        Transition(
            LessonEvent.APPROVE_RESCHEDULE,
            ActorEnum.TUTOR,
            LessonStatusEnum.RESCHEDULE_REQUESTED,
            LessonStatusEnum.CONFIRMED,
        ),
        Transition(
            LessonEvent.DECLINE_RESCHEDULE,
            ActorEnum.TUTOR,
            LessonStatusEnum.RESCHEDULE_REQUESTED,
            LessonStatusEnum.CONFIRMED,
        ),
        Transition(LessonEvent.COMPLETE, ActorEnum.TUTOR, LessonStatusEnum.CONFIRMED, LessonStatusEnum.COMPLETED),
        Transition(LessonEvent.RATE, ActorEnum.PARENT, LessonStatusEnum.COMPLETED, LessonStatusEnum.COMPLETED),
    )
}

# confirmed_start_at is set exactly in these statuses.
SCHEDULED_STATUSES = frozenset(
    {
        LessonStatusEnum.CONFIRMED,
        LessonStatusEnum.COMPLETED,
        LessonStatusEnum.RESCHEDULE_REQUESTED,
    },
)


def get_transition(event: LessonEvent) -> Transition:
    """Return table entry for event."""
    return TRANSITIONS[event]


def can_apply(event: LessonEvent, status: LessonStatusEnum | None) -> bool:
    """Whether event is legal from status."""
    return TRANSITIONS[event].source == status


def allowed_events(status: LessonStatusEnum, actor: ActorEnum | None = None) -> list[LessonEvent]:
    """Events that may fire from status, optionally for one actor."""
    return [
        item.event
        for item in TRANSITIONS.values()
        if item.source == status and (actor is None or item.actor == actor)
    ]
