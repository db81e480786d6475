"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """Session roles."""

    TUTOR = "TUTOR"
    STUDENT_PARENT = "STUDENT_PARENT"


class LessonStatusEnum(StrEnum):
    """Lesson lifecycle status."""

    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"
    RESCHEDULE_REQUESTED = "reschedule_requested"


class PaymentStatusEnum(StrEnum):
    """Lesson payment status."""

    UNPAID = "unpaid"
    PAID = "paid"


class LinkTokenPurposeEnum(StrEnum):
    """Scope of a parent action link."""

    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    RATE = "rate"


class ActorEnum(StrEnum):
    """Party that initiated a cancellation, reschedule or message."""

    PARENT = "parent"
    TUTOR = "tutor"


class RescheduleStatusEnum(StrEnum):
    """Reschedule request status."""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class LessonCategoryEnum(StrEnum):
    """Lesson type category."""

    ACADEMIC = "academic"
    LANGUAGE = "language"
    MUSIC = "music"
    FINE_ARTS = "fine_arts"


class NotificationTypeEnum(StrEnum):
    """Tutor notification type."""

    LESSON_REQUESTED = "lesson_requested"
    LESSON_CANCELED = "lesson_canceled"
    RESCHEDULE_REQUESTED = "reschedule_requested"
    LESSON_RATED = "lesson_rated"


class DiscoverySortEnum(StrEnum):
    """Discovery result ordering."""

    RATING = "rating"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DISTANCE = "distance"
