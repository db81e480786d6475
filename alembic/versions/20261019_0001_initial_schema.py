"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("TUTOR", "STUDENT_PARENT", name="role_enum", native_enum=False)
lesson_category_enum = sa.Enum(
    "academic",
    "language",
    "music",
    "fine_arts",
    name="lesson_category_enum",
    native_enum=False,
)
lesson_status_enum = sa.Enum(
    "requested",
    "confirmed",
    "completed",
    "canceled",
    "reschedule_requested",
    name="lesson_status_enum",
    native_enum=False,
)
payment_status_enum = sa.Enum("unpaid", "paid", name="payment_status_enum", native_enum=False)
message_sender_enum = sa.Enum("parent", "tutor", name="message_sender_enum", native_enum=False)
reschedule_actor_enum = sa.Enum("parent", "tutor", name="reschedule_actor_enum", native_enum=False)
reschedule_status_enum = sa.Enum(
    "pending",
    "approved",
    "declined",
    name="reschedule_status_enum",
    native_enum=False,
)
cancellation_actor_enum = sa.Enum("parent", "tutor", name="cancellation_actor_enum", native_enum=False)
link_token_purpose_enum = sa.Enum(
    "cancel",
    "reschedule",
    "rate",
    name="link_token_purpose_enum",
    native_enum=False,
)
notification_type_enum = sa.Enum(
    "lesson_requested",
    "lesson_canceled",
    "reschedule_requested",
    "lesson_rated",
    name="notification_type_enum",
    native_enum=False,
)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _tutor_fk(table: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["tutor_id"], ["tutors.id"], name=f"fk_{table}_tutor_id_tutors", ondelete="CASCADE")


def _lesson_fk(table: str, ondelete: str = "CASCADE") -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["lesson_id"],
        ["lessons.id"],
        name=f"fk_{table}_lesson_id_lessons",
        ondelete=ondelete,
    )


def upgrade() -> None:
    op.create_table(
        "tutors",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("slug", sa.String(length=128), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
    )
    op.create_index("ix_tutors_phone", "tutors", ["phone"], unique=True)
    op.create_index("ix_tutors_slug", "tutors", ["slug"], unique=True)

    op.create_table(
        "tutor_profiles",
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("bio", sa.Text(), nullable=False),
        sa.Column("lesson_formats", postgresql.ARRAY(sa.String(length=32)), nullable=False),
        sa.Column("levels_supported", postgresql.ARRAY(sa.String(length=32)), nullable=False),
        _tutor_fk("tutor_profiles"),
    )

    op.create_table(
        "lesson_types",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category", lesson_category_enum, nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("is_group_allowed", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        _tutor_fk("lesson_types"),
    )
    op.create_index("ix_lesson_types_tutor_id", "lesson_types", ["tutor_id"], unique=False)

    op.create_table(
        "lesson_pricing",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("lesson_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(
            ["lesson_type_id"],
            ["lesson_types.id"],
            name="fk_lesson_pricing_lesson_type_id_lesson_types",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_lesson_pricing_lesson_type_id", "lesson_pricing", ["lesson_type_id"], unique=False)

    op.create_table(
        "tutor_service_areas",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("district_id", sa.String(length=64), nullable=False),
        sa.Column("district_label", sa.String(length=128), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        _tutor_fk("tutor_service_areas"),
        sa.UniqueConstraint("tutor_id", "district_id", name="uq_tutor_service_areas_tutor_district"),
    )
    op.create_index("ix_tutor_service_areas_tutor_id", "tutor_service_areas", ["tutor_id"], unique=False)

    op.create_table(
        "cancellation_policies",
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("cutoff_hours", sa.Integer(), nullable=False),
        sa.Column("late_cancel_payable", sa.Boolean(), nullable=False),
        _tutor_fk("cancellation_policies"),
    )

    op.create_table(
        "tutor_rating_summaries",
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("avg_stars", sa.Numeric(3, 2), nullable=False),
        sa.Column("rating_count", sa.Integer(), nullable=False),
        _updated_col(),
        _tutor_fk("tutor_rating_summaries"),
    )

    op.create_table(
        "tutor_availability",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time_local", sa.Time(), nullable=False),
        sa.Column("end_time_local", sa.Time(), nullable=False),
        _tutor_fk("tutor_availability"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_tutor_availability_day_of_week_range"),
        sa.UniqueConstraint("tutor_id", "day_of_week", "start_time_local", name="uq_tutor_availability_slot"),
    )
    op.create_index("ix_tutor_availability_tutor_id", "tutor_availability", ["tutor_id"], unique=False)

    op.create_table(
        "otp_challenges",
        _id_col(),
        _created_col(),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("code_hash", sa.String(length=255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_otp_challenges_phone", "otp_challenges", ["phone"], unique=False)

    op.create_table(
        "lessons",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lesson_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("student_name", sa.String(length=128), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", lesson_status_enum, nullable=False),
        sa.Column("requested_start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("confirmed_start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("level", sa.String(length=64), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("district", sa.String(length=128), nullable=True),
        _tutor_fk("lessons"),
        sa.ForeignKeyConstraint(
            ["lesson_type_id"],
            ["lesson_types.id"],
            name="fk_lessons_lesson_type_id_lesson_types",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_lessons_tutor_id", "lessons", ["tutor_id"], unique=False)
    op.create_index("ix_lessons_status", "lessons", ["status"], unique=False)

    op.create_table(
        "lesson_payments",
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        _created_col(),
        _updated_col(),
        sa.Column("payment_status", payment_status_enum, nullable=False),
        _lesson_fk("lesson_payments"),
    )

    op.create_table(
        "lesson_messages",
        _id_col(),
        _created_col(),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sender", message_sender_enum, nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        _lesson_fk("lesson_messages"),
    )
    op.create_index("ix_lesson_messages_lesson_id", "lesson_messages", ["lesson_id"], unique=False)

    op.create_table(
        "reschedule_requests",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("requested_by", reschedule_actor_enum, nullable=False),
        sa.Column("status", reschedule_status_enum, nullable=False),
        sa.Column("proposed_start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(length=512), nullable=True),
        _lesson_fk("reschedule_requests"),
    )
    op.create_index("ix_reschedule_requests_lesson_id", "reschedule_requests", ["lesson_id"], unique=False)
    op.create_index("ix_reschedule_requests_status", "reschedule_requests", ["status"], unique=False)

    op.create_table(
        "lesson_cancellations",
        _id_col(),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("canceled_by", cancellation_actor_enum, nullable=False),
        sa.Column("is_late", sa.Boolean(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=False),
        _lesson_fk("lesson_cancellations"),
        sa.UniqueConstraint("lesson_id", name="uq_lesson_cancellations_lesson_id"),
    )

    op.create_table(
        "ratings",
        _id_col(),
        _created_col(),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("stars", sa.Integer(), nullable=False),
        sa.Column("comment", sa.String(length=140), nullable=True),
        _lesson_fk("ratings"),
        _tutor_fk("ratings"),
        sa.CheckConstraint("stars BETWEEN 1 AND 5", name="ck_ratings_stars_range"),
        sa.UniqueConstraint("lesson_id", name="uq_ratings_lesson_id"),
    )
    op.create_index("ix_ratings_tutor_id", "ratings", ["tutor_id"], unique=False)

    op.create_table(
        "link_tokens",
        _id_col(),
        _created_col(),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("purpose", link_token_purpose_enum, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        _lesson_fk("link_tokens"),
    )
    op.create_index("ix_link_tokens_lesson_id", "link_tokens", ["lesson_id"], unique=False)
    op.create_index("ix_link_tokens_token_hash", "link_tokens", ["token_hash"], unique=True)

    op.create_table(
        "tutor_notifications",
        _id_col(),
        _created_col(),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("lesson_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        _tutor_fk("tutor_notifications"),
        _lesson_fk("tutor_notifications", ondelete="SET NULL"),
    )
    op.create_index("ix_tutor_notifications_tutor_id", "tutor_notifications", ["tutor_id"], unique=False)
    op.create_index("ix_tutor_notifications_read", "tutor_notifications", ["read"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tutor_notifications_read", table_name="tutor_notifications")
    op.drop_index("ix_tutor_notifications_tutor_id", table_name="tutor_notifications")
    op.drop_table("tutor_notifications")

    op.drop_index("ix_link_tokens_token_hash", table_name="link_tokens")
    op.drop_index("ix_link_tokens_lesson_id", table_name="link_tokens")
    op.drop_table("link_tokens")

    op.drop_index("ix_ratings_tutor_id", table_name="ratings")
    op.drop_table("ratings")

    op.drop_table("lesson_cancellations")

    op.drop_index("ix_reschedule_requests_status", table_name="reschedule_requests")
    op.drop_index("ix_reschedule_requests_lesson_id", table_name="reschedule_requests")
    op.drop_table("reschedule_requests")

    op.drop_index("ix_lesson_messages_lesson_id", table_name="lesson_messages")
    op.drop_table("lesson_messages")

    op.drop_table("lesson_payments")

    op.drop_index("ix_lessons_status", table_name="lessons")
    op.drop_index("ix_lessons_tutor_id", table_name="lessons")
    op.drop_table("lessons")

    op.drop_index("ix_otp_challenges_phone", table_name="otp_challenges")
    op.drop_table("otp_challenges")

    op.drop_index("ix_tutor_availability_tutor_id", table_name="tutor_availability")
    op.drop_table("tutor_availability")

    op.drop_table("tutor_rating_summaries")
    op.drop_table("cancellation_policies")

    op.drop_index("ix_tutor_service_areas_tutor_id", table_name="tutor_service_areas")
    op.drop_table("tutor_service_areas")

    op.drop_index("ix_lesson_pricing_lesson_type_id", table_name="lesson_pricing")
    op.drop_table("lesson_pricing")

    op.drop_index("ix_lesson_types_tutor_id", table_name="lesson_types")
    op.drop_table("lesson_types")

    op.drop_table("tutor_profiles")

    op.drop_index("ix_tutors_slug", table_name="tutors")
    op.drop_index("ix_tutors_phone", table_name="tutors")
    op.drop_table("tutors")
