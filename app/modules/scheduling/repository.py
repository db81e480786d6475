"""Scheduling repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import time
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.scheduling.models import TutorAvailability


class SchedulingRepository:
    """DB operations for the weekly availability template."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_template(self, tutor_id: UUID) -> list[TutorAvailability]:
        stmt = (
            select(TutorAvailability)
            .where(TutorAvailability.tutor_id == tutor_id)
            .order_by(TutorAvailability.day_of_week, TutorAvailability.start_time_local)
        )
        return list((await self.session.scalars(stmt)).all())

    async def replace_template(
        self,
        tutor_id: UUID,
        slots: Sequence[tuple[int, time, time]],
    ) -> list[TutorAvailability]:
        """Delete all slots of the tutor and insert the given ones."""
        await self.session.execute(delete(TutorAvailability).where(TutorAvailability.tutor_id == tutor_id))
        rows = [
            TutorAvailability(
                tutor_id=tutor_id,
                day_of_week=day_of_week,
                start_time_local=start,
                end_time_local=end,
            )
            for day_of_week, start, end in slots
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def has_slots_on_day(self, tutor_id: UUID, day_of_week: int) -> bool:
        stmt = (
            select(TutorAvailability.id)
            .where(TutorAvailability.tutor_id == tutor_id, TutorAvailability.day_of_week == day_of_week)
            .limit(1)
        )
        return (await self.session.scalar(stmt)) is not None
