from datetime import date, datetime, time, timedelta, timezone
from typing import List

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.exceptions import BusinessLogicError
from yogastudio.core.logging_utils import log_business_event
from yogastudio.staff.models.sessions import ClassSession


class ScheduleCopier:
    """Copies a week of class sessions to the following week"""

    SHIFT = timedelta(days=7)

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def week_bounds(week_start: date):
        start = datetime.combine(week_start, time.min, tzinfo=timezone.utc)
        return start, start + timedelta(days=7)

    async def _sessions_in_week(self, week_start: date) -> List[ClassSession]:
        start, end = self.week_bounds(week_start)
        result = await self.session.execute(
            select(ClassSession)
            .where(
                and_(
                    ClassSession.start_time >= start,
                    ClassSession.start_time < end,
                )
            )
            .order_by(ClassSession.start_time.asc())
        )
        return list(result.scalars().all())

    async def duplicate_week(self, week_start: date) -> List[ClassSession]:
        """
        Create a copy of every session of the week, seven days later.
        Bookings are not copied.
        """
        source = await self._sessions_in_week(week_start)
        if not source:
            raise BusinessLogicError(
                "There are no sessions to copy in this week",
                {"week_start": week_start.isoformat()},
            )

        copies = [
            ClassSession(
                start_time=s.start_time + self.SHIFT,
                end_time=s.end_time + self.SHIFT,
                capacity=s.capacity,
                class_type_id=s.class_type_id,
                coach_id=s.coach_id,
            )
            for s in source
        ]
        self.session.add_all(copies)
        await self.session.commit()

        log_business_event(
            "week_duplicated",
            "session",
            None,
            {"week_start": week_start.isoformat(), "created": len(copies)},
        )
        return copies
