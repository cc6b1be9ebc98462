from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.database import db_operation
from yogastudio.core.exceptions import NotFoundError, ValidationError
from yogastudio.core.logging_utils import log_business_event
from yogastudio.core.validations import as_utc
from yogastudio.clients.crud.bookings import count_active_bookings, count_active_bookings_bulk
from yogastudio.staff.models.catalog import ClassType, Coach
from yogastudio.staff.models.sessions import ClassSession
from yogastudio.staff.schemas.schedule import SessionCreate, SessionRead, SessionUpdate
from yogastudio.staff.services.schedule_copier import ScheduleCopier


def to_session_read(class_session: ClassSession, bookings_count: int = 0) -> SessionRead:
    item = SessionRead.model_validate(class_session)
    item.bookings_count = bookings_count
    return item


async def get_session_by_id(session: AsyncSession, session_id: int) -> ClassSession:
    result = await session.execute(
        select(ClassSession)
        .where(ClassSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    class_session = result.scalar_one_or_none()
    if not class_session:
        raise NotFoundError("Class session", str(session_id))
    return class_session


async def get_sessions_between(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    coach_id: Optional[int] = None,
    class_type_id: Optional[int] = None,
) -> List[ClassSession]:
    query = select(ClassSession).where(
        and_(
            ClassSession.start_time >= as_utc(start),
            ClassSession.start_time < as_utc(end),
        )
    )
    if coach_id:
        query = query.where(ClassSession.coach_id == coach_id)
    if class_type_id:
        query = query.where(ClassSession.class_type_id == class_type_id)
    result = await session.execute(query.order_by(ClassSession.start_time.asc()))
    return list(result.scalars().all())


async def get_week_schedule(session: AsyncSession, week_start: date) -> List[SessionRead]:
    start = datetime.combine(week_start, time.min, tzinfo=timezone.utc)
    sessions = await get_sessions_between(session, start, start + timedelta(days=7))
    counts = await count_active_bookings_bulk(session, [s.id for s in sessions])
    return [to_session_read(s, counts.get(s.id, 0)) for s in sessions]


async def _check_refs(session: AsyncSession, class_type_id: Optional[int], coach_id: Optional[int]):
    if class_type_id is not None and await session.get(ClassType, class_type_id) is None:
        raise NotFoundError("Class type", str(class_type_id))
    if coach_id is not None and await session.get(Coach, coach_id) is None:
        raise NotFoundError("Coach", str(coach_id))


@db_operation
async def create_session(session: AsyncSession, data: SessionCreate) -> ClassSession:
    await _check_refs(session, data.class_type_id, data.coach_id)

    class_session = ClassSession(
        start_time=as_utc(data.start_time),
        end_time=as_utc(data.end_time),
        capacity=data.capacity,
        class_type_id=data.class_type_id,
        coach_id=data.coach_id,
    )
    session.add(class_session)
    await session.commit()

    log_business_event("session_created", "session", class_session.id, {"capacity": data.capacity})
    return await get_session_by_id(session, class_session.id)


@db_operation
async def update_session(session: AsyncSession, session_id: int, data: SessionUpdate) -> ClassSession:
    class_session = await get_session_by_id(session, session_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items()}

    for field in ("start_time", "end_time", "capacity"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    for field in ("start_time", "end_time"):
        if field in changes:
            changes[field] = as_utc(changes[field])

    start = changes.get("start_time", as_utc(class_session.start_time))
    end = changes.get("end_time", as_utc(class_session.end_time))
    if end <= start:
        raise ValidationError("end_time must be after start_time")

    if "capacity" in changes:
        booked = await count_active_bookings(session, session_id)
        if changes["capacity"] < booked:
            raise ValidationError(
                "Capacity cannot be lower than the number of booked clients",
                {"capacity": changes["capacity"], "booked": booked},
            )

    await _check_refs(session, changes.get("class_type_id"), changes.get("coach_id"))

    for field, value in changes.items():
        setattr(class_session, field, value)
    await session.commit()
    return await get_session_by_id(session, session_id)


@db_operation
async def delete_session(session: AsyncSession, session_id: int) -> None:
    class_session = await get_session_by_id(session, session_id)
    await session.delete(class_session)
    await session.commit()
    log_business_event("session_deleted", "session", session_id)


@db_operation
async def duplicate_week(session: AsyncSession, week_start: date) -> List[ClassSession]:
    copies = await ScheduleCopier(session).duplicate_week(week_start)
    return [await get_session_by_id(session, c.id) for c in copies]
