"""Coaches, class types and subscription plans"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.database import db_operation
from yogastudio.core.exceptions import NotFoundError
from yogastudio.staff.models.catalog import Coach, ClassType, SubscriptionPlan
from yogastudio.staff.schemas.catalog import (
    CoachCreate,
    CoachUpdate,
    ClassTypeCreate,
    ClassTypeUpdate,
    PlanCreate,
    PlanUpdate,
)


async def _get_or_404(session: AsyncSession, model, object_id: int, resource: str):
    obj = await session.get(model, object_id)
    if obj is None:
        raise NotFoundError(resource, str(object_id))
    return obj


async def _apply_update(session: AsyncSession, obj, data, required=()):
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in required:
            continue
        setattr(obj, field, value)
    await session.commit()
    await session.refresh(obj)
    return obj


# === Coaches ===

async def get_coaches(session: AsyncSession) -> List[Coach]:
    result = await session.execute(select(Coach).order_by(Coach.name.asc()))
    return list(result.scalars().all())


@db_operation
async def create_coach(session: AsyncSession, data: CoachCreate) -> Coach:
    coach = Coach(**data.model_dump())
    session.add(coach)
    await session.commit()
    await session.refresh(coach)
    return coach


@db_operation
async def update_coach(session: AsyncSession, coach_id: int, data: CoachUpdate) -> Coach:
    coach = await _get_or_404(session, Coach, coach_id, "Coach")
    return await _apply_update(session, coach, data, required=("name",))


@db_operation
async def delete_coach(session: AsyncSession, coach_id: int) -> None:
    coach = await _get_or_404(session, Coach, coach_id, "Coach")
    await session.delete(coach)
    await session.commit()


# === Class types ===

async def get_class_types(session: AsyncSession) -> List[ClassType]:
    result = await session.execute(select(ClassType).order_by(ClassType.name.asc()))
    return list(result.scalars().all())


@db_operation
async def create_class_type(session: AsyncSession, data: ClassTypeCreate) -> ClassType:
    class_type = ClassType(**data.model_dump())
    session.add(class_type)
    await session.commit()
    await session.refresh(class_type)
    return class_type


@db_operation
async def update_class_type(
    session: AsyncSession, class_type_id: int, data: ClassTypeUpdate
) -> ClassType:
    class_type = await _get_or_404(session, ClassType, class_type_id, "Class type")
    return await _apply_update(
        session, class_type, data, required=("name", "duration_min", "color")
    )


@db_operation
async def delete_class_type(session: AsyncSession, class_type_id: int) -> None:
    class_type = await _get_or_404(session, ClassType, class_type_id, "Class type")
    await session.delete(class_type)
    await session.commit()


# === Subscription plans ===

async def get_plans(session: AsyncSession, active_only: bool = False) -> List[SubscriptionPlan]:
    query = select(SubscriptionPlan)
    if active_only:
        query = query.where(SubscriptionPlan.is_active.is_(True))
    result = await session.execute(query.order_by(SubscriptionPlan.price.asc()))
    return list(result.scalars().all())


@db_operation
async def create_plan(session: AsyncSession, data: PlanCreate) -> SubscriptionPlan:
    plan = SubscriptionPlan(**data.model_dump())
    session.add(plan)
    await session.commit()
    await session.refresh(plan)
    return plan


@db_operation
async def update_plan(session: AsyncSession, plan_id: int, data: PlanUpdate) -> SubscriptionPlan:
    plan = await _get_or_404(session, SubscriptionPlan, plan_id, "Subscription plan")
    if data.visits_count == 0:
        data = data.model_copy(update={"visits_count": None})
    return await _apply_update(
        session, plan, data, required=("name", "price", "duration_days", "is_active")
    )


@db_operation
async def delete_plan(session: AsyncSession, plan_id: int) -> None:
    plan = await _get_or_404(session, SubscriptionPlan, plan_id, "Subscription plan")
    await session.delete(plan)
    await session.commit()
