"""Subscription ledger - visit credits of a client's subscriptions"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from yogastudio.core.config import DEFAULT_PLAN_DURATION_DAYS
from yogastudio.core.database import db_operation
from yogastudio.core.exceptions import NotFoundError, ValidationError
from yogastudio.core.logging_utils import log_business_event
from yogastudio.core.validations import as_utc, start_of_day, utcnow
from yogastudio.clients.models.subscriptions import UserSubscription
from yogastudio.clients.schemas.subscriptions import SubscriptionSell, SubscriptionUpdate
from yogastudio.staff.models.catalog import SubscriptionPlan
from yogastudio.staff.models.users import Profile

logger = logging.getLogger(__name__)

CRITICAL_DAYS = 3
WARNING_DAYS = 7


async def select_active_subscription(
    session: AsyncSession, client_id: int, as_of: Optional[datetime] = None
) -> Optional[UserSubscription]:
    """
    Subscription a new visit is charged to: the one expiring soonest among
    active subscriptions that are unlimited or still have visits. A
    subscription stays usable for the whole of its end date.
    """
    cutoff = start_of_day(as_of)
    result = await session.execute(
        select(UserSubscription)
        .where(
            and_(
                UserSubscription.user_id == client_id,
                UserSubscription.is_active.is_(True),
                UserSubscription.end_date >= cutoff,
                or_(
                    UserSubscription.visits_total.is_(None),
                    UserSubscription.visits_remaining > 0,
                ),
            )
        )
        .order_by(UserSubscription.end_date.asc(), UserSubscription.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def is_chargeable(subscription: Optional[UserSubscription], as_of: Optional[datetime] = None) -> bool:
    """Same rule as select_active_subscription, for a subscription already in hand"""
    if subscription is None or not subscription.is_active:
        return False
    if as_utc(subscription.end_date) < start_of_day(as_of):
        return False
    return subscription.visits_total is None or (subscription.visits_remaining or 0) > 0


async def debit_visit(session: AsyncSession, subscription_id: int) -> bool:
    """
    Take one visit off a finite subscription.

    The decrement only applies while visits remain, so the balance cannot go
    negative. Returns False when nothing was debited (exhausted or unknown);
    unlimited subscriptions are left untouched and count as debited.
    """
    subscription = await session.get(UserSubscription, subscription_id)
    if subscription is None:
        return False
    if subscription.visits_total is None:
        return True

    result = await session.execute(
        update(UserSubscription)
        .where(
            and_(
                UserSubscription.id == subscription_id,
                UserSubscription.visits_remaining > 0,
            )
        )
        .values(visits_remaining=UserSubscription.visits_remaining - 1)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(subscription)
    return result.rowcount == 1


async def credit_visit(session: AsyncSession, subscription_id: int) -> bool:
    """
    Return one visit to a finite subscription, never above visits_total.
    Returns False when nothing changed.
    """
    subscription = await session.get(UserSubscription, subscription_id)
    if subscription is None or subscription.visits_total is None:
        return False

    result = await session.execute(
        update(UserSubscription)
        .where(
            and_(
                UserSubscription.id == subscription_id,
                UserSubscription.visits_remaining < UserSubscription.visits_total,
            )
        )
        .values(visits_remaining=UserSubscription.visits_remaining + 1)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(subscription)
    return result.rowcount == 1


def compute_status(subscription: UserSubscription, now: Optional[datetime] = None) -> str:
    """Display status used by the admin lists"""
    now = now or utcnow()

    if not subscription.is_active:
        return "finished"
    if subscription.visits_total is not None and (subscription.visits_remaining or 0) <= 0:
        return "finished"

    activation = as_utc(subscription.activation_date)
    if activation and activation > now:
        return "pending"

    days_left = (as_utc(subscription.end_date).date() - as_utc(now).date()).days
    if days_left < 0:
        return "expired"

    if days_left <= CRITICAL_DAYS:
        return "critical"
    if days_left <= WARNING_DAYS:
        return "warning"
    return "active"


def _check_ledger_bounds(visits_total: Optional[int], visits_remaining: Optional[int]):
    if visits_total is None:
        if visits_remaining is not None:
            raise ValidationError("Unlimited subscriptions have no visit balance")
        return
    if visits_remaining is None or visits_remaining < 0:
        raise ValidationError("Visits remaining must be zero or more")
    if visits_remaining > visits_total:
        raise ValidationError(
            "Visits remaining cannot exceed visits total",
            {"visits_total": visits_total, "visits_remaining": visits_remaining},
        )


async def get_subscription_by_id(session: AsyncSession, subscription_id: int) -> UserSubscription:
    result = await session.execute(
        select(UserSubscription)
        .options(selectinload(UserSubscription.plan), selectinload(UserSubscription.user))
        .where(UserSubscription.id == subscription_id)
    )
    subscription = result.scalar_one_or_none()
    if not subscription:
        raise NotFoundError("Subscription", str(subscription_id))
    return subscription


async def get_client_subscriptions(
    session: AsyncSession, client_id: int, active_only: bool = False
) -> List[UserSubscription]:
    query = (
        select(UserSubscription)
        .options(selectinload(UserSubscription.plan), selectinload(UserSubscription.user))
        .where(UserSubscription.user_id == client_id)
    )
    if active_only:
        query = query.where(
            and_(
                UserSubscription.is_active.is_(True),
                UserSubscription.end_date >= start_of_day(),
            )
        )
    result = await session.execute(query.order_by(UserSubscription.end_date.desc()))
    return list(result.scalars().all())


async def list_subscriptions(session: AsyncSession, search: Optional[str] = None) -> List[UserSubscription]:
    query = (
        select(UserSubscription)
        .join(Profile, UserSubscription.user_id == Profile.id)
        .options(selectinload(UserSubscription.plan), selectinload(UserSubscription.user))
    )
    if search:
        term = f"%{search.strip()}%"
        query = query.where(
            or_(
                Profile.first_name.ilike(term),
                Profile.last_name.ilike(term),
                Profile.phone.ilike(term),
            )
        )
    result = await session.execute(query.order_by(UserSubscription.created_at.desc()))
    return list(result.scalars().all())


@db_operation
async def sell_subscription(session: AsyncSession, data: SubscriptionSell) -> UserSubscription:
    """Issue a subscription from a plan: full visit balance, plan duration"""
    client = await session.get(Profile, data.user_id)
    if not client:
        raise NotFoundError("Client", str(data.user_id))

    plan = await session.get(SubscriptionPlan, data.plan_id)
    if not plan:
        raise NotFoundError("Subscription plan", str(data.plan_id))

    activation = as_utc(data.activation_date) or utcnow()
    visits = plan.visits_count or None

    subscription = UserSubscription(
        user_id=client.id,
        plan_id=plan.id,
        visits_total=visits,
        visits_remaining=visits,
        activation_date=activation,
        end_date=activation + timedelta(days=plan.duration_days or DEFAULT_PLAN_DURATION_DAYS),
        is_active=True,
    )
    session.add(subscription)
    await session.commit()

    log_business_event(
        "subscription_sold",
        "subscription",
        subscription.id,
        {"client_id": client.id, "plan_id": plan.id, "visits_total": visits},
    )
    return await get_subscription_by_id(session, subscription.id)


@db_operation
async def update_subscription(
    session: AsyncSession, subscription_id: int, data: SubscriptionUpdate
) -> UserSubscription:
    subscription = await get_subscription_by_id(session, subscription_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("is_active") is None:
        changes.pop("is_active", None)

    visits_total = changes.get("visits_total", subscription.visits_total)
    visits_remaining = changes.get("visits_remaining", subscription.visits_remaining)
    _check_ledger_bounds(visits_total, visits_remaining)

    for field in ("activation_date", "end_date"):
        if changes.get(field) is not None:
            changes[field] = as_utc(changes[field])
        else:
            changes.pop(field, None)

    activation = changes.get("activation_date", as_utc(subscription.activation_date))
    end = changes.get("end_date", as_utc(subscription.end_date))
    if end < activation:
        raise ValidationError("End date must not be before the activation date")

    for field, value in changes.items():
        setattr(subscription, field, value)

    await session.commit()
    session.expire(subscription)
    return await get_subscription_by_id(session, subscription_id)


@db_operation
async def delete_subscription(session: AsyncSession, subscription_id: int) -> None:
    subscription = await get_subscription_by_id(session, subscription_id)
    await session.delete(subscription)
    await session.commit()
    logger.info(f"Subscription {subscription_id} deleted")
