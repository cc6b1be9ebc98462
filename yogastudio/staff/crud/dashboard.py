from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.validations import utcnow
from yogastudio.clients.models.bookings import Booking
from yogastudio.clients.models.subscriptions import UserSubscription
from yogastudio.staff.crud.clients import count_clients
from yogastudio.staff.models.catalog import SubscriptionPlan
from yogastudio.staff.schemas.content import DashboardStats


async def get_dashboard_stats(session: AsyncSession) -> DashboardStats:
    """
    Client count, revenue from subscriptions sold this month (at plan price)
    and bookings made today.
    """
    now = utcnow()
    month_start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    day_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)

    revenue_result = await session.execute(
        select(func.coalesce(func.sum(SubscriptionPlan.price), 0))
        .select_from(UserSubscription)
        .join(SubscriptionPlan, UserSubscription.plan_id == SubscriptionPlan.id)
        .where(UserSubscription.created_at >= month_start)
    )
    revenue = revenue_result.scalar() or 0

    bookings_result = await session.execute(
        select(func.count(Booking.id)).where(
            and_(
                Booking.created_at >= day_start,
                Booking.created_at < day_start + timedelta(days=1),
            )
        )
    )

    return DashboardStats(
        clients_count=await count_clients(session),
        month_revenue=Decimal(str(revenue)),
        bookings_today=bookings_result.scalar() or 0,
    )
