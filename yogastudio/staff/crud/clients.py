from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, func, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.database import db_operation
from yogastudio.core.exceptions import DuplicateError, NotFoundError, ValidationError
from yogastudio.core.validations import as_utc, clean_phone_number, start_of_day, utcnow
from yogastudio.clients.crud.bookings import get_client_bookings
from yogastudio.clients.crud.subscriptions import get_client_subscriptions, compute_status
from yogastudio.clients.models.bookings import Booking, BookingStatus
from yogastudio.clients.models.subscriptions import UserSubscription
from yogastudio.clients.schemas.bookings import BookingWithSession
from yogastudio.clients.schemas.subscriptions import SubscriptionAdminRead
from yogastudio.staff.models.users import Profile, UserRole
from yogastudio.staff.schemas.users import (
    ClientDetail,
    ClientListItem,
    ClientStats,
    ClientUpdate,
    ProfileRead,
)


def _live_subscription_clause(today):
    return and_(
        UserSubscription.user_id == Profile.id,
        UserSubscription.is_active.is_(True),
        UserSubscription.end_date >= today,
        or_(
            UserSubscription.visits_total.is_(None),
            UserSubscription.visits_remaining > 0,
        ),
    )


async def get_profile_by_id(session: AsyncSession, profile_id: int) -> Profile:
    profile = await session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Client", str(profile_id))
    return profile


async def get_profile_by_phone(session: AsyncSession, phone: str) -> Optional[Profile]:
    result = await session.execute(select(Profile).where(Profile.phone == phone))
    return result.scalar_one_or_none()


async def get_clients(
    session: AsyncSession,
    search: Optional[str] = None,
    subscription_state: Optional[str] = None,
) -> Tuple[List[ClientListItem], int]:
    """
    Client roster.

    subscription_state: "active" (a subscription that can be charged now),
    "expired" (had subscriptions, none usable), "none" (never had one).
    """
    today = start_of_day()
    query = select(Profile).where(Profile.role == UserRole.client)

    if search:
        term = f"%{search.strip()}%"
        query = query.where(
            or_(
                Profile.first_name.ilike(term),
                Profile.last_name.ilike(term),
                Profile.phone.ilike(term),
                Profile.email.ilike(term),
            )
        )

    has_live = exists().where(_live_subscription_clause(today))
    has_any = exists().where(UserSubscription.user_id == Profile.id)
    if subscription_state == "active":
        query = query.where(has_live)
    elif subscription_state == "expired":
        query = query.where(and_(has_any, ~has_live))
    elif subscription_state == "none":
        query = query.where(~has_any)
    elif subscription_state is not None:
        raise ValidationError(
            "Unknown subscription filter", {"subscription_state": subscription_state}
        )

    result = await session.execute(query.order_by(Profile.created_at.desc()))
    profiles = list(result.scalars().all())

    subs_by_user = {}
    if profiles:
        subs = await session.execute(
            select(UserSubscription).where(
                UserSubscription.user_id.in_([p.id for p in profiles])
            )
        )
        for sub in subs.scalars().all():
            subs_by_user.setdefault(sub.user_id, []).append(sub)

    items = []
    for profile in profiles:
        item = ClientListItem.model_validate(profile)
        subs = subs_by_user.get(profile.id, [])
        live = sorted(
            (
                s for s in subs
                if s.is_active
                and as_utc(s.end_date) >= today
                and (s.visits_total is None or (s.visits_remaining or 0) > 0)
            ),
            key=lambda s: as_utc(s.end_date),
        )
        if live:
            item.subscription_state = "active"
            item.active_visits_remaining = live[0].visits_remaining
            item.active_until = live[0].end_date
        elif subs:
            item.subscription_state = "expired"
        items.append(item)

    return items, len(items)


def subscription_to_admin_read(subscription: UserSubscription) -> SubscriptionAdminRead:
    item = SubscriptionAdminRead.model_validate(subscription)
    item.status = compute_status(subscription)
    if subscription.user is not None:
        item.client_name = subscription.user.full_name
        item.client_phone = subscription.user.phone
    return item


async def get_client_detail(session: AsyncSession, client_id: int) -> ClientDetail:
    profile = await get_profile_by_id(session, client_id)
    subscriptions = await get_client_subscriptions(session, client_id)
    bookings = await get_client_bookings(session, client_id)

    now = utcnow()
    stats = ClientStats(total_bookings=len(bookings))
    for booking in bookings:
        if booking.status == BookingStatus.completed:
            stats.completed += 1
        elif booking.status == BookingStatus.cancelled:
            stats.cancelled += 1
        elif as_utc(booking.session.start_time) >= now:
            stats.upcoming += 1

    return ClientDetail(
        profile=ProfileRead.model_validate(profile),
        subscriptions=[subscription_to_admin_read(s) for s in subscriptions],
        bookings=[booking_with_session(b) for b in bookings],
        stats=stats,
    )


def booking_with_session(booking: Booking) -> BookingWithSession:
    return BookingWithSession.model_validate(booking)


@db_operation
async def update_client(session: AsyncSession, client_id: int, data: ClientUpdate) -> Profile:
    profile = await get_profile_by_id(session, client_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("phone"):
        digits = clean_phone_number(changes["phone"])
        existing = await get_profile_by_phone(session, digits)
        if existing and existing.id != profile.id:
            raise DuplicateError("Client", "phone", digits)
        changes["phone_display"] = changes["phone"].strip()
        changes["phone"] = digits
    else:
        changes.pop("phone", None)

    if "first_name" in changes and not changes["first_name"]:
        changes.pop("first_name")
    if changes.get("balance", 0) is None:
        changes.pop("balance")

    for field, value in changes.items():
        setattr(profile, field, value)

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise DuplicateError("Client", "phone", changes.get("phone", ""))
    await session.refresh(profile)
    return profile


@db_operation
async def delete_client(session: AsyncSession, client_id: int) -> None:
    profile = await get_profile_by_id(session, client_id)
    await session.delete(profile)
    await session.commit()


async def get_all_users(session: AsyncSession) -> List[Profile]:
    """Every profile, staff included, newest first"""
    result = await session.execute(select(Profile).order_by(Profile.created_at.desc()))
    return list(result.scalars().all())


async def count_clients(session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count(Profile.id)).where(Profile.role == UserRole.client)
    )
    return result.scalar() or 0

