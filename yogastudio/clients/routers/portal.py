from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import Identity, get_current_identity
from yogastudio.core.limits import limiter
from yogastudio.clients.crud.bookings import get_client_bookings
from yogastudio.clients.crud.subscriptions import compute_status, get_client_subscriptions
from yogastudio.clients.schemas.bookings import BookingWithSession
from yogastudio.clients.schemas.portal import PortalHome, PortalProfile
from yogastudio.clients.schemas.subscriptions import SubscriptionRead
from yogastudio.staff.crud.catalog import get_coaches, get_plans
from yogastudio.staff.crud.clients import get_profile_by_id
from yogastudio.staff.crud.content import get_news
from yogastudio.staff.crud.settings import get_setting
from yogastudio.staff.schemas.catalog import CoachRead, PlanRead
from yogastudio.staff.schemas.users import ProfileRead, ProfileUpdate

router = APIRouter(prefix="/portal", tags=["Portal"])


def _subscription_read(subscription) -> SubscriptionRead:
    item = SubscriptionRead.model_validate(subscription)
    item.status = compute_status(subscription)
    return item


@router.get("/home", response_model=PortalHome)
@limiter.limit("60/minute")
async def home(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """Profile, current subscriptions and published news"""
    profile = await get_profile_by_id(db, identity.user_id)
    subscriptions = await get_client_subscriptions(db, identity.user_id, active_only=True)
    news = await get_news(db, published_only=True, limit=10)
    return PortalHome(
        profile=ProfileRead.model_validate(profile),
        subscriptions=[_subscription_read(s) for s in subscriptions],
        news=news,
    )


@router.get("/profile", response_model=PortalProfile)
@limiter.limit("30/minute")
async def my_profile(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """Profile with all subscriptions and the booking history"""
    profile = await get_profile_by_id(db, identity.user_id)
    subscriptions = await get_client_subscriptions(db, identity.user_id)
    bookings = await get_client_bookings(db, identity.user_id)
    return PortalProfile(
        profile=ProfileRead.model_validate(profile),
        subscriptions=[_subscription_read(s) for s in subscriptions],
        bookings=[BookingWithSession.model_validate(b) for b in bookings],
        studio_phone=await get_setting(db, "phone"),
    )


@router.patch("/profile", response_model=ProfileRead)
@limiter.limit("10/minute")
async def edit_my_profile(
    request: Request,
    data: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    profile = await get_profile_by_id(db, identity.user_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field == "first_name":
            continue
        setattr(profile, field, value)
    await db.commit()
    await db.refresh(profile)
    return profile


@router.get("/instructors", response_model=List[CoachRead])
@limiter.limit("30/minute")
async def instructors(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    return await get_coaches(db)


@router.get("/pricing", response_model=List[PlanRead])
@limiter.limit("30/minute")
async def pricing(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """Plans currently on sale"""
    return await get_plans(db, active_only=True)
