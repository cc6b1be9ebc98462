from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.clients.crud.subscriptions import (
    delete_subscription,
    list_subscriptions,
    sell_subscription,
    update_subscription,
)
from yogastudio.clients.schemas.subscriptions import (
    SubscriptionAdminRead,
    SubscriptionSell,
    SubscriptionUpdate,
)
from yogastudio.staff.crud.clients import subscription_to_admin_read

router = APIRouter(
    prefix="/admin/subscriptions", tags=["Subscriptions"], dependencies=[Depends(require_admin)]
)


@router.get("/", response_model=List[SubscriptionAdminRead])
@limiter.limit("30/minute")
async def subscriptions_list(
    request: Request,
    search: Optional[str] = Query(None, description="Client name or phone"),
    db: AsyncSession = Depends(get_session),
):
    """
    All subscriptions, newest first, with a display status:
    finished, pending, expired, critical (3 days or less), warning (7 days or less), active.
    """
    subscriptions = await list_subscriptions(db, search=search)
    return [subscription_to_admin_read(s) for s in subscriptions]


@router.post("/", response_model=SubscriptionAdminRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def sell(
    request: Request,
    data: SubscriptionSell,
    db: AsyncSession = Depends(get_session),
):
    """Sell a plan: the full visit balance and the plan's duration from activation"""
    return subscription_to_admin_read(await sell_subscription(db, data))


@router.patch("/{subscription_id}", response_model=SubscriptionAdminRead)
@limiter.limit("20/minute")
async def edit_subscription(
    request: Request,
    data: SubscriptionUpdate,
    subscription_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return subscription_to_admin_read(await update_subscription(db, subscription_id, data))


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_subscription(
    request: Request,
    subscription_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    await delete_subscription(db, subscription_id)
