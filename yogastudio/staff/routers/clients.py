from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.clients import (
    delete_client,
    get_client_detail,
    get_clients,
    update_client,
)
from yogastudio.staff.schemas.users import (
    ClientDetail,
    ClientListResponse,
    ClientUpdate,
    ProfileRead,
)

router = APIRouter(prefix="/admin/clients", tags=["Clients"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=ClientListResponse)
@limiter.limit("30/minute")
async def list_clients(
    request: Request,
    search: Optional[str] = Query(None, description="Name, phone or email (partial match)"),
    subscription_state: Optional[str] = Query(
        None, pattern="^(active|expired|none)$", description="active, expired or none"
    ),
    db: AsyncSession = Depends(get_session),
):
    """
    Client roster.

    - **search**: partial match on name, phone or email
    - **subscription_state**: clients with a usable subscription (active), with
      only used-up or expired ones (expired), or with none at all (none)
    """
    clients, total = await get_clients(db, search=search, subscription_state=subscription_state)
    return ClientListResponse(clients=clients, total=total)


@router.get("/{client_id}", response_model=ClientDetail)
@limiter.limit("30/minute")
async def client_detail(
    request: Request,
    client_id: int = Path(..., description="Client profile ID"),
    db: AsyncSession = Depends(get_session),
):
    """Client card with subscriptions, booking history and visit statistics"""
    return await get_client_detail(db, client_id)


@router.patch("/{client_id}", response_model=ProfileRead)
@limiter.limit("20/minute")
async def edit_client(
    request: Request,
    data: ClientUpdate,
    client_id: int = Path(..., description="Client profile ID"),
    db: AsyncSession = Depends(get_session),
):
    return await update_client(db, client_id, data)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_client(
    request: Request,
    client_id: int = Path(..., description="Client profile ID"),
    db: AsyncSession = Depends(get_session),
):
    """Delete a client together with their subscriptions and bookings"""
    await delete_client(db, client_id)
