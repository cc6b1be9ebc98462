from typing import List

from fastapi import APIRouter, Depends, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.leads import (
    create_lead,
    delete_lead,
    get_leads,
    set_lead_status,
    update_lead,
)
from yogastudio.staff.schemas.users import (
    ClientUpdate,
    LeadCreate,
    LeadStatusUpdate,
    ProfileRead,
)

router = APIRouter(prefix="/admin/trials", tags=["Trials"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[ProfileRead])
@limiter.limit("30/minute")
async def list_leads(request: Request, db: AsyncSession = Depends(get_session)):
    """Clients newest first, with their lead status"""
    return await get_leads(db)


@router.post("/", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def add_lead(
    request: Request,
    data: LeadCreate,
    db: AsyncSession = Depends(get_session),
):
    """
    Register a trial client on their behalf.

    The account gets the studio's default password; the client can log in to
    the portal with their phone and change it later.
    """
    return await create_lead(db, data)


@router.patch("/{lead_id}", response_model=ProfileRead)
@limiter.limit("20/minute")
async def edit_lead(
    request: Request,
    data: ClientUpdate,
    lead_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await update_lead(db, lead_id, data)


@router.put("/{lead_id}/status", response_model=ProfileRead)
@limiter.limit("30/minute")
async def change_lead_status(
    request: Request,
    data: LeadStatusUpdate,
    lead_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await set_lead_status(db, lead_id, data.lead_status)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_lead(
    request: Request,
    lead_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    await delete_lead(db, lead_id)
