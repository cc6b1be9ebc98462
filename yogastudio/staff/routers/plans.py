from typing import List

from fastapi import APIRouter, Depends, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.catalog import create_plan, delete_plan, get_plans, update_plan
from yogastudio.staff.schemas.catalog import PlanCreate, PlanRead, PlanUpdate

router = APIRouter(prefix="/admin/plans", tags=["Subscription plans"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[PlanRead])
@limiter.limit("30/minute")
async def list_plans(request: Request, db: AsyncSession = Depends(get_session)):
    return await get_plans(db)


@router.post("/", response_model=PlanRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def add_plan(request: Request, data: PlanCreate, db: AsyncSession = Depends(get_session)):
    """
    Create a plan.

    - **visits_count**: visits per subscription; empty or 0 means unlimited
    - **duration_days**: validity from activation (default 30)
    """
    return await create_plan(db, data)


@router.patch("/{plan_id}", response_model=PlanRead)
@limiter.limit("20/minute")
async def edit_plan(
    request: Request,
    data: PlanUpdate,
    plan_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await update_plan(db, plan_id, data)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_plan(request: Request, plan_id: int = Path(...), db: AsyncSession = Depends(get_session)):
    await delete_plan(db, plan_id)
