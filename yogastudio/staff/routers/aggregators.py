from typing import List

from fastapi import APIRouter, Depends, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.content import (
    create_aggregator_record,
    delete_aggregator_record,
    get_aggregator_records,
    update_aggregator_record,
)
from yogastudio.staff.schemas.content import AggregatorCreate, AggregatorRead, AggregatorUpdate

router = APIRouter(prefix="/admin/aggregators", tags=["Aggregators"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[AggregatorRead])
@limiter.limit("30/minute")
async def list_records(request: Request, db: AsyncSession = Depends(get_session)):
    return await get_aggregator_records(db)


@router.post("/", response_model=AggregatorRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def add_record(request: Request, data: AggregatorCreate, db: AsyncSession = Depends(get_session)):
    return await create_aggregator_record(db, data)


@router.patch("/{record_id}", response_model=AggregatorRead)
@limiter.limit("20/minute")
async def edit_record(
    request: Request,
    data: AggregatorUpdate,
    record_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await update_aggregator_record(db, record_id, data)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_record(request: Request, record_id: int = Path(...), db: AsyncSession = Depends(get_session)):
    await delete_aggregator_record(db, record_id)
