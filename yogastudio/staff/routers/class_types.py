from typing import List

from fastapi import APIRouter, Depends, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.catalog import (
    create_class_type,
    delete_class_type,
    get_class_types,
    update_class_type,
)
from yogastudio.staff.schemas.catalog import ClassTypeCreate, ClassTypeRead, ClassTypeUpdate

router = APIRouter(prefix="/admin/class-types", tags=["Class types"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[ClassTypeRead])
@limiter.limit("30/minute")
async def list_class_types(request: Request, db: AsyncSession = Depends(get_session)):
    return await get_class_types(db)


@router.post("/", response_model=ClassTypeRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def add_class_type(request: Request, data: ClassTypeCreate, db: AsyncSession = Depends(get_session)):
    return await create_class_type(db, data)


@router.patch("/{class_type_id}", response_model=ClassTypeRead)
@limiter.limit("20/minute")
async def edit_class_type(
    request: Request,
    data: ClassTypeUpdate,
    class_type_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await update_class_type(db, class_type_id, data)


@router.delete("/{class_type_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_class_type(
    request: Request, class_type_id: int = Path(...), db: AsyncSession = Depends(get_session)
):
    await delete_class_type(db, class_type_id)
