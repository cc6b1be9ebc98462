from typing import List

from fastapi import APIRouter, Depends, Request, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.dependencies import require_admin
from yogastudio.core.limits import limiter
from yogastudio.staff.crud.content import (
    create_news,
    delete_news,
    get_news,
    toggle_news,
    update_news,
)
from yogastudio.staff.schemas.content import NewsCreate, NewsRead, NewsUpdate

router = APIRouter(prefix="/admin/news", tags=["News"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=List[NewsRead])
@limiter.limit("30/minute")
async def list_news(request: Request, db: AsyncSession = Depends(get_session)):
    return await get_news(db)


@router.post("/", response_model=NewsRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def add_news(request: Request, data: NewsCreate, db: AsyncSession = Depends(get_session)):
    return await create_news(db, data)


@router.patch("/{news_id}", response_model=NewsRead)
@limiter.limit("20/minute")
async def edit_news(
    request: Request,
    data: NewsUpdate,
    news_id: int = Path(...),
    db: AsyncSession = Depends(get_session),
):
    return await update_news(db, news_id, data)


@router.post("/{news_id}/toggle", response_model=NewsRead)
@limiter.limit("20/minute")
async def publish_toggle(request: Request, news_id: int = Path(...), db: AsyncSession = Depends(get_session)):
    """Publish or hide a news item"""
    return await toggle_news(db, news_id)


@router.delete("/{news_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_news(request: Request, news_id: int = Path(...), db: AsyncSession = Depends(get_session)):
    await delete_news(db, news_id)
