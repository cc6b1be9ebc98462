"""News feed and aggregator visit records"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.database import db_operation
from yogastudio.core.exceptions import NotFoundError
from yogastudio.core.validations import utcnow
from yogastudio.staff.models.content import News, AggregatorRecord
from yogastudio.staff.schemas.content import (
    NewsCreate,
    NewsUpdate,
    AggregatorCreate,
    AggregatorUpdate,
)


async def get_news(session: AsyncSession, published_only: bool = False, limit: int = 50) -> List[News]:
    query = select(News)
    if published_only:
        query = query.where(News.is_published.is_(True))
    result = await session.execute(
        query.order_by(News.published_at.desc(), News.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def get_news_by_id(session: AsyncSession, news_id: int) -> News:
    news = await session.get(News, news_id)
    if not news:
        raise NotFoundError("News", str(news_id))
    return news


@db_operation
async def create_news(session: AsyncSession, data: NewsCreate) -> News:
    news = News(**data.model_dump(), published_at=utcnow())
    session.add(news)
    await session.commit()
    await session.refresh(news)
    return news


@db_operation
async def update_news(session: AsyncSession, news_id: int, data: NewsUpdate) -> News:
    news = await get_news_by_id(session, news_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is not None:
            setattr(news, field, value)
    await session.commit()
    await session.refresh(news)
    return news


@db_operation
async def toggle_news(session: AsyncSession, news_id: int) -> News:
    news = await get_news_by_id(session, news_id)
    news.is_published = not news.is_published
    if news.is_published:
        news.published_at = utcnow()
    await session.commit()
    await session.refresh(news)
    return news


@db_operation
async def delete_news(session: AsyncSession, news_id: int) -> None:
    news = await get_news_by_id(session, news_id)
    await session.delete(news)
    await session.commit()


async def get_aggregator_records(session: AsyncSession) -> List[AggregatorRecord]:
    result = await session.execute(
        select(AggregatorRecord).order_by(AggregatorRecord.created_at.desc())
    )
    return list(result.scalars().all())


async def get_aggregator_record(session: AsyncSession, record_id: int) -> AggregatorRecord:
    record = await session.get(AggregatorRecord, record_id)
    if not record:
        raise NotFoundError("Aggregator record", str(record_id))
    return record


@db_operation
async def create_aggregator_record(session: AsyncSession, data: AggregatorCreate) -> AggregatorRecord:
    record = AggregatorRecord(**data.model_dump())
    session.add(record)
    await session.commit()
    await session.refresh(record)
    return record


@db_operation
async def update_aggregator_record(
    session: AsyncSession, record_id: int, data: AggregatorUpdate
) -> AggregatorRecord:
    record = await get_aggregator_record(session, record_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("aggregator_name", "client_name", "price"):
            continue
        setattr(record, field, value)
    await session.commit()
    await session.refresh(record)
    return record


@db_operation
async def delete_aggregator_record(session: AsyncSession, record_id: int) -> None:
    record = await get_aggregator_record(session, record_id)
    await session.delete(record)
    await session.commit()
