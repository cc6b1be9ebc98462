import logging
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.config import DEFAULT_CANCELLATION_WINDOW_MINUTES
from yogastudio.core.database import db_operation
from yogastudio.core.logging_utils import log_business_event
from yogastudio.staff.models.content import StudioInfo
from yogastudio.staff.schemas.content import StudioInfoUpdate, StudioSettings

logger = logging.getLogger(__name__)

CANCELLATION_KEY = "cancellation_minutes"
STUDIO_INFO_KEYS = ("name", "description", "address", "phone", "instagram")


async def get_setting(session: AsyncSession, key: str) -> Optional[str]:
    row = await session.get(StudioInfo, key)
    return row.value if row else None


async def set_setting(session: AsyncSession, key: str, value: Optional[str]) -> None:
    row = await session.get(StudioInfo, key)
    if row is None:
        session.add(StudioInfo(key=key, value=value))
    else:
        row.value = value


async def get_cancellation_window(session: AsyncSession) -> int:
    """Minutes before class start during which clients cannot cancel"""
    raw = await get_setting(session, CANCELLATION_KEY)
    if raw is None:
        return DEFAULT_CANCELLATION_WINDOW_MINUTES
    try:
        return max(int(raw), 0)
    except ValueError:
        logger.warning(f"Invalid {CANCELLATION_KEY} setting '{raw}', using default")
        return DEFAULT_CANCELLATION_WINDOW_MINUTES


async def get_studio_info(session: AsyncSession) -> Dict[str, Optional[str]]:
    result = await session.execute(
        select(StudioInfo).where(StudioInfo.key.in_(STUDIO_INFO_KEYS))
    )
    values = {row.key: row.value for row in result.scalars().all()}
    return {key: values.get(key) for key in STUDIO_INFO_KEYS}


async def get_studio_settings(session: AsyncSession) -> StudioSettings:
    return StudioSettings(
        cancellation_minutes=await get_cancellation_window(session),
        studio_info=await get_studio_info(session),
    )


@db_operation
async def update_cancellation_window(session: AsyncSession, minutes: int) -> StudioSettings:
    await set_setting(session, CANCELLATION_KEY, str(minutes))
    await session.commit()
    log_business_event("cancellation_window_changed", "system", None, {"minutes": minutes})
    return await get_studio_settings(session)


@db_operation
async def update_studio_info(session: AsyncSession, data: StudioInfoUpdate) -> StudioSettings:
    for key, value in data.model_dump(exclude_unset=True).items():
        await set_setting(session, key, value)
    await session.commit()
    return await get_studio_settings(session)


async def seed_default_settings(session: AsyncSession) -> None:
    """Insert the cancellation window row if it is missing"""
    if await get_setting(session, CANCELLATION_KEY) is None:
        session.add(
            StudioInfo(key=CANCELLATION_KEY, value=str(DEFAULT_CANCELLATION_WINDOW_MINUTES))
        )
        await session.commit()
        logger.info(
            f"Seeded {CANCELLATION_KEY}={DEFAULT_CANCELLATION_WINDOW_MINUTES}"
        )
