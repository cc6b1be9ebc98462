"""Trial leads - clients tracked through the sales funnel by lead_status"""
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from yogastudio.core.database import db_operation
from yogastudio.core.logging_utils import log_business_event
from yogastudio.staff.crud.clients import get_profile_by_id, update_client, delete_client
from yogastudio.staff.models.users import Profile, UserRole, LeadStatus
from yogastudio.staff.schemas.users import ClientUpdate, LeadCreate
from yogastudio.staff.services.accounts import ServiceAccountRegistrar


async def get_leads(session: AsyncSession) -> List[Profile]:
    result = await session.execute(
        select(Profile)
        .where(Profile.role == UserRole.client)
        .order_by(Profile.created_at.desc(), Profile.id.desc())
    )
    return list(result.scalars().all())


@db_operation
async def create_lead(session: AsyncSession, data: LeadCreate) -> Profile:
    registrar = ServiceAccountRegistrar(session)
    return await registrar.register(
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        email=data.email,
        notes=data.notes,
        lead_status=data.lead_status,
        source="staff",
    )


async def update_lead(session: AsyncSession, lead_id: int, data: ClientUpdate) -> Profile:
    return await update_client(session, lead_id, data)


@db_operation
async def set_lead_status(session: AsyncSession, lead_id: int, lead_status: LeadStatus) -> Profile:
    """Any status may follow any other; nothing else changes"""
    profile = await get_profile_by_id(session, lead_id)
    previous = profile.lead_status
    profile.lead_status = lead_status
    await session.commit()
    await session.refresh(profile)

    log_business_event(
        "lead_status_changed",
        "profile",
        lead_id,
        {
            "from": previous.value if previous else None,
            "to": lead_status.value,
        },
    )
    return profile


async def delete_lead(session: AsyncSession, lead_id: int) -> None:
    await delete_client(session, lead_id)
