import logging

from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.exceptions import AuthenticationError, AuthorizationError
from yogastudio.core.security import jwt_manager, verify_password
from yogastudio.core.validations import clean_phone_number
from yogastudio.staff.crud.clients import get_profile_by_phone
from yogastudio.staff.models.users import Profile, UserRole
from yogastudio.staff.schemas.users import RegisterRequest, TokenResponse
from yogastudio.staff.services.accounts import ServiceAccountRegistrar

logger = logging.getLogger(__name__)


def issue_token(profile: Profile) -> TokenResponse:
    token = jwt_manager.create_access_token(profile.id, profile.role.value)
    return TokenResponse(access_token=token, user_id=profile.id, role=profile.role)


async def authenticate(session: AsyncSession, phone: str, password: str) -> Profile:
    digits = clean_phone_number(phone)
    profile = await get_profile_by_phone(session, digits)

    if profile is None or not profile.password_hash or not verify_password(password, profile.password_hash):
        logger.warning("Failed login attempt", extra={"phone_suffix": digits[-4:]})
        raise AuthenticationError("Invalid phone or password")

    return profile


async def login_staff(session: AsyncSession, phone: str, password: str) -> TokenResponse:
    profile = await authenticate(session, phone, password)
    if profile.role != UserRole.admin:
        raise AuthorizationError("Administrator rights are required for this section")
    return issue_token(profile)


async def login_client(session: AsyncSession, phone: str, password: str) -> TokenResponse:
    return issue_token(await authenticate(session, phone, password))


async def register_client(session: AsyncSession, data: RegisterRequest) -> TokenResponse:
    registrar = ServiceAccountRegistrar(session)
    profile = await registrar.register(
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        email=data.email,
        password=data.password,
        source="portal",
    )
    return issue_token(profile)
