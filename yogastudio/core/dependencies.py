from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from yogastudio.core.database import get_session
from yogastudio.core.exceptions import AuthenticationError, AuthorizationError
from yogastudio.core.security import jwt_manager
from yogastudio.staff.models.users import Profile, UserRole

ADMIN_LOGIN_URL = "/login"
PORTAL_LOGIN_URL = "/portal/login"

security = HTTPBearer(
    scheme_name="Bearer",
    description="Access token from /auth/login or /portal/auth/login",
    auto_error=False,
)


@dataclass(frozen=True)
class Identity:
    """The caller of the current request, resolved from the bearer token"""

    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


async def _resolve_identity(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
    login_url: str,
) -> Identity:
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError(
            "Authentication required", {"login_url": login_url}
        )

    try:
        payload = jwt_manager.decode_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (AuthenticationError, KeyError, ValueError):
        raise AuthenticationError("Invalid or expired token", {"login_url": login_url})

    # Role is read from the profile, not the token, so role changes apply at once
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise AuthenticationError("Profile no longer exists", {"login_url": login_url})

    return Identity(user_id=profile.id, role=profile.role)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_session),
) -> Identity:
    """Any signed-in profile (client portal)"""
    return await _resolve_identity(credentials, db, PORTAL_LOGIN_URL)


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_session),
) -> Identity:
    """Signed-in profile with the admin role (back-office)"""
    identity = await _resolve_identity(credentials, db, ADMIN_LOGIN_URL)
    if not identity.is_admin:
        raise AuthorizationError(
            "Administrator rights are required for this section",
            {"role": identity.role.value},
        )
    return identity
