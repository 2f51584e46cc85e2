"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.enums import UserRole
from src.domain.exceptions import Unauthorized
from src.infrastructure.database import async_session_factory
from src.infrastructure.repositories import UserRepository
from src.security import Caller, decode_access_token, ensure_role

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Caller:
    """Verify the bearer token and reload the user so the role is current."""
    if credentials is None:
        raise Unauthorized()

    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise Unauthorized("Invalid or expired token")

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload") from None

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise Unauthorized("User not found")
    return Caller(user_id=user.id, role=UserRole(user.role), email=user.email)


def require_roles(*roles: UserRole):
    """Dependency factory: the caller must hold one of *roles*."""

    async def role_checker(caller: Caller = Depends(get_current_user)) -> Caller:
        ensure_role(caller, roles)
        return caller

    return role_checker
