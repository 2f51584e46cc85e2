"""
Token verification and the role capability check.

Tokens are HS256 JWTs carrying ``sub`` (user id) and ``role``.  Issuing
tokens belongs to the identity service; ``create_access_token`` is kept
here for tooling (seed script, tests).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import JWTError, jwt

from src.config import settings
from src.domain.enums import UserRole
from src.domain.exceptions import Forbidden

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """Verified identity of the user making a request."""

    user_id: int
    role: UserRole
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def create_access_token(
    user_id: int, role: UserRole, expires_delta: Optional[timedelta] = None
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(user_id), "role": UserRole(role).value, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the verified claims, or ``None`` if the token is bad/expired."""
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError as e:
        logger.warning("JWT decode error: %s", e)
        return None


def ensure_role(caller: Caller, allowed: Iterable[UserRole]) -> None:
    """Raise ``Forbidden`` unless *caller* holds one of the *allowed* roles."""
    allowed = set(allowed)
    if caller.role not in allowed:
        names = ", ".join(sorted(r.value for r in allowed))
        raise Forbidden(f"Requires one of roles: {names}")
