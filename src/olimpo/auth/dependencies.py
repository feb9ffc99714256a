"""FastAPI authentication dependencies.

Handlers receive an explicit ``Principal`` instead of reading the token off
the request; services take it as a parameter where ownership matters.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.jwt import verify_token
from olimpo.database import get_session
from olimpo.errors import Forbidden, Unauthorized
from olimpo.users.service import get_user_by_id

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated caller."""

    id: str
    email: str
    is_admin: bool
    role: str

    def can_act_for(self, user_id: str) -> bool:
        """True for the user themselves and for admins."""
        return self.is_admin or self.id == user_id


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Principal:
    """
    Verify the bearer token and confirm the user still exists.

    Raises 401 when the header is missing, the token is invalid or expired,
    or the user has been deleted.
    """
    if credentials is None or not credentials.credentials:
        msg = "Token no proporcionado"
        raise Unauthorized(msg)

    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        msg = "Token inválido o expirado"
        raise Unauthorized(msg) from e

    user = await get_user_by_id(db, str(payload["sub"]))
    if user is None:
        msg = "Token inválido o expirado"
        raise Unauthorized(msg)
    return Principal(id=user.id, email=user.email, is_admin=user.is_admin, role=user.role)


def require_roles(*roles: str) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency that admits admins plus the listed roles."""

    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.is_admin or principal.role in roles:
            return principal
        raise Forbidden(FORBIDDEN_MESSAGE)

    return _check


require_admin = require_roles("admin")

FORBIDDEN_MESSAGE = "No tienes permisos suficientes para realizar esta acción"


def ensure_self_or_admin(principal: Principal, user_id: str, message: str = FORBIDDEN_MESSAGE) -> None:
    """Raise 403 unless the caller is ``user_id`` or an admin."""
    if not principal.can_act_for(user_id):
        raise Forbidden(message)
