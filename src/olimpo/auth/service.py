"""
Authentication business logic.

Registration, credential checks and token issuance. User persistence is
delegated to ``olimpo.users.service``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from olimpo.auth.jwt import create_access_token
from olimpo.auth.password import verify_password
from olimpo.errors import Unauthorized, ValidationFailed
from olimpo.users.service import create_user, get_user_by_email

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.auth.schemas import RegisterRequest
    from olimpo.db.models import User

logger = structlog.get_logger()

_INVALID_CREDENTIALS = "Credenciales inválidas"


def issue_token(user: User) -> str:
    """Sign an access token for the given user."""
    return create_access_token(user.id, user.email, is_admin=user.is_admin, role=user.role)


async def register_user(db: AsyncSession, body: RegisterRequest) -> User:
    """
    Register a member account.

    Raises:
        ValidationFailed: Password and confirmation differ.
        Conflict: Email already registered.
    """
    if body.password != body.confirm_password:
        msg = "Las contraseñas no coinciden"
        raise ValidationFailed(msg)

    user = await create_user(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        is_admin=False,
        conflict_message="Este email ya está registrado",
    )
    logger.info("user_registered", user_id=user.id)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Check email + password.

    Unknown email and wrong password fail identically.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password):
        logger.info("login_failed")
        raise Unauthorized(_INVALID_CREDENTIALS)
    logger.info("login_succeeded", user_id=user.id)
    return user
