"""User management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from olimpo.auth.password import hash_password
from olimpo.db.models import User
from olimpo.errors import Conflict, Forbidden, NotFound

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.auth.dependencies import Principal
    from olimpo.auth.schemas import UserUpdateRequest

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def require_user(db: AsyncSession, user_id: str) -> User:
    """Fetch a user or raise NotFound."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = "Usuario no encontrado"
        raise NotFound(msg)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
    is_admin: bool = False,
    role: str = "user",
    conflict_message: str = "El usuario ya existe",
) -> User:
    """
    Create a user with a freshly hashed password.

    Raises:
        Conflict: If the email is already registered.
    """
    if await get_user_by_email(db, email) is not None:
        raise Conflict(conflict_message)

    user = User(
        email=email.lower(),
        password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        is_admin=is_admin,
        role="admin" if is_admin else role,
    )
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id, is_admin=user.is_admin)
    return user


async def update_user(
    db: AsyncSession,
    principal: Principal,
    user_id: str,
    changes: UserUpdateRequest,
) -> User:
    """
    Apply a partial update.

    Raises:
        NotFound: Unknown user.
        Forbidden: A non-admin editing someone else or their own privileges.
        Conflict: New email already used by another account.
    """
    user = await require_user(db, user_id)
    data = changes.model_dump(exclude_unset=True, mode="json")

    if not principal.is_admin and ({"is_admin", "role"} & data.keys()):
        msg = "No tienes permisos suficientes para realizar esta acción"
        raise Forbidden(msg)

    if "email" in data and data["email"] != user.email:
        result = await db.execute(
            select(User)
            .where(func.lower(User.email) == data["email"])
            .where(User.id != user.id)
        )
        if result.scalar_one_or_none() is not None:
            msg = "Este email ya está registrado"
            raise Conflict(msg)

    if data.get("password"):
        data["password"] = hash_password(data["password"])

    for field, value in data.items():
        if value is not None or field == "phone":
            setattr(user, field, value)
    if user.is_admin:
        user.role = "admin"
    elif "is_admin" in data and "role" not in data:
        user.role = "user"

    await db.flush()
    logger.info("user_updated", user_id=user.id, fields=sorted(data))
    return user


async def delete_user(db: AsyncSession, user_id: str) -> None:
    user = await require_user(db, user_id)
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user_id)
