"""
HS256 JWT token management.

Access tokens embed the user's email, id (``sub``) and admin flag so guards
can authorize without reading the users table on every request. The user row
is still loaded to confirm the account exists.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from olimpo.config import get_settings


def create_access_token(user_id: str, email: str, *, is_admin: bool, role: str = "user") -> str:
    """
    Create a signed access token.

    Args:
        user_id: The user's database ID.
        email: The user's email address.
        is_admin: Whether the user bypasses role checks.
        role: The user's role name.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "is_admin": is_admin,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
        "iss": settings.jwt_issuer,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, expired or badly signed.
    """
    settings = get_settings()
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp"]},
    )
    return payload
