"""Password hashing with bcrypt and registration strength rules."""

from __future__ import annotations

import bcrypt

from olimpo.config import get_settings


class PasswordStrengthError(ValueError):
    """Raised when a password does not meet strength requirements."""


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt (cost factor from settings, 10 by default)."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against its bcrypt hash. Never raises on mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash (e.g. legacy plain value).
        return False


def validate_password_strength(password: str) -> None:
    """
    Validate a new password.

    Requirements: minimum length (5 by default), at least one uppercase
    letter, one lowercase letter and one digit.
    """
    min_length = get_settings().password_min_length
    if len(password) < min_length:
        msg = f"La contraseña debe tener al menos {min_length} caracteres"
        raise PasswordStrengthError(msg)
    if not (
        any(c.isupper() for c in password)
        and any(c.islower() for c in password)
        and any(c.isdigit() for c in password)
    ):
        msg = "La contraseña debe contener al menos una letra mayúscula, una minúscula y un número"
        raise PasswordStrengthError(msg)
