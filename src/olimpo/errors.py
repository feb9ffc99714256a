"""Typed application errors.

Services raise these; a single handler in ``olimpo.middleware.error_handler``
turns them into ``{"detail": ..., "kind": ...}`` JSON responses. Messages are
user-facing and written in Spanish.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    BUSINESS_RULE = "business_rule"
    UPSTREAM = "upstream"


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    kind: ErrorKind = ErrorKind.UPSTREAM
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(AppError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class Conflict(AppError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class Unauthorized(AppError):
    kind = ErrorKind.AUTH
    status_code = 401


class Forbidden(AppError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403


class BusinessRuleViolation(AppError):
    kind = ErrorKind.BUSINESS_RULE
    status_code = 400


class UpstreamFailure(AppError):
    """Database or provider failure; the upstream message is embedded."""

    kind = ErrorKind.UPSTREAM
    status_code = 500
