"""Request/response schemas for notification endpoints.

Request bodies use the camelCase keys the admin dashboard sends
(``userId``, ``templateId`` ...); snake_case is accepted too.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class NotificationType(StrEnum):
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
    SMS = "SMS"
    PUSH = "PUSH"


class NotificationStatus(StrEnum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


class _Links(_CamelModel):
    user_id: str | None = None
    membership_id: str | None = None
    template_id: str | None = None


class SendEmailRequest(_Links):
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)


class SendWhatsAppRequest(_Links):
    phone: str = Field(..., min_length=6, max_length=32)
    message: str = Field(..., min_length=1)


class MembershipExpirationRequest(_Links):
    email: EmailStr
    name: str
    expiration_date: date
    membership_type: str


class MembershipRenewalRequest(_Links):
    email: EmailStr
    name: str
    new_expiration_date: date
    membership_type: str


class BulkEmailRequest(_CamelModel):
    emails: list[EmailStr] = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    template_id: str | None = None


class SendResult(BaseModel):
    success: bool


class BulkError(BaseModel):
    batch: int
    error: str


class BulkEmailResult(BaseModel):
    success: bool
    sent: int
    failed: int
    errors: list[BulkError]


# ---------------------------------------------------------------------------
# Delivery log
# ---------------------------------------------------------------------------


class NotificationResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    type: NotificationType
    recipient: str
    content: str
    status: NotificationStatus
    error_message: str | None = None
    user_id: str | None = None
    membership_id: str | None = None
    template_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationList(BaseModel):
    notifications: list[NotificationResponse]


class NotificationLogPage(BaseModel):
    logs: list[NotificationResponse]
    total: int
    page: int
    limit: int


class NotificationLogResponse(BaseModel):
    success: bool
    log: NotificationResponse | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateCreateRequest(_CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    type: NotificationType
    content: str = Field(..., min_length=1)
    variables: list[str] = Field(default_factory=list)
    subject: str | None = Field(None, max_length=200)
    is_default: bool = False
    whatsapp_template_name: str | None = Field(None, max_length=100)
    created_by: str | None = None


class TemplateUpdateRequest(_CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    content: str | None = Field(None, min_length=1)
    variables: list[str] | None = None
    subject: str | None = Field(None, max_length=200)
    is_default: bool | None = None
    whatsapp_template_name: str | None = Field(None, max_length=100)


class TemplateResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    description: str | None = None
    type: NotificationType
    content: str
    variables: list[str]
    subject: str | None = None
    is_default: bool
    whatsapp_template_name: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TemplateResult(BaseModel):
    success: bool
    template: TemplateResponse | None = None


class TemplateList(BaseModel):
    templates: list[TemplateResponse]


class LogFilters(BaseModel):
    """Parsed query parameters for the delivery log."""

    type: NotificationType | None = None
    status: NotificationStatus | None = None
    user_id: str | None = None
    membership_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

