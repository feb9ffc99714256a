"""
Notification delivery and bookkeeping.

Every send writes a PENDING row first, then calls the provider and moves the
row to SENT or FAILED. Provider problems, missing credentials included, are
recorded on the row and reported as ``False``; they never raise.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from sqlalchemy import func, select, update

from olimpo.config import get_settings
from olimpo.db.models import Membership, Notification, NotificationTemplate, User
from olimpo.errors import NotFound
from olimpo.notifications.providers import (
    ProviderNotConfigured,
    describe_failure,
    get_email_provider,
    get_whatsapp_provider,
)
from olimpo.notifications.schemas import NotificationStatus, NotificationType
from olimpo.notifications.templates import (
    expired_message,
    extract_parameters,
    format_date,
    render,
    renewed_message,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from olimpo.notifications.schemas import LogFilters, TemplateCreateRequest, TemplateUpdateRequest

logger = structlog.get_logger()

_DELIVERY_ERRORS = (ProviderNotConfigured, httpx.HTTPError)


# ---------------------------------------------------------------------------
# Delivery records
# ---------------------------------------------------------------------------


_LINKS = (
    (User, "Usuario no encontrado"),
    (Membership, "Membresía no encontrada"),
    (NotificationTemplate, "Plantilla no encontrada"),
)


async def _require_links(
    db: AsyncSession,
    *,
    user_id: str | None,
    membership_id: str | None,
    template_id: str | None,
) -> None:
    for (model, msg), linked_id in zip(_LINKS, (user_id, membership_id, template_id), strict=True):
        if linked_id is not None and await db.get(model, linked_id) is None:
            raise NotFound(msg)


async def create_record(
    db: AsyncSession,
    *,
    type: NotificationType,  # noqa: A002
    recipient: str,
    content: str,
    status: NotificationStatus = NotificationStatus.PENDING,
    user_id: str | None = None,
    membership_id: str | None = None,
    template_id: str | None = None,
    error_message: str | None = None,
) -> Notification:
    """Persist a delivery row and commit so it survives later failures.

    Raises:
        NotFound: a linked user, membership or template does not exist.
    """
    await _require_links(db, user_id=user_id, membership_id=membership_id, template_id=template_id)
    record = Notification(
        type=type.value,
        recipient=recipient,
        content=content,
        status=status.value,
        user_id=user_id,
        membership_id=membership_id,
        template_id=template_id,
        error_message=error_message,
    )
    db.add(record)
    await db.commit()
    return record


async def _finish(
    db: AsyncSession,
    record: Notification,
    status: NotificationStatus,
    error_message: str | None = None,
) -> None:
    record.status = status.value
    record.error_message = error_message
    await db.commit()


# ---------------------------------------------------------------------------
# Email / WhatsApp
# ---------------------------------------------------------------------------


async def send_email(
    db: AsyncSession,
    to: str,
    subject: str,
    text: str,
    *,
    user_id: str | None = None,
    membership_id: str | None = None,
    template_id: str | None = None,
) -> bool:
    """Send a single email. Returns True when the provider accepted it."""
    record = await create_record(
        db,
        type=NotificationType.EMAIL,
        recipient=to,
        content=text,
        user_id=user_id,
        membership_id=membership_id,
        template_id=template_id,
    )
    try:
        await get_email_provider().send([to], subject, text)
    except _DELIVERY_ERRORS as exc:
        logger.warning("email_send_failed", notification_id=record.id, error=str(exc))
        await _finish(db, record, NotificationStatus.FAILED, describe_failure(exc))
        return False

    await _finish(db, record, NotificationStatus.SENT)
    return True


def normalize_phone(phone: str, country_code: str = "54") -> str:
    """
    Normalize a local phone number to ``+<country><number>``.

    ``0...`` drops the trunk zero, ``15...`` is a mobile number (``+549``),
    a number already starting with the country code just gains the ``+``.
    Numbers that already carry ``+`` are kept.
    """
    formatted = "".join(phone.split())
    if formatted.startswith("+"):
        return formatted
    if formatted.startswith("0"):
        return f"+{country_code}{formatted[1:]}"
    if formatted.startswith("15"):
        return f"+{country_code}9{formatted[2:]}"
    if formatted.startswith(country_code):
        return f"+{formatted}"
    return f"+{country_code}{formatted}"


async def send_whatsapp(
    db: AsyncSession,
    phone: str,
    message: str,
    *,
    user_id: str | None = None,
    membership_id: str | None = None,
    template_id: str | None = None,
) -> bool:
    """
    Send a WhatsApp message.

    When ``template_id`` names a template with a ``whatsapp_template_name``,
    an approved template message is sent with parameters pulled from
    ``message``; otherwise a plain text message.
    """
    formatted = normalize_phone(phone, get_settings().whatsapp_country_code)
    record = await create_record(
        db,
        type=NotificationType.WHATSAPP,
        recipient=formatted,
        content=message,
        user_id=user_id,
        membership_id=membership_id,
        template_id=template_id,
    )

    template = await find_template(db, template_id) if template_id else None
    provider = get_whatsapp_provider()
    to = formatted.removeprefix("+")
    try:
        if template is not None and template.whatsapp_template_name:
            parameters = extract_parameters(message, template.variables)
            await provider.send_template(to, template.whatsapp_template_name, parameters)
        else:
            await provider.send_text(to, message)
    except _DELIVERY_ERRORS as exc:
        logger.warning("whatsapp_send_failed", notification_id=record.id, error=str(exc))
        await _finish(db, record, NotificationStatus.FAILED, describe_failure(exc))
        return False

    await _finish(db, record, NotificationStatus.SENT)
    return True


# ---------------------------------------------------------------------------
# Membership notifications
# ---------------------------------------------------------------------------


async def _pick_template(
    db: AsyncSession,
    template_id: str | None,
    type: NotificationType,  # noqa: A002
    name_fragment: str,
) -> NotificationTemplate | None:
    if template_id:
        return await find_template(db, template_id)
    return await find_default_template(db, type, name_fragment)


async def send_membership_expiration_notification(
    db: AsyncSession,
    *,
    email: str,
    name: str,
    expiration_date: date,
    membership_type: str,
    user_id: str | None = None,
    membership_id: str | None = None,
    template_id: str | None = None,
) -> bool:
    """Email a member that their membership has expired."""
    when = format_date(expiration_date)
    subject = "Tu membresía ha expirado"
    message = expired_message(name, membership_type, expiration_date)

    template = await _pick_template(db, template_id, NotificationType.EMAIL, "expiracion")
    if template is not None:
        subject = template.subject or subject
        message = render(
            template.content or message,
            {"nombre": name, "tipo_membresia": membership_type, "fecha_expiracion": when},
        )

    return await send_email(
        db,
        email,
        subject,
        message,
        user_id=user_id,
        membership_id=membership_id,
        template_id=template.id if template else None,
    )


async def send_membership_renewal_notification(
    db: AsyncSession,
    *,
    email: str,
    name: str,
    new_expiration_date: date,
    membership_type: str,
    user_id: str | None = None,
    membership_id: str | None = None,
    template_id: str | None = None,
) -> bool:
    """Email a member that their membership was renewed."""
    when = format_date(new_expiration_date)
    subject = "Tu membresía ha sido renovada"
    message = renewed_message(name, membership_type, new_expiration_date)

    template = await _pick_template(db, template_id, NotificationType.EMAIL, "renovacion")
    if template is not None:
        subject = template.subject or subject
        message = render(
            template.content or message,
            {"nombre": name, "tipo_membresia": membership_type, "nueva_fecha_expiracion": when},
        )

    return await send_email(
        db,
        email,
        subject,
        message,
        user_id=user_id,
        membership_id=membership_id,
        template_id=template.id if template else None,
    )


# ---------------------------------------------------------------------------
# Bulk email
# ---------------------------------------------------------------------------


async def send_bulk_email(
    db: AsyncSession,
    emails: list[str],
    subject: str,
    message: str,
    template_id: str | None = None,
) -> dict[str, Any]:
    """
    Send the same email to many recipients in batches.

    One provider call per batch. Every recipient gets a SENT or FAILED row.
    The run counts as successful when something was sent and fewer than half
    of the recipients failed.
    """
    template = await find_template(db, template_id) if template_id else None
    if template is not None:
        subject = template.subject or subject
        message = template.content or message

    batch_size = get_settings().email_batch_size
    provider = get_email_provider()
    sent = failed = 0
    errors: list[dict[str, Any]] = []

    for start in range(0, len(emails), batch_size):
        batch = emails[start : start + batch_size]
        batch_number = start // batch_size + 1
        try:
            await provider.send(batch, subject, message)
        except _DELIVERY_ERRORS as exc:
            error = describe_failure(exc)
            failed += len(batch)
            errors.append({"batch": batch_number, "error": error})
            status, error_message = NotificationStatus.FAILED, error
            logger.warning("bulk_email_batch_failed", batch=batch_number, size=len(batch), error=str(exc))
        else:
            sent += len(batch)
            status, error_message = NotificationStatus.SENT, None

        for recipient in batch:
            db.add(Notification(
                type=NotificationType.EMAIL.value,
                recipient=recipient,
                content=message,
                status=status.value,
                template_id=template.id if template else None,
                error_message=error_message,
            ))
        await db.commit()

    logger.info("bulk_email_finished", total=len(emails), sent=sent, failed=failed)
    return {
        "success": sent > 0 and failed < len(emails) * 0.5,
        "sent": sent,
        "failed": failed,
        "errors": errors,
    }


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


async def find_template(db: AsyncSession, template_id: str) -> NotificationTemplate | None:
    result = await db.execute(select(NotificationTemplate).where(NotificationTemplate.id == template_id))
    return result.scalar_one_or_none()


async def get_template(db: AsyncSession, template_id: str) -> NotificationTemplate:
    template = await find_template(db, template_id)
    if template is None:
        msg = "Plantilla no encontrada"
        raise NotFound(msg)
    return template


async def find_default_template(
    db: AsyncSession,
    type: NotificationType,  # noqa: A002
    name_fragment: str,
) -> NotificationTemplate | None:
    """First default template of ``type`` whose name contains ``name_fragment``."""
    result = await db.execute(
        select(NotificationTemplate)
        .where(NotificationTemplate.type == type.value)
        .where(NotificationTemplate.is_default.is_(True))
        .where(func.lower(NotificationTemplate.name).like(f"%{name_fragment.lower()}%"))
        .order_by(NotificationTemplate.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _clear_default(db: AsyncSession, type: str, keep_id: str | None = None) -> None:  # noqa: A002
    stmt = (
        update(NotificationTemplate)
        .where(NotificationTemplate.type == type)
        .where(NotificationTemplate.is_default.is_(True))
    )
    if keep_id is not None:
        stmt = stmt.where(NotificationTemplate.id != keep_id)
    await db.execute(stmt.values(is_default=False))


async def list_templates(db: AsyncSession) -> list[NotificationTemplate]:
    result = await db.execute(select(NotificationTemplate).order_by(NotificationTemplate.created_at.desc()))
    return list(result.scalars().all())


async def create_template(db: AsyncSession, body: TemplateCreateRequest) -> NotificationTemplate:
    """Create a template; a new default replaces the previous default of its type."""
    if body.is_default:
        await _clear_default(db, body.type.value)
    template = NotificationTemplate(
        name=body.name,
        description=body.description,
        type=body.type.value,
        content=body.content,
        variables=body.variables,
        subject=body.subject,
        is_default=body.is_default,
        whatsapp_template_name=body.whatsapp_template_name,
        created_by=body.created_by,
    )
    db.add(template)
    await db.flush()
    logger.info("template_created", template_id=template.id, type=template.type, is_default=template.is_default)
    return template


async def update_template(db: AsyncSession, template_id: str, body: TemplateUpdateRequest) -> NotificationTemplate:
    template = await get_template(db, template_id)
    data = body.model_dump(exclude_unset=True)
    if data.get("is_default"):
        await _clear_default(db, template.type, keep_id=template.id)
    for field, value in data.items():
        setattr(template, field, value)
    await db.flush()
    return template


async def delete_template(db: AsyncSession, template_id: str) -> bool:
    template = await find_template(db, template_id)
    if template is None:
        return False
    await db.delete(template)
    await db.flush()
    return True


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_notifications(db: AsyncSession, user_id: str | None = None) -> list[Notification]:
    stmt = select(Notification).order_by(Notification.created_at.desc())
    if user_id is not None:
        stmt = stmt.where(Notification.user_id == user_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_notification_logs(
    db: AsyncSession,
    page: int,
    limit: int,
    filters: LogFilters,
) -> tuple[list[Notification], int]:
    """Paginated delivery log, newest first, with the total matching count."""
    conditions = []
    if filters.type is not None:
        conditions.append(Notification.type == filters.type.value)
    if filters.status is not None:
        conditions.append(Notification.status == filters.status.value)
    if filters.user_id:
        conditions.append(Notification.user_id == filters.user_id)
    if filters.membership_id:
        conditions.append(Notification.membership_id == filters.membership_id)
    if filters.start_date and filters.end_date:
        conditions.append(Notification.created_at >= filters.start_date)
        conditions.append(Notification.created_at <= filters.end_date)

    total = (await db.execute(select(func.count(Notification.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total)


async def get_notification(db: AsyncSession, notification_id: str) -> Notification | None:
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    return result.scalar_one_or_none()
