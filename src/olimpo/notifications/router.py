"""Notification router: /api/notifications/* (admin only)."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from olimpo.auth.dependencies import Principal, require_admin
from olimpo.database import get_session
from olimpo.notifications import service
from olimpo.notifications.schemas import (
    BulkEmailRequest,
    BulkEmailResult,
    LogFilters,
    MembershipExpirationRequest,
    MembershipRenewalRequest,
    NotificationList,
    NotificationLogPage,
    NotificationLogResponse,
    NotificationResponse,
    NotificationStatus,
    NotificationType,
    SendEmailRequest,
    SendResult,
    SendWhatsAppRequest,
    TemplateCreateRequest,
    TemplateList,
    TemplateResponse,
    TemplateResult,
    TemplateUpdateRequest,
)

router = APIRouter(
    prefix="/api/notifications",
    tags=["Notifications"],
    dependencies=[Depends(require_admin)],
)


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


@router.post("/email", response_model=SendResult)
async def send_email(body: SendEmailRequest, db: AsyncSession = Depends(get_session)) -> SendResult:
    ok = await service.send_email(
        db,
        body.email,
        body.subject,
        body.message,
        user_id=body.user_id,
        membership_id=body.membership_id,
        template_id=body.template_id,
    )
    return SendResult(success=ok)


@router.post("/whatsapp", response_model=SendResult)
async def send_whatsapp(body: SendWhatsAppRequest, db: AsyncSession = Depends(get_session)) -> SendResult:
    ok = await service.send_whatsapp(
        db,
        body.phone,
        body.message,
        user_id=body.user_id,
        membership_id=body.membership_id,
        template_id=body.template_id,
    )
    return SendResult(success=ok)


@router.post("/membership-expiration", response_model=SendResult)
async def membership_expiration(
    body: MembershipExpirationRequest,
    db: AsyncSession = Depends(get_session),
) -> SendResult:
    ok = await service.send_membership_expiration_notification(
        db,
        email=body.email,
        name=body.name,
        expiration_date=body.expiration_date,
        membership_type=body.membership_type,
        user_id=body.user_id,
        membership_id=body.membership_id,
        template_id=body.template_id,
    )
    return SendResult(success=ok)


@router.post("/membership-renewal", response_model=SendResult)
async def membership_renewal(
    body: MembershipRenewalRequest,
    db: AsyncSession = Depends(get_session),
) -> SendResult:
    ok = await service.send_membership_renewal_notification(
        db,
        email=body.email,
        name=body.name,
        new_expiration_date=body.new_expiration_date,
        membership_type=body.membership_type,
        user_id=body.user_id,
        membership_id=body.membership_id,
        template_id=body.template_id,
    )
    return SendResult(success=ok)


@router.post("/bulk-email", response_model=BulkEmailResult)
async def bulk_email(body: BulkEmailRequest, db: AsyncSession = Depends(get_session)) -> BulkEmailResult:
    """Send one message to many recipients, 50 per provider call."""
    result = await service.send_bulk_email(
        db, [str(e) for e in body.emails], body.subject, body.message, body.template_id
    )
    return BulkEmailResult.model_validate(result)


# ---------------------------------------------------------------------------
# Delivery log
# ---------------------------------------------------------------------------


@router.get("", response_model=NotificationList)
async def list_all(db: AsyncSession = Depends(get_session)) -> NotificationList:
    rows = await service.list_notifications(db)
    return NotificationList(notifications=[NotificationResponse.model_validate(r) for r in rows])


@router.get("/user/{user_id}", response_model=NotificationList)
async def list_for_user(user_id: str, db: AsyncSession = Depends(get_session)) -> NotificationList:
    rows = await service.list_notifications(db, user_id=user_id)
    return NotificationList(notifications=[NotificationResponse.model_validate(r) for r in rows])


@router.get("/logs", response_model=NotificationLogPage)
async def logs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    type: NotificationType | None = None,  # noqa: A002
    status: NotificationStatus | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    user_id: str | None = Query(None, alias="userId"),
    membership_id: str | None = Query(None, alias="membershipId"),
    db: AsyncSession = Depends(get_session),
) -> NotificationLogPage:
    """Paginated delivery log with optional filters."""
    filters = LogFilters(
        type=type,
        status=status,
        user_id=user_id,
        membership_id=membership_id,
        start_date=start_date,
        end_date=end_date,
    )
    rows, total = await service.get_notification_logs(db, page, limit, filters)
    return NotificationLogPage(
        logs=[NotificationResponse.model_validate(r) for r in rows],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/logs/{notification_id}", response_model=NotificationLogResponse)
async def log_detail(notification_id: str, db: AsyncSession = Depends(get_session)) -> NotificationLogResponse:
    row = await service.get_notification(db, notification_id)
    if row is None:
        return NotificationLogResponse(success=False, error="Registro de notificación no encontrado")
    return NotificationLogResponse(success=True, log=NotificationResponse.model_validate(row))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@router.post("/templates", response_model=TemplateResult, status_code=201)
async def create_template(
    body: TemplateCreateRequest,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> TemplateResult:
    if body.created_by is None:
        body.created_by = principal.id
    template = await service.create_template(db, body)
    await db.commit()
    return TemplateResult(success=True, template=TemplateResponse.model_validate(template))


@router.get("/templates", response_model=TemplateList)
async def list_templates(db: AsyncSession = Depends(get_session)) -> TemplateList:
    templates = await service.list_templates(db)
    return TemplateList(templates=[TemplateResponse.model_validate(t) for t in templates])


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(template_id: str, db: AsyncSession = Depends(get_session)) -> TemplateResponse:
    return TemplateResponse.model_validate(await service.get_template(db, template_id))


@router.put("/templates/{template_id}", response_model=TemplateResult)
async def update_template(
    template_id: str,
    body: TemplateUpdateRequest,
    db: AsyncSession = Depends(get_session),
) -> TemplateResult:
    template = await service.update_template(db, template_id, body)
    await db.commit()
    return TemplateResult(success=True, template=TemplateResponse.model_validate(template))


@router.delete("/templates/{template_id}", response_model=SendResult)
async def delete_template(template_id: str, db: AsyncSession = Depends(get_session)) -> SendResult:
    ok = await service.delete_template(db, template_id)
    await db.commit()
    return SendResult(success=ok)
