"""Request/response schemas for attendance endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AttendanceCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    membership_id: str | None = None
    check_in_time: datetime | None = None


class AttendanceUpdate(BaseModel):
    membership_id: str | None = None
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None


class AttendanceResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str
    membership_id: str | None = None
    check_in_time: datetime
    check_out_time: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CheckInRequest(BaseModel):
    """Body of the POST variant of the public check-in endpoint."""

    data: str | None = None


class CheckInResponse(BaseModel):
    success: bool = True
    message: str
    attendance: AttendanceResponse


class QrCodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    qr_code: str = Field(..., alias="qrCode")


class QrVerifyRequest(BaseModel):
    token: str = Field(..., min_length=1)


class QrData(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None


class RegisterAttendanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    qr_data: QrData = Field(..., alias="qrData")
    user_id: str = Field(..., alias="userId", min_length=1)
