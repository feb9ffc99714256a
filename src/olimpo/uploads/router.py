"""Uploads router: /api/uploads/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from olimpo.auth.dependencies import Principal, require_admin
from olimpo.auth.schemas import MessageResponse
from olimpo.errors import ValidationFailed
from olimpo.uploads import service
from olimpo.uploads.schemas import UploadResponse

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


@router.post("", response_model=UploadResponse, status_code=201)
async def upload(
    file: UploadFile | None = File(None),
    _admin: Principal = Depends(require_admin),
) -> UploadResponse:
    """Store a file (multipart field ``file``) in Cloudinary or on local disk."""
    if file is None or not file.filename:
        msg = "No se ha proporcionado ningún archivo"
        raise ValidationFailed(msg)
    content = await file.read()
    return await service.store_upload(content, file.filename, file.content_type or "application/octet-stream")


@router.delete("/cloudinary/{public_id:path}", response_model=MessageResponse)
async def delete_cloudinary(
    public_id: str,
    _admin: Principal = Depends(require_admin),
) -> MessageResponse:
    return MessageResponse(message=await service.delete_from_cloudinary(public_id))


@router.get("/{filename}")
async def get_file(filename: str) -> FileResponse:
    return FileResponse(service.get_local_file(filename))


@router.delete("/{filename}", response_model=MessageResponse)
async def delete_file(
    filename: str,
    _admin: Principal = Depends(require_admin),
) -> MessageResponse:
    return MessageResponse(message=service.delete_local_file(filename))
