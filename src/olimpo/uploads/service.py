"""
File storage for uploaded images and documents.

Cloudinary is used when its credentials are configured; otherwise files land
in the local upload directory and are served back by the uploads router.
"""

from __future__ import annotations

import asyncio
import secrets
import time
from pathlib import Path
from typing import Any

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog
from slugify import slugify

from olimpo.config import Settings, get_settings, is_configured
from olimpo.errors import NotFound, UpstreamFailure, ValidationFailed
from olimpo.uploads.schemas import UploadResponse

logger = structlog.get_logger()


def cloudinary_configured(settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return all(
        is_configured(value)
        for value in (settings.cloudinary_cloud_name, settings.cloudinary_api_key, settings.cloudinary_api_secret)
    )


def _configure_cloudinary(settings: Settings) -> None:
    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True,
    )


def validate_upload(filename: str, size: int, settings: Settings | None = None) -> str:
    """Check extension and size; return the lowercased extension."""
    settings = settings or get_settings()
    ext = Path(filename).suffix.lower()
    if ext not in settings.upload_allowed_extensions:
        msg = f"Formato de archivo no permitido: {ext or filename}"
        raise ValidationFailed(msg)
    if size > settings.upload_max_bytes:
        msg = f"El archivo excede el tamaño máximo de {settings.upload_max_bytes // (1024 * 1024)} MB"
        raise ValidationFailed(msg)
    return ext


def local_filename(original: str) -> str:
    """``{stem}-{epoch_ms}-{random}{ext}`` with a filesystem-safe stem."""
    path = Path(original)
    stem = slugify(path.stem) or "archivo"
    return f"{stem}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{path.suffix.lower()}"


def resolve_local_path(filename: str, settings: Settings | None = None) -> Path:
    """Path of a stored file; rejects anything that could escape the upload directory."""
    settings = settings or get_settings()
    if not filename or Path(filename).name != filename or filename.startswith("."):
        msg = "Nombre de archivo inválido"
        raise ValidationFailed(msg)
    return Path(settings.upload_dir) / filename


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------


async def upload_to_cloudinary(content: bytes, filename: str, content_type: str, settings: Settings) -> UploadResponse:
    _configure_cloudinary(settings)
    try:
        result: dict[str, Any] = await asyncio.to_thread(
            cloudinary.uploader.upload,
            content,
            folder=settings.cloudinary_folder,
            resource_type="auto",
        )
    except cloudinary.exceptions.Error as exc:
        msg = f"Error al subir archivo a Cloudinary: {exc}"
        raise UpstreamFailure(msg) from exc

    logger.info("upload_stored", storage="cloudinary", public_id=result.get("public_id"), size=len(content))
    return UploadResponse(
        url=result["secure_url"],
        public_id=result.get("public_id"),
        format=result.get("format"),
        width=result.get("width"),
        height=result.get("height"),
        originalname=filename,
        size=len(content),
        mimetype=content_type,
        storage="cloudinary",
    )


async def save_locally(content: bytes, filename: str, content_type: str, settings: Settings) -> UploadResponse:
    name = local_filename(filename)
    target = resolve_local_path(name, settings)
    target.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(target.write_bytes, content)

    logger.info("upload_stored", storage="local", filename=name, size=len(content))
    return UploadResponse(
        url=f"{settings.public_base_url.rstrip('/')}/api/uploads/{name}",
        public_id=name,
        format=target.suffix.lstrip(".") or None,
        originalname=filename,
        size=len(content),
        mimetype=content_type,
        storage="local",
    )


async def store_upload(content: bytes, filename: str, content_type: str) -> UploadResponse:
    """Validate and store a file in whichever backend is configured."""
    settings = get_settings()
    validate_upload(filename, len(content), settings)
    if cloudinary_configured(settings):
        return await upload_to_cloudinary(content, filename, content_type, settings)
    return await save_locally(content, filename, content_type, settings)


def get_local_file(filename: str) -> Path:
    path = resolve_local_path(filename)
    if not path.is_file():
        msg = f"El archivo {filename} no existe"
        raise NotFound(msg)
    return path


def delete_local_file(filename: str) -> str:
    path = get_local_file(filename)
    path.unlink()
    logger.info("upload_deleted", storage="local", filename=filename)
    return f"Archivo {filename} eliminado correctamente"


async def delete_from_cloudinary(public_id: str) -> str:
    settings = get_settings()
    if not cloudinary_configured(settings):
        msg = "Cloudinary no está configurado. No se puede eliminar el archivo."
        raise ValidationFailed(msg)
    _configure_cloudinary(settings)
    try:
        result: dict[str, Any] = await asyncio.to_thread(cloudinary.uploader.destroy, public_id)
    except cloudinary.exceptions.Error as exc:
        msg = f"Error al eliminar archivo de Cloudinary: {exc}"
        raise UpstreamFailure(msg) from exc
    if result.get("result") != "ok":
        msg = f"No se pudo eliminar el archivo con ID {public_id}"
        raise UpstreamFailure(msg)
    logger.info("upload_deleted", storage="cloudinary", public_id=public_id)
    return f"Archivo con ID {public_id} eliminado correctamente de Cloudinary"
