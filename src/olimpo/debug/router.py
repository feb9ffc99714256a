"""Diagnostics for local troubleshooting. Mounted only when ``debug`` is on."""

from fastapi import APIRouter

from olimpo.config import get_settings, is_configured
from olimpo.redis_client import get_optional_redis
from olimpo.uploads.service import cloudinary_configured

router = APIRouter(prefix="/api", tags=["Debug"])


@router.get("/diagnostico")
async def diagnostics() -> dict[str, object]:
    """Which integrations are configured. Never echoes credential values."""
    settings = get_settings()
    return {
        "environment": settings.environment,
        "version": settings.app_version,
        "database": settings.database_url.split(":", 1)[0],
        "redis": get_optional_redis() is not None,
        "sendgrid": is_configured(settings.sendgrid_api_key),
        "whatsapp": is_configured(settings.whatsapp_token) and is_configured(settings.whatsapp_phone_id),
        "cloudinary": cloudinary_configured(settings),
        "uploadDir": settings.upload_dir,
    }
