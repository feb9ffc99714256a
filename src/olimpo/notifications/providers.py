"""
Outbound delivery providers.

Email goes through the SendGrid v3 HTTP API, WhatsApp through the Meta
Graph API (WhatsApp Business Cloud). Both are called with httpx. Providers
raise on failure; ``olimpo.notifications.service`` turns failures into
FAILED delivery records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from olimpo.config import get_settings, is_configured
from olimpo.notifications.templates import text_to_html

logger = structlog.get_logger()

_TIMEOUT = 10.0


class ProviderNotConfigured(Exception):
    """Credentials for a provider are missing or still the sample placeholders."""


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    @abstractmethod
    async def send(self, recipients: list[str], subject: str, text_body: str) -> None:
        """Send one message per recipient. Raises on failure."""
        ...


class SendGridProvider(BaseEmailProvider):
    """Send emails via the SendGrid v3 mail/send endpoint."""

    def __init__(self, api_key: str, api_url: str, from_address: str, from_name: str) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.from_address = from_address
        self.from_name = from_name

    async def send(self, recipients: list[str], subject: str, text_body: str) -> None:
        if not is_configured(self.api_key):
            msg = "Credenciales de SendGrid no configuradas"
            raise ProviderNotConfigured(msg)

        # One personalization per recipient: nobody sees the other addresses.
        payload = {
            "personalizations": [{"to": [{"email": r}]} for r in recipients],
            "from": {"email": self.from_address, "name": self.from_name},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text_body},
                {"type": "text/html", "value": text_to_html(text_body)},
            ],
        }
        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=_TIMEOUT,
            )
            response.raise_for_status()
        logger.info("email_sent", recipients=len(recipients), subject=subject, provider="sendgrid")


# ---------------------------------------------------------------------------
# WhatsApp
# ---------------------------------------------------------------------------


class BaseWhatsAppProvider(ABC):
    """Abstract base class for WhatsApp delivery providers."""

    @abstractmethod
    async def send_text(self, to: str, body: str) -> None: ...

    @abstractmethod
    async def send_template(self, to: str, template_name: str, parameters: list[dict[str, str]]) -> None: ...


class GraphWhatsAppProvider(BaseWhatsAppProvider):
    """WhatsApp Business Cloud API. ``to`` is the number without the leading '+'."""

    def __init__(self, token: str, phone_id: str, api_version: str, language: str) -> None:
        self.token = token
        self.phone_id = phone_id
        self.api_version = api_version
        self.language = language

    @property
    def url(self) -> str:
        return f"https://graph.facebook.com/{self.api_version}/{self.phone_id}/messages"

    async def send_text(self, to: str, body: str) -> None:
        await self._post({"messaging_product": "whatsapp", "to": to, "type": "text", "text": {"body": body}})

    async def send_template(self, to: str, template_name: str, parameters: list[dict[str, str]]) -> None:
        await self._post({
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": self.language},
                "components": [{"type": "body", "parameters": parameters}],
            },
        })

    async def _post(self, payload: dict[str, Any]) -> None:
        if not (is_configured(self.token) and is_configured(self.phone_id)):
            msg = "Credenciales de WhatsApp Business API no configuradas o inválidas"
            raise ProviderNotConfigured(msg)

        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=_TIMEOUT,
            )
            response.raise_for_status()
        logger.info("whatsapp_sent", to=payload["to"], type=payload["type"])


def describe_failure(exc: Exception) -> str:
    """Human-readable error stored on FAILED notification rows."""
    if isinstance(exc, ProviderNotConfigured):
        return str(exc)
    if isinstance(exc, httpx.HTTPStatusError):
        return f"Error: {exc.response.status_code} {exc.response.reason_phrase} - {exc.response.text[:500]}"
    return f"Error: {exc}"


# ---------------------------------------------------------------------------
# Singletons
# ---------------------------------------------------------------------------

_email_provider: BaseEmailProvider | None = None
_whatsapp_provider: BaseWhatsAppProvider | None = None


def get_email_provider() -> BaseEmailProvider:
    """Get or create the email provider singleton."""
    global _email_provider  # noqa: PLW0603
    if _email_provider is None:
        settings = get_settings()
        _email_provider = SendGridProvider(
            api_key=settings.sendgrid_api_key,
            api_url=settings.sendgrid_api_url,
            from_address=settings.email_from_address or "info@olimpogym.com",
            from_name=settings.email_from_name,
        )
    return _email_provider


def get_whatsapp_provider() -> BaseWhatsAppProvider:
    """Get or create the WhatsApp provider singleton."""
    global _whatsapp_provider  # noqa: PLW0603
    if _whatsapp_provider is None:
        settings = get_settings()
        _whatsapp_provider = GraphWhatsAppProvider(
            token=settings.whatsapp_token,
            phone_id=settings.whatsapp_phone_id,
            api_version=settings.whatsapp_api_version,
            language=settings.whatsapp_language,
        )
    return _whatsapp_provider


def reset_providers() -> None:
    """Drop cached providers (settings changed, tests)."""
    global _email_provider, _whatsapp_provider  # noqa: PLW0603
    _email_provider = None
    _whatsapp_provider = None
