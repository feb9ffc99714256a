"""Shared test fixtures.

Tests run against an in-memory SQLite database (aiosqlite) with the schema
created from the ORM models, no Redis, and in-process fake delivery
providers.
"""

from __future__ import annotations

import os

os.environ["OLIMPO_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["OLIMPO_REDIS_URL"] = ""
os.environ["OLIMPO_BCRYPT_ROUNDS"] = "4"
os.environ["OLIMPO_SENDGRID_API_KEY"] = ""
os.environ["OLIMPO_WHATSAPP_TOKEN"] = ""
os.environ["OLIMPO_WHATSAPP_PHONE_ID"] = ""
os.environ["OLIMPO_CLOUDINARY_CLOUD_NAME"] = ""

from collections.abc import AsyncGenerator  # noqa: E402
from dataclasses import dataclass, field  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from olimpo.auth.service import issue_token  # noqa: E402
from olimpo.config import get_settings  # noqa: E402
from olimpo.database import close_db, create_all, get_session, init_db  # noqa: E402
from olimpo.db.models import User  # noqa: E402
from olimpo.main import create_app  # noqa: E402
from olimpo.notifications import providers  # noqa: E402
from olimpo.notifications.providers import BaseEmailProvider, BaseWhatsAppProvider  # noqa: E402
from olimpo.users.service import create_user  # noqa: E402

PASSWORD = "Secret1"


# ---------------------------------------------------------------------------
# Fake delivery providers
# ---------------------------------------------------------------------------


class FakeEmailProvider(BaseEmailProvider):
    """Records every send; raises ``fail_with`` when set."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_with: Exception | None = None

    async def send(self, recipients: list[str], subject: str, text_body: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append({"to": list(recipients), "subject": subject, "body": text_body})


class FakeWhatsAppProvider(BaseWhatsAppProvider):
    def __init__(self) -> None:
        self.texts: list[dict[str, str]] = []
        self.templates: list[dict[str, Any]] = []
        self.fail_with: Exception | None = None

    async def send_text(self, to: str, body: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.texts.append({"to": to, "body": body})

    async def send_template(self, to: str, template_name: str, parameters: list[dict[str, str]]) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.templates.append({"to": to, "name": template_name, "parameters": parameters})


@dataclass
class FakeSenders:
    email: FakeEmailProvider = field(default_factory=FakeEmailProvider)
    whatsapp: FakeWhatsAppProvider = field(default_factory=FakeWhatsAppProvider)


@pytest.fixture
def mock_sender(monkeypatch: pytest.MonkeyPatch) -> FakeSenders:
    """Swap the provider singletons for recording fakes."""
    senders = FakeSenders()
    monkeypatch.setattr(providers, "_email_provider", senders.email)
    monkeypatch.setattr(providers, "_whatsapp_provider", senders.whatsapp)
    return senders


# ---------------------------------------------------------------------------
# App and database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(tmp_path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over a fresh app and an empty in-memory database."""
    monkeypatch.setenv("OLIMPO_UPLOAD_DIR", str(tmp_path / "uploads"))
    get_settings.cache_clear()
    providers.reset_providers()

    await init_db(get_settings().database_url)
    await create_all()

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    providers.reset_providers()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for arranging data and asserting on it."""
    async for session in get_session():
        yield session
        await session.rollback()
        break


async def make_user(
    email: str,
    *,
    is_admin: bool = False,
    phone: str | None = None,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    """Create and commit a user in its own session."""
    async for db in get_session():
        user = await create_user(
            db,
            email=email,
            password=PASSWORD,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            is_admin=is_admin,
        )
        await db.commit()
        return user
    msg = "no database session"
    raise RuntimeError(msg)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest_asyncio.fixture
async def admin_user(client: AsyncClient) -> User:
    return await make_user("admin@olimpogym.com", is_admin=True, first_name="Ana", last_name="Admin")


@pytest_asyncio.fixture
async def member_user(client: AsyncClient) -> User:
    return await make_user(
        "socio@example.com", phone="1155550000", first_name="Juan", last_name="Pérez"
    )


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def member_headers(member_user: User) -> dict[str, str]:
    return auth_headers(member_user)
