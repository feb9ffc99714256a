"""Registration, login and /me integration tests."""

import pytest
from httpx import AsyncClient

from olimpo.db.models import User
from tests.conftest import PASSWORD, auth_headers

REGISTRATION = {
    "email": "Nuevo@Example.com",
    "password": "Secret1",
    "confirmPassword": "Secret1",
    "first_name": "Lucía",
    "last_name": "Gómez",
    "phone": "1155551234",
}


@pytest.mark.asyncio
async def test_register_returns_user_and_token(client: AsyncClient) -> None:
    """A new member gets a normalized email, no password in the body, and a bearer token."""
    response = await client.post("/api/auth/register", json=REGISTRATION)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Usuario registrado correctamente"
    assert data["user"]["email"] == "nuevo@example.com"
    assert data["user"]["is_admin"] is False
    assert data["user"]["role"] == "user"
    assert "password" not in data["user"]
    assert data["token"]["token_type"] == "bearer"
    assert data["token"]["access_token"]


@pytest.mark.asyncio
async def test_register_token_works_for_me(client: AsyncClient) -> None:
    response = await client.post("/api/auth/register", json=REGISTRATION)
    token = response.json()["token"]["access_token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "nuevo@example.com"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient) -> None:
    """Email uniqueness is case-insensitive."""
    await client.post("/api/auth/register", json=REGISTRATION)
    again = await client.post("/api/auth/register", json={**REGISTRATION, "email": "NUEVO@example.com"})
    assert again.status_code == 409
    assert again.json()["detail"] == "Este email ya está registrado"


@pytest.mark.asyncio
async def test_register_password_mismatch(client: AsyncClient) -> None:
    response = await client.post("/api/auth/register", json={**REGISTRATION, "confirmPassword": "Secret2"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Las contraseñas no coinciden"


@pytest.mark.asyncio
async def test_register_weak_password(client: AsyncClient) -> None:
    response = await client.post(
        "/api/auth/register", json={**REGISTRATION, "password": "secret", "confirmPassword": "secret"}
    )
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert errors[0]["field"] == "password"
    assert "mayúscula" in errors[0]["message"]


@pytest.mark.asyncio
async def test_register_requires_phone(client: AsyncClient) -> None:
    body = {k: v for k, v in REGISTRATION.items() if k != "phone"}
    response = await client.post("/api/auth/register", json=body)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, member_user: User) -> None:
    response = await client.post("/api/auth/login", json={"email": "SOCIO@example.com", "password": PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Inicio de sesión exitoso"
    assert data["user"]["id"] == member_user.id
    assert data["token"]["access_token"]


@pytest.mark.asyncio
async def test_login_wrong_password_and_unknown_email_look_the_same(
    client: AsyncClient, member_user: User
) -> None:
    wrong = await client.post("/api/auth/login", json={"email": member_user.email, "password": "Wrong1"})
    unknown = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()


@pytest.mark.asyncio
async def test_me_without_token(client: AsyncClient) -> None:
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Token no proporcionado"


@pytest.mark.asyncio
async def test_me_with_bad_token(client: AsyncClient) -> None:
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token inválido o expirado"


@pytest.mark.asyncio
async def test_token_of_deleted_user_rejected(
    client: AsyncClient, admin_headers: dict[str, str], member_user: User
) -> None:
    headers = auth_headers(member_user)
    deleted = await client.delete(f"/api/users/{member_user.id}", headers=admin_headers)
    assert deleted.status_code == 200

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
