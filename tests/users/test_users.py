"""User management endpoint tests."""

import pytest
from httpx import AsyncClient

from olimpo.db.models import User
from tests.conftest import make_user


@pytest.mark.asyncio
async def test_admin_creates_user(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/users",
        headers=admin_headers,
        json={
            "email": "staff@example.com",
            "password": "Secret1",
            "first_name": "Sofía",
            "last_name": "Ruiz",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "staff@example.com"
    assert data["phone"] is None
    assert "password" not in data


@pytest.mark.asyncio
async def test_admin_create_duplicate(
    client: AsyncClient, admin_headers: dict[str, str], member_user: User
) -> None:
    response = await client.post(
        "/api/users",
        headers=admin_headers,
        json={"email": member_user.email, "password": "Secret1", "first_name": "X", "last_name": "Y"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "El usuario ya existe"


@pytest.mark.asyncio
async def test_member_cannot_create_users(client: AsyncClient, member_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/users",
        headers=member_headers,
        json={"email": "x@example.com", "password": "Secret1", "first_name": "X", "last_name": "Y"},
    )
    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_list_users_admin_only(
    client: AsyncClient, admin_headers: dict[str, str], member_headers: dict[str, str]
) -> None:
    listed = await client.get("/api/users", headers=admin_headers)
    assert listed.status_code == 200
    assert len(listed.json()) == 2
    assert all("password" not in u for u in listed.json())

    denied = await client.get("/api/users", headers=member_headers)
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_member_reads_self_but_not_others(
    client: AsyncClient, member_user: User, member_headers: dict[str, str]
) -> None:
    other = await make_user("otro@example.com")

    own = await client.get(f"/api/users/{member_user.id}", headers=member_headers)
    assert own.status_code == 200
    assert own.json()["first_name"] == "Juan"

    foreign = await client.get(f"/api/users/{other.id}", headers=member_headers)
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.get("/api/users/does-not-exist", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"detail": "Usuario no encontrado", "kind": "not_found"}


@pytest.mark.asyncio
async def test_member_updates_own_profile(
    client: AsyncClient, member_user: User, member_headers: dict[str, str]
) -> None:
    response = await client.patch(
        f"/api/users/{member_user.id}",
        headers=member_headers,
        json={"first_name": "Juan Carlos", "password": "Nueva12"},
    )
    assert response.status_code == 200
    assert response.json()["first_name"] == "Juan Carlos"

    login = await client.post("/api/auth/login", json={"email": member_user.email, "password": "Nueva12"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_member_cannot_promote_self(
    client: AsyncClient, member_user: User, member_headers: dict[str, str]
) -> None:
    response = await client.patch(
        f"/api/users/{member_user.id}", headers=member_headers, json={"is_admin": True}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_promotes_member(
    client: AsyncClient, member_user: User, admin_headers: dict[str, str]
) -> None:
    response = await client.patch(f"/api/users/{member_user.id}", headers=admin_headers, json={"is_admin": True})
    assert response.status_code == 200
    assert response.json()["is_admin"] is True
    assert response.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_update_email_conflict(
    client: AsyncClient, member_user: User, admin_user: User, member_headers: dict[str, str]
) -> None:
    response = await client.patch(
        f"/api/users/{member_user.id}", headers=member_headers, json={"email": admin_user.email.upper()}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient, member_user: User, admin_headers: dict[str, str]) -> None:
    response = await client.delete(f"/api/users/{member_user.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Usuario eliminado correctamente"}

    gone = await client.get(f"/api/users/{member_user.id}", headers=admin_headers)
    assert gone.status_code == 404
