"""Product catalogue endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


async def _product(client: AsyncClient, headers: dict[str, str], **overrides: object) -> dict:
    body = {
        "name": "Proteína Whey",
        "description": "Proteína de suero sabor vainilla, 1 kg.",
        "price": 25000,
        "category": "supplements",
    }
    body.update(overrides)
    response = await client.post("/api/products", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_product(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    product = await _product(client, admin_headers, image="https://res.cloudinary.com/olimpo/whey.png")
    assert product["slug"] == "proteina-whey"
    assert product["available"] is True
    assert product["image"] == "https://res.cloudinary.com/olimpo/whey.png"


@pytest.mark.asyncio
async def test_create_validation(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/products",
        headers=admin_headers,
        json={"name": "X", "description": "corta", "price": -1, "category": "food", "image": "no-url"},
    )
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert fields == {"name", "description", "price", "category", "image"}


@pytest.mark.asyncio
async def test_duplicate_name_gets_unique_slug(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    first = await _product(client, admin_headers)
    second = await _product(client, admin_headers)
    assert first["slug"] == "proteina-whey"
    assert second["slug"].startswith("proteina-whey-")


@pytest.mark.asyncio
async def test_categories(client: AsyncClient) -> None:
    response = await client.get("/api/products/categories")
    assert response.json() == ["supplements", "equipment", "clothing", "accessories"]


@pytest.mark.asyncio
async def test_public_catalogue_hides_unavailable(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    whey = await _product(client, admin_headers)
    gloves = await _product(
        client, admin_headers, name="Guantes de box", description="Guantes de 12 onzas.", category="equipment"
    )
    hidden = await _product(client, admin_headers, name="Remera Olimpo", category="clothing", available=False)

    public = await client.get("/api/products")
    assert {p["id"] for p in public.json()} == {whey["id"], gloves["id"]}

    supplements = await client.get("/api/products?category=supplements")
    assert [p["id"] for p in supplements.json()] == [whey["id"]]

    by_path = await client.get("/api/products/category/equipment")
    assert [p["id"] for p in by_path.json()] == [gloves["id"]]
    assert (await client.get("/api/products/category/clothing")).json() == []
    assert (await client.get("/api/products/category/food")).status_code == 400

    everything = await client.get("/api/products/all", headers=admin_headers)
    assert hidden["id"] in {p["id"] for p in everything.json()}


@pytest.mark.asyncio
async def test_toggle_availability(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    product = await _product(client, admin_headers)
    off = await client.post(f"/api/products/{product['id']}/toggle-availability", headers=admin_headers)
    assert off.json()["available"] is False
    on = await client.post(f"/api/products/{product['id']}/toggle-availability", headers=admin_headers)
    assert on.json()["available"] is True


@pytest.mark.asyncio
async def test_read_by_slug_and_id(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    product = await _product(client, admin_headers)
    assert (await client.get(f"/api/products/slug/{product['slug']}")).json()["id"] == product["id"]
    assert (await client.get(f"/api/products/{product['id']}")).json()["name"] == "Proteína Whey"

    missing = await client.get("/api/products/slug/nada")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Producto no encontrado"


@pytest.mark.asyncio
async def test_update_and_delete(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    product = await _product(client, admin_headers)

    updated = await client.patch(
        f"/api/products/{product['id']}",
        headers=admin_headers,
        json={"name": "Proteína Isolate", "price": 32000},
    )
    assert updated.status_code == 200
    assert updated.json()["slug"] == "proteina-isolate"
    assert updated.json()["price"] == 32000

    deleted = await client.delete(f"/api/products/{product['id']}", headers=admin_headers)
    assert deleted.json() == {"message": "Producto eliminado correctamente"}
    assert (await client.get(f"/api/products/{product['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_mutations_require_admin(client: AsyncClient, member_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/products",
        headers=member_headers,
        json={"name": "Shaker", "description": "Vaso mezclador 600 ml", "price": 3000, "category": "accessories"},
    )
    assert response.status_code == 403
