"""Upload endpoint tests: local disk storage and the Cloudinary backend."""

from __future__ import annotations

from typing import Any

import cloudinary.exceptions
import cloudinary.uploader
import pytest
from httpx import AsyncClient

from olimpo.config import get_settings
from olimpo.errors import ValidationFailed
from olimpo.uploads.service import local_filename, resolve_local_path, validate_upload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestUploadRules:
    def test_allowed_extension_is_lowercased(self):
        assert validate_upload("Foto.JPG", 10) == ".jpg"

    def test_disallowed_extension(self):
        with pytest.raises(ValidationFailed, match="Formato de archivo no permitido: .exe"):
            validate_upload("virus.exe", 10)

    def test_too_large(self):
        with pytest.raises(ValidationFailed, match="tamaño máximo de 5 MB"):
            validate_upload("foto.png", 5 * 1024 * 1024 + 1)

    def test_local_filename_is_safe(self):
        name = local_filename("Mi Foto Ñandú.PNG")
        assert name.startswith("mi-foto-nandu-")
        assert name.endswith(".png")

    @pytest.mark.parametrize("name", ["", "../secret.png", "sub/dir.png", ".env"])
    def test_resolve_rejects_escapes(self, name: str):
        with pytest.raises(ValidationFailed, match="Nombre de archivo inválido"):
            resolve_local_path(name)


@pytest.mark.asyncio
async def test_local_upload_round_trip(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/uploads",
        headers=admin_headers,
        files={"file": ("portada.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["storage"] == "local"
    assert data["originalname"] == "portada.png"
    assert data["size"] == len(PNG_BYTES)
    assert data["mimetype"] == "image/png"
    assert data["format"] == "png"
    assert data["url"].endswith(f"/api/uploads/{data['public_id']}")

    served = await client.get(f"/api/uploads/{data['public_id']}")
    assert served.status_code == 200
    assert served.content == PNG_BYTES

    deleted = await client.delete(f"/api/uploads/{data['public_id']}", headers=admin_headers)
    assert deleted.json() == {"message": f"Archivo {data['public_id']} eliminado correctamente"}

    gone = await client.get(f"/api/uploads/{data['public_id']}")
    assert gone.status_code == 404
    assert gone.json()["detail"] == f"El archivo {data['public_id']} no existe"


@pytest.mark.asyncio
async def test_upload_without_file(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.post("/api/uploads", headers=admin_headers, data={"other": "x"})
    assert response.status_code == 400
    assert response.json()["detail"] == "No se ha proporcionado ningún archivo"


@pytest.mark.asyncio
async def test_upload_rejects_extension(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/uploads",
        headers=admin_headers,
        files={"file": ("script.sh", b"echo hi", "text/x-sh")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Formato de archivo no permitido: .sh"


@pytest.mark.asyncio
async def test_upload_requires_admin(client: AsyncClient, member_headers: dict[str, str]) -> None:
    response = await client.post(
        "/api/uploads",
        headers=member_headers,
        files={"file": ("portada.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_hidden_file_names_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/uploads/.env")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_cloudinary_delete_without_credentials(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.delete("/api/uploads/cloudinary/olimpo/abc", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cloudinary no está configurado. No se puede eliminar el archivo."


@pytest.fixture
def cloudinary_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, list[Any]]:
    """Configure Cloudinary credentials and record SDK calls instead of making them."""
    monkeypatch.setenv("OLIMPO_CLOUDINARY_CLOUD_NAME", "olimpo")
    monkeypatch.setenv("OLIMPO_CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("OLIMPO_CLOUDINARY_API_SECRET", "secret")
    get_settings.cache_clear()
    calls: dict[str, list[Any]] = {"upload": [], "destroy": []}

    def fake_upload(content: bytes, **options: Any) -> dict[str, Any]:
        calls["upload"].append(options)
        return {
            "secure_url": "https://res.cloudinary.com/olimpo/image/upload/v1/olimpo/abc.png",
            "public_id": "olimpo/abc",
            "format": "png",
            "width": 640,
            "height": 480,
        }

    def fake_destroy(public_id: str) -> dict[str, str]:
        calls["destroy"].append(public_id)
        if public_id == "olimpo/broken":
            msg = "Invalid Signature"
            raise cloudinary.exceptions.Error(msg)
        return {"result": "ok" if public_id == "olimpo/abc" else "not found"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)
    yield calls
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_cloudinary_upload(
    client: AsyncClient, admin_headers: dict[str, str], cloudinary_env: dict[str, list[Any]]
) -> None:
    response = await client.post(
        "/api/uploads",
        headers=admin_headers,
        files={"file": ("portada.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["storage"] == "cloudinary"
    assert data["public_id"] == "olimpo/abc"
    assert data["width"] == 640
    assert cloudinary_env["upload"] == [{"folder": "olimpo", "resource_type": "auto"}]


@pytest.mark.asyncio
async def test_cloudinary_delete(
    client: AsyncClient, admin_headers: dict[str, str], cloudinary_env: dict[str, list[Any]]
) -> None:
    ok = await client.delete("/api/uploads/cloudinary/olimpo/abc", headers=admin_headers)
    assert ok.status_code == 200
    assert ok.json() == {"message": "Archivo con ID olimpo/abc eliminado correctamente de Cloudinary"}

    missing = await client.delete("/api/uploads/cloudinary/olimpo/zzz", headers=admin_headers)
    assert missing.status_code == 500
    assert missing.json()["kind"] == "upstream"

    broken = await client.delete("/api/uploads/cloudinary/olimpo/broken", headers=admin_headers)
    assert broken.status_code == 500
    assert "Invalid Signature" in broken.json()["detail"]
