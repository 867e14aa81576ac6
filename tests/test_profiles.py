"""Tests for profile and settings endpoints."""

from pathlib import Path
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.services.profile_service import ProfileService


@pytest.mark.asyncio
async def test_get_my_profile(client: AsyncClient, patient: dict, patient_headers: dict):
    response = await client.get("/api/v1/profiles/me", headers=patient_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(patient["id"])
    assert data["role"] == "patient"
    assert data["phone"] == "555-0101"
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_update_my_profile(client: AsyncClient, patient_headers: dict):
    response = await client.patch(
        "/api/v1/profiles/me",
        json={"full_name": "Nandini R.", "address": "12 Lake Road"},
        headers=patient_headers,
    )

    assert response.status_code == 200
    assert response.json()["full_name"] == "Nandini R."

    response = await client.get("/api/v1/profiles/me", headers=patient_headers)
    data = response.json()
    assert data["full_name"] == "Nandini R."
    assert data["address"] == "12 Lake Road"
    assert data["phone"] == "555-0101"


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value", [("role", "admin"), ("email", "x@example.com")])
async def test_update_my_profile_rejects_protected_fields(
    client: AsyncClient, patient_headers: dict, field: str, value: str
):
    response = await client.patch(
        "/api/v1/profiles/me", json={field: value}, headers=patient_headers
    )

    assert response.status_code == 422

    profile = (await client.get("/api/v1/profiles/me", headers=patient_headers)).json()
    assert profile["role"] == "patient"
    assert profile["email"] == "nandini@example.com"


@pytest.mark.asyncio
async def test_preferences_defaults(client: AsyncClient, patient_headers: dict):
    response = await client.get("/api/v1/profiles/me/preferences", headers=patient_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["notifications"]["email_notifications"] is True
    assert data["notifications"]["sms_notifications"] is False
    assert data["privacy"]["profile_visibility"] == "private"
    assert data["appearance"]["language"] == "en"


@pytest.mark.asyncio
async def test_update_preferences_merges_sections(client: AsyncClient, patient_headers: dict):
    response = await client.put(
        "/api/v1/profiles/me/preferences",
        json={"appearance": {"dark_mode": True}, "notifications": {"sms_notifications": True}},
        headers=patient_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["appearance"]["dark_mode"] is True
    assert data["appearance"]["language"] == "en"
    assert data["notifications"]["sms_notifications"] is True
    assert data["notifications"]["email_notifications"] is True

    stored = (
        await client.get("/api/v1/profiles/me/preferences", headers=patient_headers)
    ).json()
    assert stored == data


@pytest.mark.asyncio
async def test_update_preferences_validates_visibility(client: AsyncClient, patient_headers: dict):
    response = await client.put(
        "/api/v1/profiles/me/preferences",
        json={"privacy": {"profile_visibility": "everyone"}},
        headers=patient_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_avatar(
    client: AsyncClient, patient: dict, patient_headers: dict, tmp_path: Path
):
    response = await client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("../me photo.png", b"\x89PNG fake image", "image/png")},
        headers=patient_headers,
    )

    assert response.status_code == 200
    avatar_url = response.json()["avatar_url"]
    assert avatar_url.startswith(f"/files/avatars/{patient['id']}/")
    assert avatar_url.endswith("_me_photo.png")

    stored = tmp_path / avatar_url.removeprefix("/files/")
    assert stored.read_bytes() == b"\x89PNG fake image"


@pytest.mark.asyncio
async def test_upload_empty_avatar(client: AsyncClient, patient_headers: dict):
    response = await client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("empty.png", b"", "image/png")},
        headers=patient_headers,
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Uploaded file is empty"


@pytest.mark.asyncio
async def test_get_public_profile(
    client: AsyncClient, doctor: dict, patient_headers: dict
):
    response = await client.get(f"/api/v1/profiles/{doctor['id']}", headers=patient_headers)

    assert response.status_code == 200
    data = response.json()
    assert data == {
        "id": str(doctor["id"]),
        "full_name": "Sarah Johnson",
        "role": "doctor",
        "specialization": "Cardiology",
        "avatar_url": None,
    }


@pytest.mark.asyncio
async def test_get_public_profile_not_found(client: AsyncClient, patient_headers: dict):
    response = await client.get(f"/api/v1/profiles/{uuid4()}", headers=patient_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Profile not found"


@pytest.mark.asyncio
async def test_deactivated_profile_is_forbidden(
    client: AsyncClient, patient: dict, patient_headers: dict, db_session: AsyncSession
):
    await ProfileService().set_active(db_session, patient["id"], False)

    response = await client.get("/api/v1/profiles/me", headers=patient_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "User account is deactivated"


@pytest.mark.asyncio
@pytest.mark.parametrize("full_name", [None, "", "   "])
async def test_update_my_profile_keeps_name(
    client: AsyncClient, patient_headers: dict, full_name: str | None
):
    response = await client.patch(
        "/api/v1/profiles/me", json={"full_name": full_name}, headers=patient_headers
    )

    assert response.status_code == 422

    profile = (await client.get("/api/v1/profiles/me", headers=patient_headers)).json()
    assert profile["full_name"] == "Nandini Rao"
