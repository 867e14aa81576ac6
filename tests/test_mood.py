"""Tests for mood check-ins."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_log_mood(client: AsyncClient, patient: dict, patient_headers: dict):
    response = await client.post(
        "/api/v1/mood-logs",
        json={"mood": 4, "note": "Slept well"},
        headers=patient_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == str(patient["id"])
    assert data["mood"] == 4
    assert data["label"] == "Happy"
    assert data["note"] == "Slept well"


@pytest.mark.asyncio
@pytest.mark.parametrize("mood", [0, 6])
async def test_mood_out_of_range(client: AsyncClient, patient_headers: dict, mood: int):
    response = await client.post(
        "/api/v1/mood-logs", json={"mood": mood}, headers=patient_headers
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_recent_moods_keeps_last_seven(client: AsyncClient, patient_headers: dict):
    for mood in [1, 2, 3, 4, 5, 1, 2, 3, 4]:
        await client.post("/api/v1/mood-logs", json={"mood": mood}, headers=patient_headers)

    response = await client.get("/api/v1/mood-logs", headers=patient_headers)

    assert response.status_code == 200
    assert len(response.json()) == 7


@pytest.mark.asyncio
async def test_moods_are_private(
    client: AsyncClient, patient_headers: dict, other_patient_headers: dict
):
    await client.post("/api/v1/mood-logs", json={"mood": 3}, headers=patient_headers)

    response = await client.get("/api/v1/mood-logs", headers=other_patient_headers)

    assert response.json() == []


@pytest.mark.asyncio
async def test_doctor_has_no_mood_log(client: AsyncClient, doctor_headers: dict):
    response = await client.get("/api/v1/mood-logs", headers=doctor_headers)

    assert response.status_code == 403
