"""Tests for prescription endpoints."""

from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient


@pytest_asyncio.fixture
async def prescription(client: AsyncClient, patient: dict, doctor_headers: dict) -> dict:
    """An active prescription issued by the primary doctor."""
    response = await client.post(
        "/api/v1/prescriptions",
        json={
            "patient_id": str(patient["id"]),
            "medication_name": "Atorvastatin",
            "dosage": "20mg",
            "frequency": "Once daily",
            "duration": "90 days",
            "instructions": "Take with the evening meal",
        },
        headers=doctor_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
class TestIssuePrescription:
    """Tests for issuing prescriptions."""

    async def test_issue_prescription(
        self, client: AsyncClient, prescription: dict, doctor: dict, patient_headers: dict
    ):
        assert prescription["doctor_id"] == str(doctor["id"])
        assert prescription["is_active"] is True

        notes = (await client.get("/api/v1/notifications", headers=patient_headers)).json()
        assert notes[0]["title"] == "New prescription"
        assert notes[0]["message"] == "Atorvastatin 20mg, Once daily"
        assert notes[0]["type"] == "prescription"

    async def test_patient_cannot_prescribe(
        self, client: AsyncClient, other_patient: dict, patient_headers: dict
    ):
        response = await client.post(
            "/api/v1/prescriptions",
            json={
                "patient_id": str(other_patient["id"]),
                "medication_name": "Ibuprofen",
                "dosage": "200mg",
                "frequency": "As needed",
            },
            headers=patient_headers,
        )

        assert response.status_code == 403

    @pytest.mark.parametrize("target", ["other_doctor", "missing"])
    async def test_prescription_needs_patient(
        self, client: AsyncClient, other_doctor: dict, doctor_headers: dict, target: str
    ):
        patient_id = other_doctor["id"] if target == "other_doctor" else uuid4()

        response = await client.post(
            "/api/v1/prescriptions",
            json={
                "patient_id": str(patient_id),
                "medication_name": "Ibuprofen",
                "dosage": "200mg",
                "frequency": "As needed",
            },
            headers=doctor_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Prescriptions can only be issued to patients"


@pytest.mark.asyncio
class TestListPrescriptions:
    """Tests for prescription visibility."""

    async def test_patient_sees_own(
        self,
        client: AsyncClient,
        prescription: dict,
        patient_headers: dict,
        other_patient_headers: dict,
    ):
        mine = await client.get("/api/v1/prescriptions", headers=patient_headers)
        theirs = await client.get("/api/v1/prescriptions", headers=other_patient_headers)

        assert [p["id"] for p in mine.json()] == [prescription["id"]]
        assert theirs.json() == []

    async def test_doctor_sees_issued(
        self,
        client: AsyncClient,
        prescription: dict,
        patient: dict,
        doctor_headers: dict,
        other_doctor_headers: dict,
    ):
        mine = await client.get(
            "/api/v1/prescriptions",
            params={"patient_id": str(patient["id"])},
            headers=doctor_headers,
        )
        theirs = await client.get("/api/v1/prescriptions", headers=other_doctor_headers)

        assert [p["id"] for p in mine.json()] == [prescription["id"]]
        assert theirs.json() == []

    async def test_active_only(
        self,
        client: AsyncClient,
        prescription: dict,
        doctor_headers: dict,
        patient_headers: dict,
    ):
        await client.patch(
            f"/api/v1/prescriptions/{prescription['id']}",
            json={"is_active": False},
            headers=doctor_headers,
        )

        everything = await client.get("/api/v1/prescriptions", headers=patient_headers)
        active = await client.get(
            "/api/v1/prescriptions", params={"active_only": True}, headers=patient_headers
        )

        assert len(everything.json()) == 1
        assert active.json() == []


@pytest.mark.asyncio
class TestUpdatePrescription:
    """Tests for changing prescriptions."""

    async def test_update_dosage(
        self, client: AsyncClient, prescription: dict, doctor_headers: dict
    ):
        response = await client.patch(
            f"/api/v1/prescriptions/{prescription['id']}",
            json={"dosage": "40mg"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dosage"] == "40mg"
        assert data["frequency"] == "Once daily"
        assert data["is_active"] is True

    async def test_empty_update_is_noop(
        self, client: AsyncClient, prescription: dict, doctor_headers: dict
    ):
        response = await client.patch(
            f"/api/v1/prescriptions/{prescription['id']}", json={}, headers=doctor_headers
        )

        assert response.status_code == 200
        assert response.json()["dosage"] == "20mg"

    async def test_other_doctor_cannot_update(
        self, client: AsyncClient, prescription: dict, other_doctor_headers: dict
    ):
        response = await client.patch(
            f"/api/v1/prescriptions/{prescription['id']}",
            json={"dosage": "80mg"},
            headers=other_doctor_headers,
        )

        assert response.status_code == 403

    async def test_update_missing(self, client: AsyncClient, doctor_headers: dict):
        response = await client.patch(
            f"/api/v1/prescriptions/{uuid4()}", json={"dosage": "1mg"}, headers=doctor_headers
        )

        assert response.status_code == 404
