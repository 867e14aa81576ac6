"""Tests for notification endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.schemas.notifications import NotificationType
from healthmate.services.notification_service import NotificationService


async def notify(db_session: AsyncSession, user: dict, count: int) -> list[dict]:
    service = NotificationService(db_session)
    return [
        await service.create(user["id"], f"Reminder {i}", "Drink water", NotificationType.SYSTEM)
        for i in range(count)
    ]


@pytest.mark.asyncio
async def test_list_notifications(
    client: AsyncClient, db_session: AsyncSession, patient: dict, patient_headers: dict
) -> None:
    """Test listing the caller's notifications."""
    await notify(db_session, patient, 3)

    response = await client.get("/api/v1/notifications", headers=patient_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 3
    assert {n["title"] for n in data} == {"Reminder 0", "Reminder 1", "Reminder 2"}
    assert all(n["is_read"] is False for n in data)
    assert all(n["type"] == "system" for n in data)


@pytest.mark.asyncio
async def test_list_notifications_pagination(
    client: AsyncClient, db_session: AsyncSession, patient: dict, patient_headers: dict
) -> None:
    """Test limit and offset."""
    await notify(db_session, patient, 5)

    first = await client.get(
        "/api/v1/notifications", params={"limit": 2}, headers=patient_headers
    )
    rest = await client.get(
        "/api/v1/notifications", params={"limit": 10, "offset": 2}, headers=patient_headers
    )

    assert len(first.json()) == 2
    assert len(rest.json()) == 3


@pytest.mark.asyncio
async def test_notifications_are_private(
    client: AsyncClient, db_session: AsyncSession, patient: dict, other_patient_headers: dict
) -> None:
    """Test users only see their own notifications."""
    await notify(db_session, patient, 2)

    response = await client.get("/api/v1/notifications", headers=other_patient_headers)

    assert response.json() == []


@pytest.mark.asyncio
async def test_mark_notification_read(
    client: AsyncClient, db_session: AsyncSession, patient: dict, patient_headers: dict
) -> None:
    """Test marking one notification read."""
    rows = await notify(db_session, patient, 2)

    response = await client.patch(
        f"/api/v1/notifications/{rows[0]['id']}/read", headers=patient_headers
    )

    assert response.status_code == 200
    assert response.json()["is_read"] is True

    count = await client.get("/api/v1/notifications/unread-count", headers=patient_headers)
    assert count.json() == {"unread": 1}

    unread = await client.get(
        "/api/v1/notifications", params={"unread_only": True}, headers=patient_headers
    )
    assert [n["id"] for n in unread.json()] == [str(rows[1]["id"])]


@pytest.mark.asyncio
async def test_mark_someone_elses_notification(
    client: AsyncClient, db_session: AsyncSession, patient: dict, other_patient_headers: dict
) -> None:
    """Test a notification of another user is not found."""
    rows = await notify(db_session, patient, 1)

    response = await client.patch(
        f"/api/v1/notifications/{rows[0]['id']}/read", headers=other_patient_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Notification not found"


@pytest.mark.asyncio
async def test_mark_missing_notification(client: AsyncClient, patient_headers: dict) -> None:
    """Test marking an unknown notification."""
    response = await client.patch(
        f"/api/v1/notifications/{uuid4()}/read", headers=patient_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_mark_all_read(
    client: AsyncClient, db_session: AsyncSession, patient: dict, patient_headers: dict
) -> None:
    """Test marking every notification read."""
    await notify(db_session, patient, 3)

    response = await client.post("/api/v1/notifications/read-all", headers=patient_headers)

    assert response.status_code == 200
    assert response.json() == {"updated": 3}

    count = await client.get("/api/v1/notifications/unread-count", headers=patient_headers)
    assert count.json() == {"unread": 0}

    again = await client.post("/api/v1/notifications/read-all", headers=patient_headers)
    assert again.json() == {"updated": 0}


@pytest.mark.asyncio
async def test_notifications_require_auth(client: AsyncClient) -> None:
    """Test notification endpoints reject anonymous callers."""
    response = await client.get("/api/v1/notifications")

    assert response.status_code == 401
