"""Tests for the patient booking flow."""

import asyncio
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from healthmate.client.booking_flow import (
    MISSING_SELECTION,
    ApiBookingGateway,
    BookingFlow,
    BookingState,
)
from healthmate.client.session import CONNECTION_ERROR, PortalSession, SessionRequestError
from healthmate.main import app

SLOTS = [
    {"id": "s2", "date": "2030-01-02", "start_time": "09:00"},
    {"id": "s1", "date": "2030-01-01", "start_time": "14:00"},
    {"id": "s0", "date": "2030-01-01", "start_time": "08:30"},
]


class FakeGateway:
    """In-memory gateway; ``book_error`` makes the next booking fail."""

    def __init__(self) -> None:
        self.slots = [dict(slot) for slot in SLOTS]
        self.appointments: list[dict[str, Any]] = []
        self.book_calls: list[tuple[str, str, str, str]] = []
        self.book_error: SessionRequestError | None = None
        self.release: asyncio.Event | None = None

    async def list_doctors(self) -> list[dict[str, Any]]:
        return [{"id": "d1", "full_name": "Sarah Johnson", "available_slots": len(self.slots)}]

    async def list_open_slots(self, doctor_id: str) -> list[dict[str, Any]]:
        return list(self.slots)

    async def book(
        self, slot_id: str, appointment_type: str, reason: str, idempotency_key: str
    ) -> dict[str, Any]:
        self.book_calls.append((slot_id, appointment_type, reason, idempotency_key))
        if self.release:
            await self.release.wait()
        if self.book_error:
            raise self.book_error

        self.slots = [slot for slot in self.slots if slot["id"] != slot_id]
        appointment = {"id": f"a-{slot_id}", "slot_id": slot_id, "status": "pending"}
        self.appointments.append(appointment)
        return appointment

    async def list_appointments(self) -> list[dict[str, Any]]:
        return list(self.appointments)


async def ready_flow(gateway: FakeGateway, reason: str = "Follow-up visit") -> BookingFlow:
    flow = BookingFlow(gateway)
    await flow.select_doctor("d1")
    flow.select_slot("s1")
    flow.enter_reason(reason)
    return flow


@pytest.mark.asyncio
class TestBookingFlow:
    """Tests for the booking state machine."""

    async def test_select_doctor_sorts_slots(self):
        flow = BookingFlow(FakeGateway())
        assert flow.state == BookingState.UNSELECTED

        await flow.select_doctor("d1")

        assert flow.state == BookingState.SLOTS_LOADED
        assert [slot["id"] for slot in flow.slots] == ["s0", "s1", "s2"]

    async def test_load_doctors(self):
        flow = BookingFlow(FakeGateway())

        doctors = await flow.load_doctors()

        assert doctors[0]["available_slots"] == 3

    async def test_slot_then_reason(self):
        flow = BookingFlow(FakeGateway())
        await flow.select_doctor("d1")

        flow.select_slot("s2")
        assert flow.state == BookingState.SLOT_SELECTED

        flow.enter_reason("Rash on arm")
        assert flow.state == BookingState.REASON_ENTERED

        flow.enter_reason("   ")
        assert flow.state == BookingState.SLOT_SELECTED

    async def test_reason_before_slot(self):
        flow = BookingFlow(FakeGateway())
        await flow.select_doctor("d1")

        flow.enter_reason("Rash on arm")
        assert flow.state == BookingState.SLOTS_LOADED

        flow.select_slot("s0")
        assert flow.state == BookingState.REASON_ENTERED

    async def test_unknown_slot(self):
        flow = BookingFlow(FakeGateway())
        await flow.select_doctor("d1")

        with pytest.raises(ValueError):
            flow.select_slot("nope")

    async def test_changing_doctor_clears_slot(self):
        flow = await ready_flow(FakeGateway())

        await flow.select_doctor("d2")

        assert flow.slot_id is None
        assert flow.state == BookingState.SLOTS_LOADED

    @pytest.mark.parametrize("slot, reason", [(None, "Checkup"), ("s1", ""), ("s1", "   ")])
    async def test_submit_needs_slot_and_reason(self, slot, reason: str):
        gateway = FakeGateway()
        flow = BookingFlow(gateway)
        await flow.select_doctor("d1")
        if slot:
            flow.select_slot(slot)
        flow.enter_reason(reason)

        assert flow.can_submit is False
        assert await flow.submit() is False
        assert flow.error == MISSING_SELECTION
        assert gateway.book_calls == []

    async def test_successful_booking(self):
        gateway = FakeGateway()
        flow = await ready_flow(gateway, reason="  Follow-up visit ")
        flow.set_appointment_type("in_person")

        assert await flow.submit() is True

        assert flow.state == BookingState.BOOKED
        assert flow.last_outcome == BookingState.BOOKED
        assert flow.booked == {"id": "a-s1", "slot_id": "s1", "status": "pending"}
        assert flow.slot_id is None
        assert flow.reason == ""
        assert flow.error is None
        assert [a["id"] for a in flow.appointments] == ["a-s1"]
        assert [slot["id"] for slot in flow.slots] == ["s0", "s2"]

        slot_id, appointment_type, reason, key = gateway.book_calls[0]
        assert (slot_id, appointment_type, reason) == ("s1", "in_person", "Follow-up visit")
        assert key

    async def test_failed_booking_keeps_selection(self):
        gateway = FakeGateway()
        gateway.book_error = SessionRequestError("Slot is no longer available", 409)
        flow = await ready_flow(gateway)

        assert await flow.submit() is False

        assert flow.state == BookingState.SLOT_SELECTED
        assert flow.last_outcome == BookingState.FAILED
        assert flow.error == "Slot is no longer available"
        assert flow.slot_id == "s1"
        assert flow.reason == "Follow-up visit"

        gateway.book_error = None
        assert await flow.submit() is True
        assert flow.error is None

    async def test_concurrent_submit_is_ignored(self):
        gateway = FakeGateway()
        gateway.release = asyncio.Event()
        flow = await ready_flow(gateway)

        first = asyncio.create_task(flow.submit())
        await asyncio.sleep(0)
        assert flow.state == BookingState.SUBMITTING
        assert flow.can_submit is False

        assert await flow.submit() is False
        flow.enter_reason("Changed my mind")
        assert flow.state == BookingState.SUBMITTING

        gateway.release.set()
        assert await first is True
        assert len(gateway.book_calls) == 1

    async def test_refresh_failure_is_reported(self):
        gateway = FakeGateway()
        flow = await ready_flow(gateway)

        async def broken() -> list[dict[str, Any]]:
            raise SessionRequestError("Unable to reach the server. Please try again.")

        gateway.list_appointments = broken  # type: ignore[method-assign]

        assert await flow.submit() is True
        assert flow.state == BookingState.BOOKED
        assert flow.error == "Unable to reach the server. Please try again."

    async def test_retry_reuses_idempotency_key(self):
        gateway = FakeGateway()
        gateway.book_error = SessionRequestError(CONNECTION_ERROR)
        flow = await ready_flow(gateway)

        assert await flow.submit() is False
        assert await flow.submit() is False
        gateway.book_error = None
        assert await flow.submit() is True

        keys = [call[3] for call in gateway.book_calls]
        assert len(set(keys)) == 1
        assert flow.idempotency_key is None

    async def test_new_slot_gets_new_idempotency_key(self):
        gateway = FakeGateway()
        gateway.book_error = SessionRequestError("Slot is no longer available", 409)
        flow = await ready_flow(gateway)

        assert await flow.submit() is False
        flow.select_slot("s1")
        assert await flow.submit() is False
        flow.select_slot("s2")
        assert await flow.submit() is False
        await flow.select_doctor("d1")
        flow.select_slot("s2")
        assert await flow.submit() is False

        keys = [call[3] for call in gateway.book_calls]
        assert keys[0] == keys[1]
        assert len(set(keys)) == 3

    async def test_next_booking_gets_new_idempotency_key(self):
        gateway = FakeGateway()
        flow = await ready_flow(gateway)
        assert await flow.submit() is True

        flow.select_slot("s2")
        flow.enter_reason("Another visit")
        assert await flow.submit() is True

        assert gateway.book_calls[0][3] != gateway.book_calls[1][3]


@pytest.mark.asyncio
async def test_booking_over_the_api(
    client: AsyncClient, doctor: dict, patient: dict, add_slot
):
    first = await add_slot(doctor, start_time="09:00")
    second = await add_slot(doctor, start_time="11:00")

    session = PortalSession("http://test", transport=ASGITransport(app=app))
    try:
        assert await session.login(patient["email"], "secret123") == ""
        flow = BookingFlow(ApiBookingGateway(session))

        doctors = await flow.load_doctors()
        assert [d["full_name"] for d in doctors] == ["Sarah Johnson"]

        await flow.select_doctor(doctors[0]["id"])
        assert [slot["id"] for slot in flow.slots] == [str(first.id), str(second.id)]

        flow.select_slot(str(first.id))
        flow.enter_reason("Palpitations at night")
        assert await flow.submit() is True

        assert flow.booked["status"] == "pending"
        assert [a["id"] for a in flow.appointments] == [flow.booked["id"]]
        assert [slot["id"] for slot in flow.slots] == [str(second.id)]

        # The slot was taken in the meantime
        flow.select_slot(str(second.id))
        flow.enter_reason("Second opinion")
        other = await session.request(
            "POST",
            "/appointments/book",
            json={"slot_id": str(second.id), "reason": "Someone else"},
        )
        assert other.status_code == 201

        assert await flow.submit() is False
        assert flow.error == "Slot is no longer available"
        assert flow.state == BookingState.SLOT_SELECTED
    finally:
        await session.aclose()
