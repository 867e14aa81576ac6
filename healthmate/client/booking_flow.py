"""Patient booking flow: pick a doctor, pick a slot, give a reason, book."""

from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

import structlog

from healthmate.client.session import PortalSession, SessionRequestError

logger = structlog.get_logger(__name__)

MISSING_SELECTION = "Please select a time slot and provide a reason for the appointment"


class BookingState(str, Enum):
    """Where the patient is in the booking dialog."""

    UNSELECTED = "unselected"
    DOCTOR_SELECTED = "doctor_selected"
    SLOTS_LOADED = "slots_loaded"
    SLOT_SELECTED = "slot_selected"
    REASON_ENTERED = "reason_entered"
    SUBMITTING = "submitting"
    BOOKED = "booked"
    FAILED = "failed"


class BookingGateway(Protocol):
    """Remote calls the flow depends on. Failures raise ``SessionRequestError``."""

    async def list_doctors(self) -> list[dict[str, Any]]: ...

    async def list_open_slots(self, doctor_id: str) -> list[dict[str, Any]]: ...

    async def book(
        self, slot_id: str, appointment_type: str, reason: str, idempotency_key: str
    ) -> dict[str, Any]: ...

    async def list_appointments(self) -> list[dict[str, Any]]: ...


class ApiBookingGateway:
    """Booking gateway over the HTTP API of a signed-in ``PortalSession``."""

    def __init__(self, session: PortalSession):
        self.session = session

    async def list_doctors(self) -> list[dict[str, Any]]:
        return (await self.session.request("GET", "/doctors/available")).json()

    async def list_open_slots(self, doctor_id: str) -> list[dict[str, Any]]:
        return (await self.session.request("GET", f"/doctors/{doctor_id}/slots")).json()

    async def book(
        self, slot_id: str, appointment_type: str, reason: str, idempotency_key: str
    ) -> dict[str, Any]:
        response = await self.session.request(
            "POST",
            "/appointments/book",
            json={"slot_id": slot_id, "appointment_type": appointment_type, "reason": reason},
            headers={"Idempotency-Key": idempotency_key},
        )
        return response.json()

    async def list_appointments(self) -> list[dict[str, Any]]:
        return (await self.session.request("GET", "/appointments")).json()["items"]


class BookingFlow:
    """
    State machine behind the booking dialog.

    ``submit`` only reaches the server with a selected slot and a non-blank
    reason, and is ignored while a submission is in flight. After a
    successful booking the slot and reason are cleared and both the slot
    list and the appointment list are refetched. After a failure the error
    stays in ``error`` and the flow returns to ``slot_selected`` so the
    patient can retry or pick another slot. Retries of the same slot send
    the same Idempotency-Key.
    """

    def __init__(self, gateway: BookingGateway):
        self.gateway = gateway
        self.state = BookingState.UNSELECTED
        self.doctors: list[dict[str, Any]] = []
        self.doctor_id: str | None = None
        self.slots: list[dict[str, Any]] = []
        self.slot_id: str | None = None
        # Reused by every submit of the same slot so a retry replays a lost booking
        self.idempotency_key: str | None = None
        self.appointment_type = "video"
        self.reason = ""
        self.error: str | None = None
        self.appointments: list[dict[str, Any]] = []
        self.booked: dict[str, Any] | None = None
        self.last_outcome: BookingState | None = None

    @property
    def can_submit(self) -> bool:
        return (
            self.state != BookingState.SUBMITTING
            and self.slot_id is not None
            and bool(self.reason.strip())
        )

    async def load_doctors(self) -> list[dict[str, Any]]:
        """Doctors with their open slot counts."""
        try:
            self.doctors = await self.gateway.list_doctors()
        except SessionRequestError as e:
            self.error = e.message
        return self.doctors

    async def select_doctor(self, doctor_id: str) -> None:
        """Choose a doctor and load their open slots, soonest first."""
        self.doctor_id = str(doctor_id)
        self.slot_id = None
        self.idempotency_key = None
        self.slots = []
        self.error = None
        self.state = BookingState.DOCTOR_SELECTED

        try:
            slots = await self.gateway.list_open_slots(self.doctor_id)
        except SessionRequestError as e:
            self.error = e.message
            return

        self.slots = sorted(slots, key=lambda s: (s["date"], s["start_time"]))
        self.state = BookingState.SLOTS_LOADED

    def select_slot(self, slot_id: str) -> None:
        """
        Choose one of the loaded slots.

        Raises:
            ValueError: If the slot is not in the loaded list
        """
        slot_id = str(slot_id)
        if not any(str(slot["id"]) == slot_id for slot in self.slots):
            raise ValueError(f"Slot {slot_id} is not available for this doctor")

        if slot_id != self.slot_id:
            self.idempotency_key = None
        self.slot_id = slot_id
        self.state = (
            BookingState.REASON_ENTERED if self.reason.strip() else BookingState.SLOT_SELECTED
        )

    def set_appointment_type(self, appointment_type: str) -> None:
        self.appointment_type = appointment_type

    def enter_reason(self, reason: str) -> None:
        self.reason = reason
        if self.slot_id is None or self.state == BookingState.SUBMITTING:
            return
        self.state = BookingState.REASON_ENTERED if reason.strip() else BookingState.SLOT_SELECTED

    async def submit(self) -> bool:
        """
        Book the selected slot.

        Returns:
            True when the appointment was booked
        """
        if self.state == BookingState.SUBMITTING:
            return False

        if not self.can_submit:
            self.error = MISSING_SELECTION
            return False

        self.state = BookingState.SUBMITTING
        self.error = None
        slot_id = str(self.slot_id)
        if self.idempotency_key is None:
            self.idempotency_key = uuid4().hex

        try:
            self.booked = await self.gateway.book(
                slot_id, self.appointment_type, self.reason.strip(), self.idempotency_key
            )
        except SessionRequestError as e:
            logger.info("booking_failed", slot_id=slot_id, reason=e.message)
            self.error = e.message
            self.last_outcome = BookingState.FAILED
            self.state = BookingState.SLOT_SELECTED
            return False

        self.last_outcome = BookingState.BOOKED
        self.slot_id = None
        self.idempotency_key = None
        self.reason = ""
        await self._refresh()
        self.state = BookingState.BOOKED
        return True

    async def _refresh(self) -> None:
        try:
            self.appointments = await self.gateway.list_appointments()
            if self.doctor_id:
                slots = await self.gateway.list_open_slots(self.doctor_id)
                self.slots = sorted(slots, key=lambda s: (s["date"], s["start_time"]))
        except SessionRequestError as e:
            self.error = e.message
