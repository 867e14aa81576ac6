"""Doctor directory and availability endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from healthmate.dependencies import CurrentUser, DatabaseSession, DoctorUser
from healthmate.schemas.appointments import PatientSummary
from healthmate.schemas.slots import AvailableDoctor, SlotResponse
from healthmate.services.appointment_service import AppointmentService
from healthmate.services.booking_service import BookingService
from healthmate.services.slot_service import SlotService

router = APIRouter(prefix="/doctors")


@router.get(
    "/available",
    response_model=list[AvailableDoctor],
    status_code=status.HTTP_200_OK,
    summary="List doctors with open slot counts",
)
async def list_available_doctors(
    current_user: CurrentUser,
    db: DatabaseSession,
) -> list[AvailableDoctor]:
    """Active doctors with the number of open slots dated today or later."""
    return await BookingService(db).get_available_doctors()


@router.get(
    "/me/patients",
    response_model=list[PatientSummary],
    status_code=status.HTTP_200_OK,
    summary="List my patients",
)
async def list_my_patients(
    current_user: DoctorUser,
    db: DatabaseSession,
) -> list[PatientSummary]:
    """Distinct patients who have booked with the calling doctor."""
    return await AppointmentService(db).list_patients(current_user["id"])


@router.get(
    "/{doctor_id}/slots",
    response_model=list[SlotResponse],
    status_code=status.HTTP_200_OK,
    summary="List a doctor's open slots",
)
async def list_doctor_slots(
    doctor_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> list[SlotResponse]:
    """Open slots from today on, ordered by date then start time."""
    return await SlotService(db).list_open_slots(doctor_id)
