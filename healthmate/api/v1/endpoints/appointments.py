"""Appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Header, Query, Request, status

from healthmate.dependencies import (
    ChangeFeedDep,
    CurrentUser,
    DatabaseSession,
    DoctorUser,
    IdempotencyDep,
    MeetingProviderDep,
    PatientUser,
    client_ip,
)
from healthmate.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    BookingRequest,
)
from healthmate.services.appointment_service import AppointmentService
from healthmate.services.booking_service import BookingService

router = APIRouter(prefix="/appointments")


@router.post(
    "/book",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an open slot",
)
async def book_appointment(
    data: BookingRequest,
    request: Request,
    current_user: PatientUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
    idempotency: IdempotencyDep,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
) -> AppointmentResponse:
    """
    Book ``slot_id`` for the calling patient.

    The new appointment is ``pending`` until the doctor confirms it. A slot
    that was booked in the meantime yields 409. Repeating a request with the
    same ``Idempotency-Key`` returns the first booking instead of failing.
    """
    owner = str(current_user["id"])
    replay = idempotency.reserve("bookings", owner, idempotency_key)
    if replay:
        return AppointmentResponse.model_validate(replay)

    try:
        appointment = await BookingService(db, changes).book_appointment(
            current_user, data, ip=client_ip(request)
        )
    except Exception:
        idempotency.release("bookings", owner, idempotency_key)
        raise
    idempotency.remember("bookings", owner, idempotency_key, appointment.model_dump(mode="json"))
    return appointment


@router.get(
    "",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    current_user: CurrentUser,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List the caller's appointments, newest first.

    Patients get their bookings, doctors the appointments booked with them
    and admins every appointment.
    """
    filters = AppointmentFilters(
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return await AppointmentService(db).list_appointments(current_user, filters)


@router.get(
    "/today",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Today's consultations",
)
async def todays_appointments(
    current_user: DoctorUser,
    db: DatabaseSession,
) -> list[AppointmentResponse]:
    """The calling doctor's appointments for today in time order."""
    return await AppointmentService(db).todays_appointments(current_user["id"])


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get an appointment the caller is a party to."""
    return await AppointmentService(db).get_appointment(appointment_id, current_user)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
    meetings: MeetingProviderDep,
) -> AppointmentResponse:
    """
    Confirm, start, complete or cancel an appointment.

    Doctors move appointments through pending, confirmed, in progress and
    completed; either party may cancel before the consultation starts.
    Disallowed changes yield 409.
    """
    service = AppointmentService(db, changes, meetings)
    return await service.update_appointment_status(appointment_id, current_user, data)
