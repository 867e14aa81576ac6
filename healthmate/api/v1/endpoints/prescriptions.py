"""Prescription endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from healthmate.dependencies import ChangeFeedDep, CurrentUser, DatabaseSession, DoctorUser
from healthmate.schemas.prescriptions import (
    PrescriptionCreate,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from healthmate.services.prescription_service import PrescriptionService

router = APIRouter(prefix="/prescriptions")


@router.post(
    "",
    response_model=PrescriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a prescription",
)
async def create_prescription(
    data: PrescriptionCreate,
    current_user: DoctorUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> PrescriptionResponse:
    """Issue a prescription to a patient; the patient is notified."""
    return await PrescriptionService(db, changes).create_prescription(current_user["id"], data)


@router.get(
    "",
    response_model=list[PrescriptionResponse],
    status_code=status.HTTP_200_OK,
    summary="List prescriptions",
)
async def list_prescriptions(
    current_user: CurrentUser,
    db: DatabaseSession,
    patient_id: UUID | None = Query(None),
    active_only: bool = Query(False),
) -> list[PrescriptionResponse]:
    """Patients see their own prescriptions, doctors the ones they issued."""
    return await PrescriptionService(db).list_prescriptions(current_user, patient_id, active_only)


@router.patch(
    "/{prescription_id}",
    response_model=PrescriptionResponse,
    status_code=status.HTTP_200_OK,
    summary="Update or deactivate a prescription",
)
async def update_prescription(
    prescription_id: UUID,
    data: PrescriptionUpdate,
    current_user: DoctorUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> PrescriptionResponse:
    """Change dosage details; ``is_active: false`` deactivates it."""
    service = PrescriptionService(db, changes)
    return await service.update_prescription(prescription_id, current_user["id"], data)
