"""Medical record endpoints."""

from uuid import UUID

from fastapi import APIRouter, File, Form, Query, UploadFile, status

from healthmate.dependencies import (
    ChangeFeedDep,
    CurrentUser,
    DatabaseSession,
    FileStorageDep,
    PatientUser,
)
from healthmate.schemas.records import MedicalRecordCreate, MedicalRecordResponse, RecordType
from healthmate.services.record_service import RecordService

router = APIRouter(prefix="/records")


@router.get(
    "",
    response_model=list[MedicalRecordResponse],
    status_code=status.HTTP_200_OK,
    summary="List medical records",
)
async def list_records(
    current_user: CurrentUser,
    db: DatabaseSession,
    patient_id: UUID | None = Query(None, description="Required for doctors and admins"),
    record_type: RecordType | None = Query(None),
) -> list[MedicalRecordResponse]:
    """Patients list their own records; doctors name the patient."""
    return await RecordService(db).list_records(current_user, patient_id, record_type)


@router.post(
    "",
    response_model=MedicalRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a medical record",
)
async def create_record(
    data: MedicalRecordCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> MedicalRecordResponse:
    """Add a record without a file."""
    return await RecordService(db, changes).create_record(current_user, data)


@router.post(
    "/upload",
    response_model=MedicalRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a medical document",
)
async def upload_record(
    current_user: CurrentUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
    storage: FileStorageDep,
    file: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=200),
    record_type: RecordType = Form(RecordType.OTHER),
    description: str | None = Form(None),
    patient_id: UUID | None = Form(None),
) -> MedicalRecordResponse:
    """Store the file and create a record pointing at its public URL."""
    service = RecordService(db, changes, storage)
    return await service.upload_record(
        current_user,
        title=title,
        record_type=record_type,
        filename=file.filename,
        content=await file.read(),
        description=description,
        patient_id=patient_id,
    )


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a medical record",
)
async def delete_record(
    record_id: UUID,
    current_user: PatientUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> None:
    """Delete one of the caller's own records."""
    await RecordService(db, changes).delete_record(record_id, current_user["id"])
