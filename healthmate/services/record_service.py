"""Medical records service."""

from uuid import UUID

import structlog
from sqlalchemy import and_, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import BadRequestException, NotFoundException
from healthmate.core.realtime import ChangeFeed
from healthmate.core.storage import FileStorage
from healthmate.models.medical_records import medical_records
from healthmate.schemas.notifications import NotificationType
from healthmate.schemas.records import MedicalRecordCreate, MedicalRecordResponse, RecordType
from healthmate.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

RECORDS_BUCKET = "medical-records"


class RecordService:
    """Service for the patient health record."""

    def __init__(
        self,
        db: AsyncSession,
        changes: ChangeFeed | None = None,
        storage: FileStorage | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.changes = changes
        self.storage = storage

    @staticmethod
    def resolve_patient(user: dict, patient_id: UUID | None) -> UUID:
        """
        Whose record the caller is working on.

        Patients always act on their own record; doctors and admins must name
        the patient.
        """
        if user["role"] == "patient":
            return user["id"]
        if patient_id is None:
            raise BadRequestException("patient_id is required")
        return patient_id

    async def create_record(
        self,
        user: dict,
        data: MedicalRecordCreate,
        file_url: str | None = None,
    ) -> MedicalRecordResponse:
        """Add a record; doctors are recorded as its author."""
        patient_id = self.resolve_patient(user, data.patient_id)
        doctor_id = user["id"] if user["role"] == "doctor" else None

        stmt = (
            insert(medical_records)
            .values(
                patient_id=patient_id,
                doctor_id=doctor_id,
                title=data.title,
                record_type=data.record_type.value,
                description=data.description,
                file_url=file_url,
            )
            .returning(medical_records)
        )
        row = (await self.db.execute(stmt)).mappings().one()

        notification = None
        notification_service = NotificationService(self.db, self.changes)
        if doctor_id:
            notification = await notification_service.create(
                patient_id,
                "New health record",
                f"A new record '{data.title}' was added to your health record.",
                NotificationType.RECORD,
                commit=False,
            )

        await self.db.commit()

        if notification:
            notification_service.publish(notification)
        if self.changes:
            self.changes.publish("medical_records", "insert", row["id"], [patient_id, doctor_id])

        logger.info("medical_record_created", record_id=str(row["id"]), has_file=bool(file_url))
        return MedicalRecordResponse.model_validate(dict(row))

    async def upload_record(
        self,
        user: dict,
        title: str,
        record_type: RecordType,
        filename: str | None,
        content: bytes,
        description: str | None = None,
        patient_id: UUID | None = None,
    ) -> MedicalRecordResponse:
        """Store a file and create the record pointing at its public URL."""
        if self.storage is None:
            raise BadRequestException("File storage is not configured")

        owner = self.resolve_patient(user, patient_id)
        object_path = await self.storage.upload(RECORDS_BUCKET, str(owner), filename, content)

        data = MedicalRecordCreate(
            title=title,
            record_type=record_type,
            description=description,
            patient_id=owner,
        )
        return await self.create_record(user, data, self.storage.get_public_url(object_path))

    async def list_records(
        self,
        user: dict,
        patient_id: UUID | None = None,
        record_type: RecordType | None = None,
    ) -> list[MedicalRecordResponse]:
        """A patient's records newest first."""
        conditions = [medical_records.c.patient_id == self.resolve_patient(user, patient_id)]
        if record_type:
            conditions.append(medical_records.c.record_type == record_type.value)

        stmt = (
            select(medical_records)
            .where(and_(*conditions))
            .order_by(medical_records.c.created_at.desc())
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [MedicalRecordResponse.model_validate(dict(row)) for row in rows]

    async def delete_record(self, record_id: UUID, patient_id: UUID) -> None:
        """
        Delete one of the patient's records.

        Raises:
            NotFoundException: If no such record belongs to the patient
        """
        result = await self.db.execute(
            delete(medical_records).where(
                and_(
                    medical_records.c.id == record_id,
                    medical_records.c.patient_id == patient_id,
                )
            )
        )
        if not result.rowcount:  # type: ignore[attr-defined]
            await self.db.rollback()
            raise NotFoundException("Medical record not found")

        await self.db.commit()
        if self.changes:
            self.changes.publish("medical_records", "delete", record_id, [patient_id])
