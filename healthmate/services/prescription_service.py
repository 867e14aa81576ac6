"""Prescription service."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from healthmate.core.realtime import ChangeFeed
from healthmate.models.prescriptions import prescriptions
from healthmate.models.profiles import profiles
from healthmate.schemas.notifications import NotificationType
from healthmate.schemas.prescriptions import (
    PrescriptionCreate,
    PrescriptionResponse,
    PrescriptionUpdate,
)
from healthmate.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)


class PrescriptionService:
    """Service for doctor-issued prescriptions."""

    def __init__(self, db: AsyncSession, changes: ChangeFeed | None = None):
        """Initialize service with database session and optional change feed."""
        self.db = db
        self.changes = changes

    async def _get_row(self, prescription_id: UUID) -> dict:
        row = (
            (
                await self.db.execute(
                    select(prescriptions).where(prescriptions.c.id == prescription_id)
                )
            )
            .mappings()
            .first()
        )
        if not row:
            raise NotFoundException("Prescription not found")
        return dict(row)

    async def create_prescription(
        self, doctor_id: UUID, data: PrescriptionCreate
    ) -> PrescriptionResponse:
        """
        Issue a prescription and notify the patient.

        Raises:
            BadRequestException: If ``patient_id`` is not a patient
        """
        patient_role = (
            await self.db.execute(select(profiles.c.role).where(profiles.c.id == data.patient_id))
        ).scalar()
        if patient_role != "patient":
            raise BadRequestException("Prescriptions can only be issued to patients")

        stmt = (
            insert(prescriptions)
            .values(doctor_id=doctor_id, **data.model_dump())
            .returning(prescriptions)
        )
        row = (await self.db.execute(stmt)).mappings().one()

        notification_service = NotificationService(self.db, self.changes)
        notification = await notification_service.create(
            data.patient_id,
            "New prescription",
            f"{data.medication_name} {data.dosage}, {data.frequency}",
            NotificationType.PRESCRIPTION,
            commit=False,
        )
        await self.db.commit()

        notification_service.publish(notification)
        if self.changes:
            self.changes.publish("prescriptions", "insert", row["id"], [data.patient_id, doctor_id])

        logger.info("prescription_created", prescription_id=str(row["id"]))
        return PrescriptionResponse.model_validate(dict(row))

    async def update_prescription(
        self, prescription_id: UUID, doctor_id: UUID, data: PrescriptionUpdate
    ) -> PrescriptionResponse:
        """
        Change dosage details or deactivate a prescription.

        Raises:
            NotFoundException: If prescription not found
            ForbiddenException: If another doctor issued it
        """
        current = await self._get_row(prescription_id)
        if current["doctor_id"] != doctor_id:
            raise ForbiddenException("Access denied to this prescription")

        update_values = data.model_dump(exclude_unset=True)
        if update_values.get("is_active", False) is None:
            del update_values["is_active"]
        if not update_values:
            return PrescriptionResponse.model_validate(current)

        update_values["updated_at"] = datetime.now(UTC)
        stmt = (
            update(prescriptions)
            .where(prescriptions.c.id == prescription_id)
            .values(**update_values)
            .returning(prescriptions)
        )
        row = (await self.db.execute(stmt)).mappings().one()
        await self.db.commit()

        if self.changes:
            self.changes.publish(
                "prescriptions", "update", prescription_id, [row["patient_id"], doctor_id]
            )
        return PrescriptionResponse.model_validate(dict(row))

    async def list_prescriptions(
        self,
        user: dict,
        patient_id: UUID | None = None,
        active_only: bool = False,
    ) -> list[PrescriptionResponse]:
        """
        Prescriptions visible to the caller, newest first.

        Patients see their own; doctors see the ones they issued, optionally
        narrowed to one patient.
        """
        if user["role"] == "patient":
            conditions = [prescriptions.c.patient_id == user["id"]]
        else:
            conditions = []
            if user["role"] == "doctor":
                conditions.append(prescriptions.c.doctor_id == user["id"])
            if patient_id:
                conditions.append(prescriptions.c.patient_id == patient_id)

        if active_only:
            conditions.append(prescriptions.c.is_active.is_(True))

        stmt = select(prescriptions)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(prescriptions.c.created_at.desc())

        rows = (await self.db.execute(stmt)).mappings().all()
        return [PrescriptionResponse.model_validate(dict(row)) for row in rows]
