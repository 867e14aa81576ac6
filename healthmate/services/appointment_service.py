"""Appointment service for business logic."""

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Select, and_, distinct, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
)
from healthmate.core.meetings import MeetingProvider
from healthmate.core.realtime import ChangeFeed
from healthmate.models.appointments import appointments
from healthmate.models.profiles import profiles
from healthmate.schemas.admin import LogLevel
from healthmate.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentType,
    PatientSummary,
)
from healthmate.schemas.notifications import NotificationType
from healthmate.services.activity_log_service import ActivityLogService
from healthmate.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)

# Allowed status changes per acting party
DOCTOR_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED}),
}

PATIENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED}),
}

ACTIVE_STATUSES = (
    AppointmentStatus.PENDING.value,
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.IN_PROGRESS.value,
)

STATUS_MESSAGES = {
    AppointmentStatus.CONFIRMED: "Your appointment on {date} at {time} has been confirmed.",
    AppointmentStatus.IN_PROGRESS: "Your consultation scheduled for {time} has started.",
    AppointmentStatus.COMPLETED: "Your consultation on {date} has been completed.",
    AppointmentStatus.CANCELLED: "The appointment on {date} at {time} has been cancelled.",
}


def appointment_query() -> Select:
    """Appointments joined with doctor and patient names."""
    doctor = profiles.alias("doctor")
    patient = profiles.alias("patient")
    return select(
        appointments,
        doctor.c.full_name.label("doctor_name"),
        doctor.c.specialization.label("specialization"),
        patient.c.full_name.label("patient_name"),
    ).select_from(
        appointments.join(doctor, doctor.c.id == appointments.c.doctor_id).join(
            patient, patient.c.id == appointments.c.patient_id
        )
    )


def allowed_transitions(
    actor: str, current: AppointmentStatus
) -> frozenset[AppointmentStatus]:
    """Statuses ``actor`` (``doctor`` or ``patient``) may move ``current`` to."""
    table = DOCTOR_TRANSITIONS if actor == "doctor" else PATIENT_TRANSITIONS
    return table.get(current, frozenset())


class AppointmentService:
    """Service for managing appointments."""

    def __init__(
        self,
        db: AsyncSession,
        changes: ChangeFeed | None = None,
        meetings: MeetingProvider | None = None,
    ):
        """Initialize service with database session and collaborators."""
        self.db = db
        self.changes = changes
        self.meetings = meetings

    @staticmethod
    def _can_view(row: Any, user: dict) -> bool:
        return user["role"] == "admin" or user["id"] in (row["patient_id"], row["doctor_id"])

    async def get_appointment(self, appointment_id: UUID, user: dict) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If user is neither its doctor, its patient nor an admin
        """
        stmt = appointment_query().where(appointments.c.id == appointment_id)
        row = (await self.db.execute(stmt)).mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")

        if not self._can_view(row, user):
            raise ForbiddenException("Access denied to this appointment")

        return AppointmentResponse.model_validate(dict(row))

    def _scope(self, user: dict) -> list:
        if user["role"] == "patient":
            return [appointments.c.patient_id == user["id"]]
        if user["role"] == "doctor":
            return [appointments.c.doctor_id == user["id"]]
        return []

    async def list_appointments(
        self, user: dict, filters: AppointmentFilters
    ) -> AppointmentListResponse:
        """
        List the caller's appointments with filtering and pagination.

        Patients see their own, doctors those booked with them, admins all.
        Newest first.
        """
        conditions = self._scope(user)

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)
        if filters.from_date:
            conditions.append(appointments.c.appointment_date >= filters.from_date)
        if filters.to_date:
            conditions.append(appointments.c.appointment_date <= filters.to_date)

        count_stmt = select(func.count()).select_from(appointments)
        stmt = appointment_query()
        if conditions:
            count_stmt = count_stmt.where(and_(*conditions))
            stmt = stmt.where(and_(*conditions))

        total = (await self.db.execute(count_stmt)).scalar() or 0

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            stmt.order_by(
                appointments.c.appointment_date.desc(),
                appointments.c.appointment_time.desc(),
            )
            .limit(filters.page_size)
            .offset(offset)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[AppointmentResponse.model_validate(dict(row)) for row in rows],
        )

    async def todays_appointments(self, doctor_id: UUID) -> list[AppointmentResponse]:
        """A doctor's appointments for today in time order."""
        stmt = (
            appointment_query()
            .where(
                and_(
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.appointment_date == date.today(),
                )
            )
            .order_by(appointments.c.appointment_time)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [AppointmentResponse.model_validate(dict(row)) for row in rows]

    async def upcoming_appointments(
        self, patient_id: UUID, limit: int = 5
    ) -> list[AppointmentResponse]:
        """A patient's active appointments from today on, soonest first."""
        stmt = (
            appointment_query()
            .where(
                and_(
                    appointments.c.patient_id == patient_id,
                    appointments.c.appointment_date >= date.today(),
                    appointments.c.status.in_(ACTIVE_STATUSES),
                )
            )
            .order_by(appointments.c.appointment_date, appointments.c.appointment_time)
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [AppointmentResponse.model_validate(dict(row)) for row in rows]

    async def status_counts(
        self, doctor_id: UUID | None = None, on: date | None = None
    ) -> dict[str, int]:
        """Appointment counts per status, optionally for one doctor and day."""
        stmt = select(appointments.c.status, func.count()).group_by(appointments.c.status)
        if doctor_id:
            stmt = stmt.where(appointments.c.doctor_id == doctor_id)
        if on:
            stmt = stmt.where(appointments.c.appointment_date == on)

        counts = {s.value: 0 for s in AppointmentStatus}
        counts.update({row[0]: row[1] for row in (await self.db.execute(stmt)).all()})
        return counts

    async def list_patients(self, doctor_id: UUID) -> list[PatientSummary]:
        """Distinct patients with at least one appointment with the doctor."""
        stmt = (
            select(
                profiles.c.id,
                profiles.c.full_name,
                profiles.c.email,
                profiles.c.phone,
                func.count(appointments.c.id).label("appointment_count"),
                func.max(appointments.c.appointment_date).label("last_appointment_date"),
            )
            .select_from(appointments.join(profiles, profiles.c.id == appointments.c.patient_id))
            .where(appointments.c.doctor_id == doctor_id)
            .group_by(profiles.c.id, profiles.c.full_name, profiles.c.email, profiles.c.phone)
            .order_by(profiles.c.full_name)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [PatientSummary.model_validate(dict(row)) for row in rows]

    async def count_patients(self, doctor_id: UUID) -> int:
        """Number of distinct patients seen by the doctor."""
        stmt = select(func.count(distinct(appointments.c.patient_id))).where(
            appointments.c.doctor_id == doctor_id
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def update_appointment_status(
        self,
        appointment_id: UUID,
        user: dict,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move an appointment to a new status.

        Doctors (and admins) follow ``DOCTOR_TRANSITIONS``; patients may only
        cancel their own pending or confirmed appointments. Starting a video
        consultation provisions its meeting link.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the caller is not a party to the appointment
            InvalidTransitionException: If the change is not allowed from the current status
        """
        row = (
            (await self.db.execute(select(appointments).where(appointments.c.id == appointment_id)))
            .mappings()
            .first()
        )
        if not row:
            raise NotFoundException("Appointment not found")

        if user["role"] == "admin" or (
            user["role"] == "doctor" and row["doctor_id"] == user["id"]
        ):
            actor = "doctor"
        elif row["patient_id"] == user["id"]:
            actor = "patient"
        else:
            raise ForbiddenException("Access denied to this appointment")

        current = AppointmentStatus(row["status"])
        target = data.status
        if target not in allowed_transitions(actor, current):
            raise InvalidTransitionException(current.value, target.value)

        now = datetime.now(UTC)
        values: dict[str, Any] = {"status": target.value, "updated_at": now}
        if data.notes:
            values["notes"] = data.notes

        if target == AppointmentStatus.IN_PROGRESS:
            values["started_at"] = now
            if (
                row["type"] == AppointmentType.VIDEO.value
                and not row["meeting_link"]
                and self.meetings
            ):
                values["meeting_link"] = self.meetings.create_meeting(dict(row))
        elif target == AppointmentStatus.COMPLETED:
            values["completed_at"] = now
        elif target == AppointmentStatus.CANCELLED:
            values["cancelled_at"] = now

        # Conditional on the status read above so concurrent changes cannot both apply
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status == current.value,
                )
            )
            .values(**values)
        )
        result = await self.db.execute(stmt)
        if not result.rowcount:  # type: ignore[attr-defined]
            await self.db.rollback()
            raise InvalidTransitionException(current.value, target.value)

        # Tell the other party
        recipient = row["patient_id"] if actor == "doctor" else row["doctor_id"]
        message = STATUS_MESSAGES[target].format(
            date=row["appointment_date"], time=row["appointment_time"]
        )
        notification_service = NotificationService(self.db, self.changes)
        notification = await notification_service.create(
            recipient,
            f"Appointment {target.value.replace('_', ' ')}",
            message,
            NotificationType.APPOINTMENT_STATUS,
            commit=False,
        )

        await ActivityLogService(self.db).log(
            f"Appointment {target.value}",
            level=LogLevel.WARNING if target == AppointmentStatus.CANCELLED else LogLevel.INFO,
            user_email=user.get("email"),
            details=f"Appointment {appointment_id}: {current.value} -> {target.value}",
            commit=False,
        )
        await self.db.commit()

        notification_service.publish(notification)
        if self.changes:
            self.changes.publish(
                "appointments", "update", appointment_id, [row["patient_id"], row["doctor_id"]]
            )

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current.value,
            new_status=target.value,
            actor=actor,
        )
        return await self.get_appointment(appointment_id, user)
