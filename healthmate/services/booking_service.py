"""Booking procedures: doctor availability and slot-to-appointment conversion."""

from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import NotFoundException, SlotUnavailableException
from healthmate.core.realtime import ChangeFeed
from healthmate.models.appointments import appointments
from healthmate.models.profiles import profiles
from healthmate.models.slots import available_slots
from healthmate.schemas.admin import LogLevel
from healthmate.schemas.appointments import AppointmentResponse, AppointmentStatus, BookingRequest
from healthmate.schemas.notifications import NotificationType
from healthmate.schemas.slots import AvailableDoctor
from healthmate.services.activity_log_service import ActivityLogService
from healthmate.services.appointment_service import AppointmentService
from healthmate.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)


def _minutes(clock: str) -> int:
    hour, minute = clock.split(":")
    return int(hour) * 60 + int(minute)


class BookingService:
    """Service for the two booking procedures."""

    def __init__(self, db: AsyncSession, changes: ChangeFeed | None = None):
        """Initialize service with database session and optional change feed."""
        self.db = db
        self.changes = changes

    async def get_available_doctors(self) -> list[AvailableDoctor]:
        """Active doctors with the number of open slots dated today or later."""
        open_slots = (
            select(
                available_slots.c.doctor_id,
                func.count().label("available_slots"),
            )
            .where(
                and_(
                    available_slots.c.is_available.is_(True),
                    available_slots.c.date >= date.today(),
                )
            )
            .group_by(available_slots.c.doctor_id)
            .subquery()
        )

        stmt = (
            select(
                profiles.c.id,
                profiles.c.full_name,
                profiles.c.specialization,
                profiles.c.avatar_url,
                func.coalesce(open_slots.c.available_slots, 0).label("available_slots"),
            )
            .select_from(profiles.outerjoin(open_slots, open_slots.c.doctor_id == profiles.c.id))
            .where(and_(profiles.c.role == "doctor", profiles.c.is_active.is_(True)))
            .order_by(profiles.c.full_name)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [AvailableDoctor.model_validate(dict(row)) for row in rows]

    async def book_appointment(
        self, patient: dict, data: BookingRequest, ip: str | None = None
    ) -> AppointmentResponse:
        """
        Turn an open slot into a pending appointment.

        The slot is claimed with a conditional update, so of two concurrent
        bookings exactly one sees a row come back. Appointment, notifications
        and the activity log entry commit together with the claim.

        Args:
            patient: Booking patient's profile
            data: Slot, appointment type and reason
            ip: Caller address for the activity log

        Returns:
            The created appointment

        Raises:
            NotFoundException: If the slot does not exist
            SlotUnavailableException: If the slot was already booked or lies in the past
        """
        claim = (
            update(available_slots)
            .where(
                and_(
                    available_slots.c.id == data.slot_id,
                    available_slots.c.is_available.is_(True),
                    # Past slots are never offered, even if nobody booked them
                    available_slots.c.date >= date.today(),
                )
            )
            .values(is_available=False)
            .returning(available_slots)
        )
        slot = (await self.db.execute(claim)).mappings().first()

        if not slot:
            await self.db.rollback()
            exists = (
                await self.db.execute(
                    select(available_slots.c.id).where(available_slots.c.id == data.slot_id)
                )
            ).first()
            if not exists:
                raise NotFoundException("Slot not found")
            logger.info("slot_already_booked", slot_id=str(data.slot_id))
            raise SlotUnavailableException(data.slot_id)

        stmt = (
            insert(appointments)
            .values(
                doctor_id=slot["doctor_id"],
                patient_id=patient["id"],
                slot_id=slot["id"],
                appointment_date=slot["date"],
                appointment_time=slot["start_time"],
                duration=_minutes(slot["end_time"]) - _minutes(slot["start_time"]),
                type=data.appointment_type.value,
                status=AppointmentStatus.PENDING.value,
                reason=data.reason,
            )
            .returning(appointments.c.id)
        )
        appointment_id: UUID = (await self.db.execute(stmt)).scalar_one()

        when = f"{slot['date']} at {slot['start_time']}"
        notification_service = NotificationService(self.db, self.changes)
        doctor_notification = await notification_service.create(
            slot["doctor_id"],
            "New appointment request",
            f"{patient['full_name']} booked {when}. Reason: {data.reason}",
            NotificationType.APPOINTMENT_BOOKED,
            commit=False,
        )
        patient_notification = await notification_service.create(
            patient["id"],
            "Appointment requested",
            f"Your appointment on {when} is pending confirmation.",
            NotificationType.APPOINTMENT_BOOKED,
            commit=False,
        )

        await ActivityLogService(self.db).log(
            "Appointment booked",
            level=LogLevel.SUCCESS,
            user_email=patient.get("email"),
            details=f"Appointment {appointment_id} for slot {slot['id']}",
            ip=ip,
            commit=False,
        )

        await self.db.commit()

        notification_service.publish(doctor_notification)
        notification_service.publish(patient_notification)
        if self.changes:
            self.changes.publish("available_slots", "update", slot["id"], [slot["doctor_id"]])
            self.changes.publish(
                "appointments", "insert", appointment_id, [patient["id"], slot["doctor_id"]]
            )

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment_id),
            slot_id=str(slot["id"]),
            doctor_id=str(slot["doctor_id"]),
            patient_id=str(patient["id"]),
        )

        return await AppointmentService(self.db).get_appointment(appointment_id, patient)
