"""Slot service for doctor availability."""

from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from healthmate.core.realtime import ChangeFeed
from healthmate.models.slots import available_slots
from healthmate.schemas.slots import SlotCreate, SlotResponse, add_minutes

logger = structlog.get_logger(__name__)


class SlotService:
    """Service for managing available slots."""

    def __init__(self, db: AsyncSession, changes: ChangeFeed | None = None):
        """Initialize service with database session and optional change feed."""
        self.db = db
        self.changes = changes

    async def add_slot(self, doctor_id: UUID, data: SlotCreate) -> SlotResponse:
        """
        Publish a new open slot.

        ``end_time`` is ``start_time + duration``. Times are zero-padded
        ``HH:MM`` so string comparison orders them chronologically.

        Raises:
            ValidationException: If the slot would run past midnight
            ConflictException: If it overlaps another slot of the doctor on that date
        """
        try:
            end_time = add_minutes(data.start_time, data.duration)
        except ValueError as e:
            raise ValidationException(str(e))

        # Half-open intervals: a slot ending at 14:30 does not clash with one starting at 14:30
        overlap_stmt = select(available_slots.c.id).where(
            and_(
                available_slots.c.doctor_id == doctor_id,
                available_slots.c.date == data.date,
                available_slots.c.start_time < end_time,
                available_slots.c.end_time > data.start_time,
            )
        )
        if (await self.db.execute(overlap_stmt)).first():
            raise ConflictException("Slot overlaps an existing slot")

        stmt = (
            insert(available_slots)
            .values(
                doctor_id=doctor_id,
                date=data.date,
                start_time=data.start_time,
                end_time=end_time,
                is_available=True,
            )
            .returning(available_slots)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("Slot overlaps an existing slot")
        row = result.mappings().one()

        if self.changes:
            self.changes.publish("available_slots", "insert", row["id"], [doctor_id])

        logger.info(
            "slot_added",
            doctor_id=str(doctor_id),
            date=str(data.date),
            start_time=data.start_time,
            end_time=end_time,
        )
        return SlotResponse.model_validate(dict(row))

    async def list_own_slots(
        self, doctor_id: UUID, from_date: date | None = None
    ) -> list[SlotResponse]:
        """A doctor's slots, booked or not, ordered by date then start time."""
        conditions = [available_slots.c.doctor_id == doctor_id]
        if from_date:
            conditions.append(available_slots.c.date >= from_date)

        stmt = (
            select(available_slots)
            .where(and_(*conditions))
            .order_by(available_slots.c.date, available_slots.c.start_time)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [SlotResponse.model_validate(dict(row)) for row in rows]

    async def list_open_slots(self, doctor_id: UUID) -> list[SlotResponse]:
        """Bookable slots of a doctor dated today or later, earliest first."""
        stmt = (
            select(available_slots)
            .where(
                and_(
                    available_slots.c.doctor_id == doctor_id,
                    available_slots.c.is_available.is_(True),
                    available_slots.c.date >= date.today(),
                )
            )
            .order_by(available_slots.c.date, available_slots.c.start_time)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [SlotResponse.model_validate(dict(row)) for row in rows]

    async def delete_slot(self, slot_id: UUID, doctor_id: UUID) -> None:
        """
        Withdraw an unbooked slot.

        Raises:
            NotFoundException: If the slot does not exist
            ForbiddenException: If it belongs to another doctor
            ConflictException: If it is already booked
        """
        row = (
            (await self.db.execute(select(available_slots).where(available_slots.c.id == slot_id)))
            .mappings()
            .first()
        )

        if not row:
            raise NotFoundException("Slot not found")
        if row["doctor_id"] != doctor_id:
            raise ForbiddenException("Access denied to this slot")
        if not row["is_available"]:
            raise ConflictException("Booked slots cannot be deleted")

        # Conditional on still being open so a concurrent booking wins
        result = await self.db.execute(
            delete(available_slots).where(
                and_(available_slots.c.id == slot_id, available_slots.c.is_available.is_(True))
            )
        )
        if not result.rowcount:  # type: ignore[attr-defined]
            await self.db.rollback()
            raise ConflictException("Booked slots cannot be deleted")

        await self.db.commit()

        if self.changes:
            self.changes.publish("available_slots", "delete", slot_id, [doctor_id])

        logger.info("slot_deleted", slot_id=str(slot_id), doctor_id=str(doctor_id))
