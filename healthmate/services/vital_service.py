"""Vital signs service."""

import math
import re
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import NotFoundException, ValidationException
from healthmate.core.realtime import ChangeFeed
from healthmate.models.vitals import vitals
from healthmate.schemas.vitals import (
    VitalCreate,
    VitalResponse,
    VitalStatus,
    VitalType,
    VitalTypeInfo,
)

logger = structlog.get_logger(__name__)

VITAL_TYPES: dict[VitalType, VitalTypeInfo] = {
    info.type: info
    for info in (
        VitalTypeInfo(
            type=VitalType.BLOOD_PRESSURE,
            label="Blood Pressure",
            unit="mmHg",
            normal_range="90-140 systolic",
        ),
        VitalTypeInfo(
            type=VitalType.HEART_RATE, label="Heart Rate", unit="bpm", normal_range="60-100"
        ),
        VitalTypeInfo(
            type=VitalType.TEMPERATURE, label="Temperature", unit="°F", normal_range="97-99.5"
        ),
        VitalTypeInfo(type=VitalType.WEIGHT, label="Weight", unit="lbs", normal_range="-"),
        VitalTypeInfo(type=VitalType.HEIGHT, label="Height", unit="in", normal_range="-"),
        VitalTypeInfo(
            type=VitalType.BLOOD_SUGAR, label="Blood Sugar", unit="mg/dL", normal_range="-"
        ),
    )
}

# (low, high) bounds; readings strictly outside are flagged
THRESHOLDS: dict[VitalType, tuple[float, float]] = {
    VitalType.BLOOD_PRESSURE: (90, 140),
    VitalType.HEART_RATE: (60, 100),
    VitalType.TEMPERATURE: (97, 99.5),
}


# Plain decimals only; rejects "nan", "inf", exponents and signs
_NUMBER = r"\d+(?:\.\d+)?"
_READING = re.compile(rf"^{_NUMBER}$")
_BLOOD_PRESSURE = re.compile(rf"^({_NUMBER})\s*/\s*({_NUMBER})$")


def parse_reading(vital_type: VitalType, value: str) -> float:
    """
    Numeric part of a reading used for classification.

    Blood pressure must be ``systolic/diastolic``; only the systolic number
    counts toward the classification.

    Raises:
        ValueError: If the value is not a finite decimal (or ``n/n`` for blood pressure)
    """
    text = value.strip()
    if vital_type == VitalType.BLOOD_PRESSURE:
        match = _BLOOD_PRESSURE.match(text)
        if not match:
            raise ValueError(f"Blood pressure must look like 120/80, got {value!r}")
        text = match.group(1)
    elif not _READING.match(text):
        raise ValueError(f"Not a number: {value!r}")

    reading = float(text)
    if not math.isfinite(reading):
        raise ValueError(f"Not a finite number: {value!r}")
    return reading


def classify_vital(vital_type: VitalType, value: str) -> VitalStatus:
    """
    Classify a reading as normal, high or low.

    Types without a reference range are always normal.
    """
    bounds = THRESHOLDS.get(vital_type)
    if bounds is None:
        return VitalStatus.NORMAL

    reading = parse_reading(vital_type, value)
    low, high = bounds
    if reading > high:
        return VitalStatus.HIGH
    if reading < low:
        return VitalStatus.LOW
    return VitalStatus.NORMAL


class VitalService:
    """Service for recording and reading vitals."""

    def __init__(self, db: AsyncSession, changes: ChangeFeed | None = None):
        """Initialize service with database session and optional change feed."""
        self.db = db
        self.changes = changes

    async def record_vital(self, patient_id: UUID, data: VitalCreate) -> VitalResponse:
        """
        Store a reading with its classification.

        Raises:
            ValidationException: If the value is not a number (or ``n/n`` for blood pressure)
        """
        try:
            parse_reading(data.type, data.value)
            status = classify_vital(data.type, data.value)
        except ValueError:
            raise ValidationException(f"Invalid value '{data.value}' for {data.type.value}")

        values = {
            "patient_id": patient_id,
            "type": data.type.value,
            "value": data.value.strip(),
            "unit": data.unit or VITAL_TYPES[data.type].unit,
            "status": status.value,
            "notes": data.notes,
        }
        if data.recorded_at:
            values["recorded_at"] = data.recorded_at

        result = await self.db.execute(insert(vitals).values(**values).returning(vitals))
        await self.db.commit()
        row = result.mappings().one()

        if self.changes:
            self.changes.publish("vitals", "insert", row["id"], [patient_id])

        logger.info(
            "vital_recorded",
            patient_id=str(patient_id),
            vital_type=data.type.value,
            status=status.value,
        )
        return VitalResponse.model_validate(dict(row))

    async def list_vitals(
        self,
        patient_id: UUID,
        vital_type: VitalType | None = None,
        limit: int = 100,
    ) -> list[VitalResponse]:
        """Readings newest first, optionally of one type."""
        conditions = [vitals.c.patient_id == patient_id]
        if vital_type:
            conditions.append(vitals.c.type == vital_type.value)

        stmt = (
            select(vitals)
            .where(and_(*conditions))
            .order_by(vitals.c.recorded_at.desc())
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [VitalResponse.model_validate(dict(row)) for row in rows]

    async def latest_vitals(self, patient_id: UUID) -> list[VitalResponse]:
        """Most recent reading of each type."""
        latest = (
            select(vitals.c.type, func.max(vitals.c.recorded_at).label("recorded_at"))
            .where(vitals.c.patient_id == patient_id)
            .group_by(vitals.c.type)
            .subquery()
        )
        stmt = (
            select(vitals)
            .join(
                latest,
                and_(
                    vitals.c.type == latest.c.type,
                    vitals.c.recorded_at == latest.c.recorded_at,
                ),
            )
            .where(vitals.c.patient_id == patient_id)
            .order_by(vitals.c.type)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        # Ties on recorded_at keep one row per type
        by_type: dict[str, dict] = {}
        for row in rows:
            by_type.setdefault(row["type"], dict(row))
        return [VitalResponse.model_validate(row) for row in by_type.values()]

    async def delete_vital(self, vital_id: UUID, patient_id: UUID) -> None:
        """
        Delete one of the patient's readings.

        Raises:
            NotFoundException: If no such reading belongs to the patient
        """
        result = await self.db.execute(
            delete(vitals).where(and_(vitals.c.id == vital_id, vitals.c.patient_id == patient_id))
        )
        if not result.rowcount:  # type: ignore[attr-defined]
            await self.db.rollback()
            raise NotFoundException("Vital reading not found")

        await self.db.commit()
        if self.changes:
            self.changes.publish("vitals", "delete", vital_id, [patient_id])

    @staticmethod
    def vital_types() -> list[VitalTypeInfo]:
        """Display metadata for every tracked type."""
        return list(VITAL_TYPES.values())

    async def latest_summary(self, patient_id: UUID) -> dict[str, str]:
        """Latest readings as ``{type: "value unit"}``, used as triage context."""
        return {
            vital.type.value: f"{vital.value} {vital.unit}"
            for vital in await self.latest_vitals(patient_id)
        }
