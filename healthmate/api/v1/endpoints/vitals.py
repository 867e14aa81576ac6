"""Vitals tracker endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from healthmate.dependencies import ChangeFeedDep, DatabaseSession, PatientUser
from healthmate.schemas.vitals import VitalCreate, VitalResponse, VitalType, VitalTypeInfo
from healthmate.services.vital_service import VitalService

router = APIRouter(prefix="/vitals")


@router.get(
    "/types",
    response_model=list[VitalTypeInfo],
    status_code=status.HTTP_200_OK,
    summary="Tracked vital types",
)
async def list_vital_types() -> list[VitalTypeInfo]:
    """Labels, default units and normal ranges."""
    return VitalService.vital_types()


@router.post(
    "",
    response_model=VitalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a vital reading",
)
async def record_vital(
    data: VitalCreate,
    current_user: PatientUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> VitalResponse:
    """
    Store a reading classified as normal, high or low.

    The unit defaults to the type's standard unit.
    """
    return await VitalService(db, changes).record_vital(current_user["id"], data)


@router.get(
    "",
    response_model=list[VitalResponse],
    status_code=status.HTTP_200_OK,
    summary="List vital readings",
)
async def list_vitals(
    current_user: PatientUser,
    db: DatabaseSession,
    vital_type: VitalType | None = Query(None, alias="type"),
    limit: int = Query(100, ge=1, le=500),
) -> list[VitalResponse]:
    """Readings newest first, optionally of one type."""
    return await VitalService(db).list_vitals(current_user["id"], vital_type, limit)


@router.get(
    "/latest",
    response_model=list[VitalResponse],
    status_code=status.HTTP_200_OK,
    summary="Latest reading per type",
)
async def latest_vitals(
    current_user: PatientUser,
    db: DatabaseSession,
) -> list[VitalResponse]:
    return await VitalService(db).latest_vitals(current_user["id"])


@router.delete(
    "/{vital_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a vital reading",
)
async def delete_vital(
    vital_id: UUID,
    current_user: PatientUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> None:
    await VitalService(db, changes).delete_vital(vital_id, current_user["id"])
