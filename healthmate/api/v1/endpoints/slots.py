"""Doctor schedule endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Header, Query, status

from healthmate.dependencies import ChangeFeedDep, DatabaseSession, DoctorUser, IdempotencyDep
from healthmate.schemas.slots import SlotCreate, SlotResponse
from healthmate.services.slot_service import SlotService

router = APIRouter(prefix="/slots")


@router.post(
    "",
    response_model=SlotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an open slot",
)
async def add_slot(
    data: SlotCreate,
    current_user: DoctorUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
    idempotency: IdempotencyDep,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
) -> SlotResponse:
    """
    Publish a slot of ``duration`` minutes starting at ``start_time``.

    A repeated ``Idempotency-Key`` returns the slot created by the first request;
    a duplicate arriving while the first is still running gets 409.
    """
    owner = str(current_user["id"])
    replay = idempotency.reserve("slots", owner, idempotency_key)
    if replay:
        return SlotResponse.model_validate(replay)

    try:
        slot = await SlotService(db, changes).add_slot(current_user["id"], data)
    except Exception:
        idempotency.release("slots", owner, idempotency_key)
        raise
    idempotency.remember("slots", owner, idempotency_key, slot.model_dump(mode="json"))
    return slot


@router.get(
    "/mine",
    response_model=list[SlotResponse],
    status_code=status.HTTP_200_OK,
    summary="List my slots",
)
async def list_my_slots(
    current_user: DoctorUser,
    db: DatabaseSession,
    from_date: date | None = Query(None, description="Only slots on or after this date"),
) -> list[SlotResponse]:
    """The calling doctor's slots, booked and open."""
    return await SlotService(db).list_own_slots(current_user["id"], from_date)


@router.delete(
    "/{slot_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an open slot",
)
async def delete_slot(
    slot_id: UUID,
    current_user: DoctorUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> None:
    """Withdraw one of the caller's unbooked slots."""
    await SlotService(db, changes).delete_slot(slot_id, current_user["id"])
