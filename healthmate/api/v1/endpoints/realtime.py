"""Server-sent change events."""

from collections.abc import Callable
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from healthmate.core.exceptions import NotFoundException
from healthmate.core.realtime import WATCHED_TABLES, stream_changes
from healthmate.core.redis_client import create_async_redis_client
from healthmate.dependencies import CurrentUser

router = APIRouter(prefix="/realtime")


def get_pubsub_factory() -> Callable[[], aioredis.Redis]:
    """Factory for the per-stream asyncio Redis connection."""
    return create_async_redis_client


PubSubFactory = Annotated[Callable[[], aioredis.Redis], Depends(get_pubsub_factory)]


@router.get(
    "/{table}",
    status_code=status.HTTP_200_OK,
    summary="Stream changes to a table",
    response_class=StreamingResponse,
)
async def stream_table_changes(
    table: str,
    current_user: CurrentUser,
    client_factory: PubSubFactory,
) -> StreamingResponse:
    """
    Stream ``insert``, ``update`` and ``delete`` events for ``table``.

    Only events naming the caller, or slot changes, are delivered; admins
    receive every event.
    Clients react by refetching the affected list.
    """
    if table not in WATCHED_TABLES:
        raise NotFoundException(f"Unknown table: {table}")

    events = stream_changes(
        client_factory(),
        table,
        current_user["id"],
        current_user["role"],
    )
    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
