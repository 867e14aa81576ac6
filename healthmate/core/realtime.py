"""Row change notifications over Redis pub/sub."""

import asyncio
import json
from collections.abc import AsyncIterator, Iterable
from typing import Any
from uuid import UUID

import redis
import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger(__name__)

CHANNEL_PREFIX = "changes"

# Tables clients may subscribe to
WATCHED_TABLES = frozenset(
    {
        "appointments",
        "available_slots",
        "medical_records",
        "notifications",
        "prescriptions",
        "profiles",
        "vitals",
    }
)

# Changes every signed-in user may see; open slots are not private
SHARED_TABLES = frozenset({"available_slots"})


def channel_for(table: str) -> str:
    """Pub/sub channel carrying changes of ``table``."""
    return f"{CHANNEL_PREFIX}:{table}"


class ChangeFeed:
    """Publishes ``{table, event, id, user_ids}`` after each committed write."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def publish(
        self,
        table: str,
        event: str,
        row_id: UUID | str,
        user_ids: Iterable[UUID | str | None] = (),
    ) -> None:
        """
        Announce a change; failures are logged and never raised.

        Args:
            table: Changed table name
            event: ``insert``, ``update`` or ``delete``
            row_id: Primary key of the changed row
            user_ids: Profiles allowed to see the change; ``None`` entries are dropped
        """
        message = {
            "table": table,
            "event": event,
            "id": str(row_id),
            "user_ids": sorted({str(u) for u in user_ids if u is not None}),
        }
        try:
            self.redis.publish(channel_for(table), json.dumps(message))
        except Exception as e:
            logger.warning(
                "change_event_publish_failed", table=table, change_event=event, error=str(e)
            )


def event_visible_to(message: dict[str, Any], user_id: UUID | str, role: str) -> bool:
    """Admins see every change; everyone else only shared tables and changes naming them."""
    if role == "admin" or message.get("table") in SHARED_TABLES:
        return True
    return str(user_id) in message.get("user_ids", [])


def format_sse(message: dict[str, Any]) -> str:
    """Encode one server-sent event."""
    return f"event: {message['event']}\ndata: {json.dumps(message)}\n\n"


async def stream_changes(
    client: aioredis.Redis,
    table: str,
    user_id: UUID | str,
    role: str,
    heartbeat: float = 15.0,
) -> AsyncIterator[str]:
    """
    Yield server-sent events for ``table`` visible to the caller.

    A comment line is sent every ``heartbeat`` seconds without traffic so
    proxies keep the connection open.
    """
    pubsub = client.pubsub()
    await pubsub.subscribe(channel_for(table))
    logger.info("realtime_subscribed", table=table, user_id=str(user_id))

    try:
        yield ": connected\n\n"
        while True:
            raw = await pubsub.get_message(ignore_subscribe_messages=True, timeout=heartbeat)
            if raw is None:
                yield ": keep-alive\n\n"
                continue

            try:
                message = json.loads(raw["data"])
            except (TypeError, ValueError):
                logger.warning("realtime_bad_message", table=table)
                continue

            if event_visible_to(message, user_id, role):
                yield format_sse(message)
    except asyncio.CancelledError:
        logger.info("realtime_unsubscribed", table=table, user_id=str(user_id))
        raise
    finally:
        await pubsub.unsubscribe(channel_for(table))
        await pubsub.aclose()
        await client.aclose()
