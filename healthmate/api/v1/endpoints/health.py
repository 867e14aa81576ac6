"""Liveness and readiness checks."""

import redis
import structlog
from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from healthmate.config import settings
from healthmate.dependencies import (
    CompletionClientDep,
    DatabaseSession,
    FileStorageDep,
    RedisClient,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


class ReadinessResponse(HealthResponse):
    """Per-component state; ``completion`` is informational only."""

    database: str
    redis: str
    storage: str
    completion: str


def _state(ok: bool) -> str:
    return "healthy" if ok else "unhealthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
)
async def detailed_health_check(
    db: DatabaseSession,
    redis_client: RedisClient,
    storage: FileStorageDep,
    completion: CompletionClientDep,
) -> ReadinessResponse:
    """
    Check the row store, Redis and upload storage.

    The portal keeps serving reads when Redis is down, so a failing
    component reports ``degraded`` instead of an error status. A missing
    completion API key only disables the assistant.
    """
    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error("readiness_database_failed", error=str(e))
        db_ok = False

    try:
        redis_ok = bool(redis_client.ping())
    except redis.RedisError as e:
        logger.error("readiness_redis_failed", error=str(e))
        redis_ok = False

    storage_ok = storage.is_writable()

    return ReadinessResponse(
        status="healthy" if db_ok and redis_ok and storage_ok else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database=_state(db_ok),
        redis=_state(redis_ok),
        storage=_state(storage_ok),
        completion="configured" if completion.api_key else "not_configured",
    )
