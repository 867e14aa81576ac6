"""Profile service for business logic."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException,
)
from healthmate.core.realtime import ChangeFeed
from healthmate.core.redis_client import CacheManager
from healthmate.core.security import get_password_hash
from healthmate.models.profiles import profiles
from healthmate.schemas.profiles import (
    Preferences,
    PreferencesUpdate,
    ProfileDetails,
    ProfileUpdate,
    Role,
)

logger = structlog.get_logger(__name__)


class ProfileService:
    """Service for profile operations."""

    # Cache TTL in seconds (30 minutes for profiles)
    PROFILE_CACHE_TTL = 1800

    def __init__(
        self,
        cache_manager: CacheManager | None = None,
        changes: ChangeFeed | None = None,
    ):
        """Initialize service with optional cache manager and change feed."""
        self.cache = cache_manager
        self.changes = changes

    @staticmethod
    def _get_profile_cache_key(profile_id: UUID) -> str:
        """Generate cache key for profile."""
        return f"profile:{profile_id}"

    def _cache_profile(self, profile: dict) -> None:
        if self.cache:
            cached = {k: v for k, v in profile.items() if k != "password_hash"}
            self.cache.set_json(
                self._get_profile_cache_key(profile["id"]), cached, ttl=self.PROFILE_CACHE_TTL
            )

    def _invalidate(self, profile_id: UUID) -> None:
        if self.cache:
            self.cache.delete(self._get_profile_cache_key(profile_id))

    async def create_profile(
        self,
        db: AsyncSession,
        email: str,
        full_name: str,
        role: Role,
        password: str | None = None,
        details: ProfileDetails | None = None,
    ) -> dict:
        """
        Create a new profile.

        Raises:
            ConflictException: If the email is already registered
        """
        values: dict[str, Any] = {
            "email": email.lower(),
            "full_name": full_name,
            "role": role.value,
            "password_hash": get_password_hash(password) if password else None,
        }
        if details:
            values.update(details.model_dump(exclude_none=True))

        if await self.get_profile_by_email(db, values["email"]):
            raise ConflictException("User already registered")

        try:
            result = await db.execute(insert(profiles).values(**values).returning(profiles))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictException("User already registered")

        profile = dict(result.mappings().one())
        logger.info("profile_created", profile_id=str(profile["id"]), role=role.value)
        return profile

    async def get_profile_by_id(self, db: AsyncSession, profile_id: UUID) -> dict | None:
        """Get profile by ID with caching."""
        if self.cache:
            cached = self.cache.get_json(self._get_profile_cache_key(profile_id))
            if cached:
                cached["id"] = UUID(cached["id"])
                return cached

        result = await db.execute(select(profiles).where(profiles.c.id == profile_id))
        profile = result.mappings().first()

        if not profile:
            return None

        profile_dict = dict(profile)
        self._cache_profile(profile_dict)
        return profile_dict

    async def get_profile_by_email(self, db: AsyncSession, email: str) -> dict | None:
        """Get profile by email (case-insensitive)."""
        result = await db.execute(select(profiles).where(profiles.c.email == email.lower()))
        profile = result.mappings().first()
        return dict(profile) if profile else None

    async def _update(self, db: AsyncSession, profile_id: UUID, values: dict[str, Any]) -> dict:
        values["updated_at"] = datetime.now(UTC)
        result = await db.execute(
            update(profiles).where(profiles.c.id == profile_id).values(**values).returning(profiles)
        )
        profile = result.mappings().first()

        if not profile:
            await db.rollback()
            raise NotFoundException("Profile not found")

        await db.commit()
        self._invalidate(profile_id)
        if self.changes:
            self.changes.publish("profiles", "update", profile_id, [profile_id])
        return dict(profile)

    async def update_profile(self, db: AsyncSession, profile_id: UUID, data: ProfileUpdate) -> dict:
        """Self-service profile update."""
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            profile = await self.get_profile_by_id(db, profile_id)
            if not profile:
                raise NotFoundException("Profile not found")
            return profile
        return await self._update(db, profile_id, update_data)

    async def update_last_login(self, db: AsyncSession, profile_id: UUID) -> None:
        """Update profile's last login timestamp."""
        await db.execute(
            update(profiles)
            .where(profiles.c.id == profile_id)
            .values(last_login_at=datetime.now(UTC))
        )
        await db.commit()
        self._invalidate(profile_id)

    async def set_avatar(self, db: AsyncSession, profile_id: UUID, avatar_url: str) -> dict:
        """Point the profile at a newly uploaded avatar."""
        return await self._update(db, profile_id, {"avatar_url": avatar_url})

    async def set_active(self, db: AsyncSession, profile_id: UUID, is_active: bool) -> dict:
        """Activate or deactivate an account."""
        return await self._update(db, profile_id, {"is_active": is_active})

    async def set_role(self, db: AsyncSession, profile_id: UUID, role: Role) -> dict:
        """Change an account's role. Only reachable through admin endpoints."""
        return await self._update(db, profile_id, {"role": role.value})

    async def get_preferences(self, db: AsyncSession, profile_id: UUID) -> Preferences:
        """Stored preferences layered over the defaults."""
        profile = await self.get_profile_by_id(db, profile_id)
        if not profile:
            raise NotFoundException("Profile not found")
        return Preferences.model_validate(profile.get("preferences") or {})

    async def update_preferences(
        self, db: AsyncSession, profile_id: UUID, data: PreferencesUpdate
    ) -> Preferences:
        """Merge each given section into the stored preferences."""
        current = (await self.get_preferences(db, profile_id)).model_dump()
        for section, values in data.model_dump(exclude_none=True).items():
            current[section] = {**current[section], **values}

        try:
            merged = Preferences.model_validate(current)
        except PydanticValidationError as e:
            raise ValidationException(e.errors()[0]["msg"])

        await self._update(db, profile_id, {"preferences": merged.model_dump()})
        return merged

    async def list_profiles(
        self,
        db: AsyncSession,
        search: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[dict], int]:
        """List profiles newest first with search and filters."""
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(profiles.c.full_name.ilike(pattern), profiles.c.email.ilike(pattern))
            )
        if role:
            conditions.append(profiles.c.role == role.value)
        if is_active is not None:
            conditions.append(profiles.c.is_active.is_(is_active))

        count_stmt = select(func.count()).select_from(profiles)
        stmt = select(profiles)
        if conditions:
            count_stmt = count_stmt.where(and_(*conditions))
            stmt = stmt.where(and_(*conditions))

        total = (await db.execute(count_stmt)).scalar() or 0
        stmt = (
            stmt.order_by(profiles.c.created_at.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = (await db.execute(stmt)).mappings().all()
        return [dict(row) for row in rows], total

    async def count_by_role(self, db: AsyncSession) -> dict[str, int]:
        """Totals per role plus ``total`` and ``active``."""
        rows = (
            await db.execute(select(profiles.c.role, func.count()).group_by(profiles.c.role))
        ).all()
        counts = {role.value: 0 for role in Role}
        counts.update({row[0]: row[1] for row in rows})
        counts["total"] = sum(counts[role.value] for role in Role)

        active_stmt = (
            select(func.count()).select_from(profiles).where(profiles.c.is_active.is_(True))
        )
        counts["active"] = (await db.execute(active_stmt)).scalar() or 0
        return counts
