"""Script to initialize the database without running migrations."""

import asyncio

from sqlalchemy import text

from healthmate.config import settings
from healthmate.database import engine
from healthmate.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        if not settings.is_sqlite:
            # gen_random_uuid() for ids inserted outside the API
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        # Create all tables
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print(f"✓ Database initialized with {len(metadata.tables)} tables")


if __name__ == "__main__":
    asyncio.run(init_db())
