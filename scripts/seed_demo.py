"""Seed demo accounts, a week of open slots and starter articles.

Usage: python scripts/seed_demo.py [password]
"""

import asyncio
import sys
from datetime import date, timedelta

from sqlalchemy import insert, select

from healthmate.core.exceptions import ConflictException
from healthmate.database import AsyncSessionLocal, engine
from healthmate.models.articles import articles
from healthmate.schemas.profiles import ProfileDetails, Role
from healthmate.schemas.slots import SlotCreate
from healthmate.services.profile_service import ProfileService
from healthmate.services.slot_service import SlotService

DEMO_ACCOUNTS = [
    ("nandini@gmail.com", "nandini", Role.PATIENT, ProfileDetails()),
    (
        "sarah@healthmate.com",
        "Dr. Sarah Johnson",
        Role.DOCTOR,
        ProfileDetails(specialization="Cardiology", medical_license="MD-104233"),
    ),
    ("admin@healthmate.com", "Admin User", Role.ADMIN, ProfileDetails()),
]

DEMO_SLOT_TIMES = ["09:00", "10:00", "11:00", "14:00", "15:30"]

STARTER_ARTICLES = [
    (
        "Understanding High Blood Pressure",
        "Heart Health",
        "High blood pressure is a common condition that affects millions...",
        5,
        True,
    ),
    (
        "Managing Anxiety: Practical Tips",
        "Mental Health",
        "Anxiety is a normal response to stress, but when it becomes overwhelming...",
        7,
        True,
    ),
    (
        "Healthy Eating for Diabetes",
        "Nutrition",
        "Managing diabetes through diet is crucial for maintaining stable blood sugar...",
        6,
        False,
    ),
]


async def seed(password: str) -> None:
    """Create what is missing; running twice is harmless."""
    service = ProfileService()

    async with AsyncSessionLocal() as db:
        doctor_id = None
        for email, full_name, role, details in DEMO_ACCOUNTS:
            try:
                profile = await service.create_profile(
                    db, email, full_name, role, password=password, details=details
                )
                print(f"✓ Created {role.value} {email}")
            except ConflictException:
                profile = await service.get_profile_by_email(db, email)
                print(f"- {email} already exists")
            if role == Role.DOCTOR and profile:
                doctor_id = profile["id"]

        if doctor_id is not None:
            slot_service = SlotService(db)
            existing = await slot_service.list_own_slots(doctor_id, from_date=date.today())
            if not existing:
                for offset in range(1, 8):
                    for start_time in DEMO_SLOT_TIMES:
                        await slot_service.add_slot(
                            doctor_id,
                            SlotCreate(
                                date=date.today() + timedelta(days=offset),
                                start_time=start_time,
                            ),
                        )
                print(f"✓ Published {7 * len(DEMO_SLOT_TIMES)} slots")

        if (await db.execute(select(articles.c.id).limit(1))).first() is None:
            await db.execute(
                insert(articles),
                [
                    {
                        "title": title,
                        "category": category,
                        "content": content,
                        "read_time": read_time,
                        "trending": trending,
                    }
                    for title, category, content, read_time, trending in STARTER_ARTICLES
                ],
            )
            await db.commit()
            print(f"✓ Added {len(STARTER_ARTICLES)} articles")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else "healthmate123"))
