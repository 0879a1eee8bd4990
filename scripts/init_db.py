"""Script to initialize the database and optionally seed demo users."""

import argparse
import asyncio
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from sqlalchemy import insert, select

from app.core.security import create_access_token
from app.database import engine
from app.models import metadata, users

DEMO_USERS = [
    {
        "medical_id": "DOC001",
        "email": "dr.mehta@example.com",
        "full_name": "Dr. Asha Mehta",
        "role": "doctor",
        "specialization": "General Medicine",
    },
    {
        "medical_id": "DOC002",
        "email": "dr.okafor@example.com",
        "full_name": "Dr. Chidi Okafor",
        "role": "doctor",
        "specialization": "Cardiology",
    },
    {
        "medical_id": "PAT001",
        "email": "sam.lee@example.com",
        "full_name": "Sam Lee",
        "role": "patient",
        "specialization": None,
    },
]


async def init_db(seed: bool) -> None:
    """Create all tables, then insert demo users that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        print("✓ Database initialized successfully!")

        now = datetime.now(UTC)
        for user in DEMO_USERS if seed else []:
            existing = await conn.execute(
                select(users.c.id).where(users.c.medical_id == user["medical_id"])
            )
            if existing.first() is None:
                await conn.execute(
                    insert(users).values(
                        id=uuid4(), is_active=True, created_at=now, updated_at=now, **user
                    )
                )

            token = create_access_token(
                {"sub": user["medical_id"], "email": user["email"]},
                expires_delta=timedelta(days=7),
            )
            print(f"  {user['medical_id']} ({user['role']}): {token}")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--seed",
        action="store_true",
        help="insert demo doctors/patient and print 7-day access tokens for them",
    )
    args = parser.parse_args()
    asyncio.run(init_db(args.seed))
