"""
Seed script: creates the default admin user and the standard office schedule,
then prints an access token for the admin.

Usage (inside container):
    python -m geoattend.db.seed
"""

import asyncio
import uuid
from datetime import time

from sqlalchemy import select

from geoattend.core.middleware import ROLE_ADMIN
from geoattend.core.security import create_access_token
from geoattend.db.models import User, WorkSchedule
from geoattend.db.session import AsyncSessionLocal

ADMIN_EMAIL = "admin@attendance.com"


async def create_admin(session) -> User:
    result = await session.execute(select(User).where(User.email == ADMIN_EMAIL))
    admin = result.scalar_one_or_none()
    if admin:
        print("Admin user already exists, skipping.")
        return admin

    admin = User(
        id=uuid.uuid4(),
        email=ADMIN_EMAIL,
        full_name="System Administrator",
        role=ROLE_ADMIN,
        is_active=True,
    )
    session.add(admin)
    await session.flush()
    print(f"Created admin user: id={admin.id}")
    return admin


async def create_default_schedule(session) -> WorkSchedule:
    result = await session.execute(
        select(WorkSchedule).where(WorkSchedule.name == "Standard Office Hours")
    )
    schedule = result.scalar_one_or_none()
    if schedule:
        print("Default schedule already exists, skipping.")
        return schedule

    schedule = WorkSchedule(
        name="Standard Office Hours",
        check_in_start=time(8, 0),
        check_in_end=time(9, 0),
        check_out_start=time(17, 0),
        work_days=[1, 2, 3, 4, 5],
    )
    session.add(schedule)
    await session.flush()
    print(f"Created default schedule: id={schedule.id}")
    return schedule


async def main():
    async with AsyncSessionLocal() as session:
        async with session.begin():
            admin = await create_admin(session)
            await create_default_schedule(session)
        print("Seed complete.")
        print(f"Admin access token: {create_access_token({'sub': str(admin.id)})}")


if __name__ == "__main__":
    asyncio.run(main())
