import asyncio
import sys
import os

# Add the project root to sys.path so we can import hrms
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrms.db import AsyncSessionLocal, init_db, close_db
from hrms.services.seed import run_seed_admin, run_seed_leave_policies, ADMIN_EMAIL, ADMIN_PASSWORD


async def seed_admin():
    """Seed the admin account and default leave policies."""
    try:
        await init_db()
        print("Database connection initialized")

        async with AsyncSessionLocal() as db:
            created = await run_seed_admin(db)
            policies = await run_seed_leave_policies(db)
            await db.commit()

        if created:
            print("Admin user created")
            print(f"   Email: {ADMIN_EMAIL}")
            print(f"   Password: {ADMIN_PASSWORD}")
        else:
            print(f"Admin user {ADMIN_EMAIL} already exists.")
        print(f"Leave policies created: {policies}")
    except Exception as e:
        print(f"Error seeding admin: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(seed_admin())
