"""Create the society admin account (once)

Usage:
    python -m society.create_admin
    python -m society.create_admin --email admin@example.com --password secret

Defaults come from ADMIN_NAME / ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_PHONE.
"""
import argparse
import asyncio

from society.core.config import settings
from society.core.database import get_session_local, init_db, close_db
from society.core.exceptions import SocietyError
from society.services.auth_service import auth_service


async def create_admin(name: str, email: str, password: str, phone: str) -> int:
    await init_db()
    session_local = get_session_local()
    try:
        async with session_local() as db:
            admin, created = await auth_service.ensure_admin(db, name, email, password, phone)
    except SocietyError as e:
        print(f"Could not create admin: {e.message}")
        return 1
    finally:
        await close_db()

    if not created:
        print(f"Admin user already exists: {admin.email}")
        return 0

    print("Admin user created successfully!")
    print(f"Email: {admin.email}")
    print(f"Password: {password}")
    print("\nPlease change the password after first login.")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the society admin account")
    parser.add_argument("--name", default=settings.ADMIN_NAME)
    parser.add_argument("--email", default=settings.ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.ADMIN_PASSWORD)
    parser.add_argument("--phone", default=settings.ADMIN_PHONE)
    args = parser.parse_args()

    return asyncio.run(create_admin(args.name, args.email, args.password, args.phone))


if __name__ == "__main__":
    raise SystemExit(main())
