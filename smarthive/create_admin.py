"""
Create an administrator account, or promote an existing user.

    python -m smarthive.create_admin admin@example.com secret --firstname Ada
"""
import argparse
import asyncio
from typing import Optional

from smarthive.core.db import get_engine, get_sessionmaker, init_models
from smarthive.core.security import get_password_hash
from smarthive.core.utils import is_valid_email
from smarthive.models import User
from smarthive.services.registration import get_user_by_email, normalize_email


async def create_admin(
    email: str,
    password: str,
    firstname: Optional[str] = None,
    lastname: Optional[str] = None,
) -> User:
    await init_models(get_engine())

    async with get_sessionmaker()() as session:
        user = await get_user_by_email(session, email)
        if user is None:
            user = User(
                email=normalize_email(email),
                password_hash=get_password_hash(password),
                firstname=firstname,
                lastname=lastname,
                role="admin",
            )
            session.add(user)
            print(f"Admin user created: {user.email}")
        else:
            user.role = "admin"
            user.password_hash = get_password_hash(password)
            print(f"Existing user promoted to admin: {user.email}")
        await session.commit()

    await get_engine().dispose()
    return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a SmartHive administrator")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--firstname")
    parser.add_argument("--lastname")
    args = parser.parse_args(argv)

    if not is_valid_email(args.email):
        parser.error("invalid email address")
    asyncio.run(create_admin(args.email, args.password, args.firstname, args.lastname))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
