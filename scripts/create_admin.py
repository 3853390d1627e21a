#!/usr/bin/env python3
"""
create_admin.py - Create an ADMIN account

Registration through the API always creates USER accounts; moderators are
created here.

Usage:
    python scripts/create_admin.py --username admin --name "Site Admin"

    # Password from the environment instead of a prompt
    ADMIN_PASSWORD=... python scripts/create_admin.py --username admin --name Admin
"""

import os
import sys
import asyncio
import argparse
import getpass
import logging
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app.core.db.engine import AsyncSessionLocal, engine  # noqa: E402
from app.core.exceptions import ConflictError  # noqa: E402
from app.modules.users.models import Role  # noqa: E402
from app.modules.users.schemas import RegisterRequest  # noqa: E402
from app.modules.users.service import UsersService  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("create_admin")


async def create_admin(username: str, name: str, password: str) -> int:
    async with AsyncSessionLocal() as session:
        try:
            result = await UsersService.create(
                session,
                RegisterRequest(username=username, password=password, name=name),
                role=Role.ADMIN,
            )
            await session.commit()
        except ConflictError:
            await session.rollback()
            logger.error("User %s already exists", username)
            return 1
    await engine.dispose()
    logger.info("Created admin %s (id=%s)", username, result.user.id)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an ADMIN account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--name", required=True)
    args = parser.parse_args()

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 6:
        logger.error("Password must be at least 6 characters")
        return 1
    return asyncio.run(create_admin(args.username, args.name, password))


if __name__ == "__main__":
    sys.exit(main())
