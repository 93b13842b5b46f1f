#!/usr/bin/env python3
"""Script to set the initial admin PIN (stored bcrypt-hashed in Redis)."""
import asyncio
import getpass
import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from podium.config.constants import ADMIN_PIN_PATTERN
from podium.repositories import RedisAdminPinRepository
from podium.services.admin.crypto import hash_pin
from podium.utils.redis_utils import get_redis_client, get_redis_url_masked


async def set_admin_pin(pin: str) -> None:
    """Hash and store the admin PIN."""
    redis_client = get_redis_client()
    try:
        await RedisAdminPinRepository(redis_client).set_pin(hash_pin(pin))
    finally:
        await redis_client.aclose()
    print(f"Admin PIN stored in {get_redis_url_masked()}")


if __name__ == "__main__":
    pin = getpass.getpass("New admin PIN (4-6 digits): ")
    if not re.match(ADMIN_PIN_PATTERN, pin):
        print("PIN must be 4-6 digits")
        sys.exit(1)
    asyncio.run(set_admin_pin(pin))
