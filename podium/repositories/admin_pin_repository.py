"""Admin PIN storage."""

from typing import Any

from podium.config.constants import ADMIN_PIN_KEY


class RedisAdminPinRepository:
    """Stores the administrator PIN (plain legacy value or bcrypt hash)."""

    def __init__(self, redis_client: Any) -> None:
        self.redis_client = redis_client

    async def get_pin(self) -> str | None:
        value = await self.redis_client.get(ADMIN_PIN_KEY)
        return str(value) if value is not None else None

    async def set_pin(self, value: str) -> None:
        await self.redis_client.set(ADMIN_PIN_KEY, value)
