"""Registered spending grants, keyed by authorizer address."""

from datetime import UTC, datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from podium.config.constants import SPENDING_GRANT_KEY
from podium.models.spending_grant import MAX_UINT48, SpendingGrant
from podium.utils.security import mask_address


class RedisSpendingGrantRepository:
    """Stores the latest grant each authorizer registered."""

    def __init__(self, redis_client: Any) -> None:
        self.redis_client = redis_client

    async def get_grant(self, authorizer: str) -> SpendingGrant | None:
        raw = await self.redis_client.get(self._key(authorizer))
        if raw is None:
            return None
        try:
            return SpendingGrant.model_validate_json(raw)
        except ValidationError as e:
            logger.error(
                f"Stored spending grant for {mask_address(authorizer)} is malformed: {e}"
            )
            return None

    async def save_grant(self, grant: SpendingGrant) -> None:
        ttl = None
        if grant.end is not None and grant.end < MAX_UINT48:
            ttl = grant.end - int(datetime.now(UTC).timestamp())
            if ttl <= 0:
                raise ValueError("Spending grant has already expired")
        await self.redis_client.set(
            self._key(grant.authorizer), grant.model_dump_json(), ex=ttl
        )
        logger.info(f"Spending grant registered for {mask_address(grant.authorizer)}")

    @staticmethod
    def _key(authorizer: str) -> str:
        return SPENDING_GRANT_KEY.format(authorizer=authorizer.strip().lower())
