"""
Admin PIN attempt limiter.

This module handles:
- Failed PIN attempt tracking per client
- Temporary lockout after too many failures

The authorization gate itself is stateless; lockout is the caller's job.
"""

from typing import Any

from loguru import logger
from redis.exceptions import RedisError

from podium.config.constants import ADMIN_PIN_ATTEMPTS_KEY


class PinAttemptLimiter:
    """Tracks failed admin PIN attempts in Redis."""

    def __init__(
        self,
        redis_client: Any | None,
        max_attempts: int,
        window_seconds: int,
    ) -> None:
        """
        Initialize attempt limiter.

        Args:
            redis_client: Optional async Redis client
            max_attempts: Failures allowed within the window
            window_seconds: Lockout window in seconds
        """
        self.redis_client = redis_client
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds

    async def is_locked_out(self, client_id: str) -> bool:
        """
        Check whether a client has exhausted its attempts.

        Args:
            client_id: Caller identity (e.g. remote IP)

        Returns:
            True if further attempts must be refused
        """
        if not self.redis_client:
            return False

        try:
            count_str = await self.redis_client.get(self._key(client_id))
            return int(count_str or 0) >= self.max_attempts
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(
                f"Redis error reading PIN attempts for {client_id}: "
                f"{type(e).__name__}: {e}. Continuing without lockout (degraded mode)."
            )
            return False
        except ValueError as e:
            logger.error(f"Invalid data in Redis for {self._key(client_id)}: {e}")
            return False

    async def track_failed_attempt(self, client_id: str) -> int:
        """
        Record a failed attempt.

        Args:
            client_id: Caller identity

        Returns:
            Failures within the current window (0 if tracking is unavailable)
        """
        if not self.redis_client:
            return 0

        key = self._key(client_id)
        try:
            count = await self.redis_client.incr(key)
            if count == 1:
                await self.redis_client.expire(key, self.window_seconds)
            if count >= self.max_attempts:
                logger.warning(
                    f"Admin PIN lockout for {client_id}: {count} failed attempts"
                )
            return count
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(
                f"Redis error tracking failed PIN for {client_id}: "
                f"{type(e).__name__}: {e}. Continuing without lockout (degraded mode)."
            )
            return 0

    async def clear(self, client_id: str) -> None:
        """Clear failed attempts after a successful PIN entry."""
        if not self.redis_client:
            return

        try:
            await self.redis_client.delete(self._key(client_id))
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"Redis error clearing PIN attempts for {client_id}: {e}")

    @staticmethod
    def _key(client_id: str) -> str:
        return ADMIN_PIN_ATTEMPTS_KEY.format(client=client_id)
