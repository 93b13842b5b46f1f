"""
Distributed lock backed by Redis.

Guards work that must not overlap across processes, such as two reward
distribution runs for the same timeframe. Falls back to a process-local
lock when no Redis client is configured.
"""

import asyncio
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from typing import Any

from loguru import logger
from redis.exceptions import RedisError

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

# Push the expiry forward only while the key still holds our token
_EXTEND_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("pexpire", KEYS[1], ARGV[2])
else
    return 0
end
"""

_local_locks: dict[str, asyncio.Lock] = {}


class LockNotAcquiredError(Exception):
    """Raised when the lock is held elsewhere or cannot be taken."""


class DistributedLock:
    """Token-based mutual exclusion using SET NX EX."""

    def __init__(self, redis_client: Any | None = None) -> None:
        """
        Initialize distributed lock.

        Args:
            redis_client: Optional async Redis client
        """
        self.redis_client = redis_client

    @asynccontextmanager
    async def lock(
        self, key: str, timeout: int = 60, renew_interval: float | None = None
    ) -> AsyncIterator[str]:
        """
        Hold the lock for the duration of the block.

        Non-blocking: if another holder has the key, LockNotAcquiredError is
        raised immediately.

        Args:
            key: Lock key
            timeout: Expiry in seconds, so a crashed holder cannot block forever
            renew_interval: If set, the expiry is reset to `timeout` every
                `renew_interval` seconds while the block runs

        Yields:
            The lock token
        """
        if self.redis_client is None:
            async with self._local_lock(key) as token:
                yield token
            return

        token = secrets.token_hex(16)
        try:
            acquired = await self.redis_client.set(key, token, nx=True, ex=timeout)
        except RedisError as e:
            logger.error(f"Failed to acquire lock {key}: {e}")
            raise LockNotAcquiredError(f"Lock store unavailable: {e}") from e

        if not acquired:
            raise LockNotAcquiredError(f"Lock {key} is held by another run")

        logger.debug(f"Acquired lock {key}")
        keep_alive = None
        if renew_interval:
            keep_alive = asyncio.create_task(
                self._keep_alive(key, token, timeout, renew_interval)
            )
        try:
            yield token
        finally:
            if keep_alive is not None:
                keep_alive.cancel()
                with suppress(asyncio.CancelledError):
                    await keep_alive
            try:
                await self.redis_client.eval(_RELEASE_SCRIPT, 1, key, token)
                logger.debug(f"Released lock {key}")
            except RedisError as e:
                # Expiry releases it eventually
                logger.warning(f"Failed to release lock {key}: {e}")

    async def _keep_alive(
        self, key: str, token: str, timeout: int, interval: float
    ) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                extended = await self.redis_client.eval(
                    _EXTEND_SCRIPT, 1, key, token, int(timeout * 1000)
                )
            except RedisError as e:
                logger.warning(f"Failed to extend lock {key}: {e}")
                continue
            if not extended:
                logger.error(f"Lock {key} was lost while still in use")
                return

    @asynccontextmanager
    async def _local_lock(self, key: str) -> AsyncIterator[str]:
        lock = _local_locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            raise LockNotAcquiredError(f"Lock {key} is held by another run")
        async with lock:
            yield "local"
