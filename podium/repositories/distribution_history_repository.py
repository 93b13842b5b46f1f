"""
Distribution history storage.

One JSON document per run under
`reward_distribution:{timeframe}:{timestamp_ms}:{run_id}` with a TTL, so
records expire on their own after the retention window.
"""

import json
from typing import Any

from loguru import logger

from podium.config.constants import DISTRIBUTION_RECORD_KEY, DISTRIBUTION_RECORD_PATTERN
from podium.models.distribution import DistributionRecord


class RedisDistributionHistoryRepository:
    """Write-once distribution records with TTL expiry."""

    def __init__(self, redis_client: Any) -> None:
        self.redis_client = redis_client

    async def put(self, record: DistributionRecord, ttl_seconds: int) -> None:
        """
        Persist a record.

        Args:
            record: Distribution record
            ttl_seconds: Retention period

        Raises:
            RuntimeError: If a record with the same key already exists
        """
        timestamp_ms = int(record.timestamp.timestamp() * 1000)
        key = (
            DISTRIBUTION_RECORD_KEY.format(
                timeframe=record.timeframe.value, timestamp_ms=timestamp_ms
            )
            + f":{record.run_id}"
        )
        written = await self.redis_client.set(
            key, json.dumps(record.to_dict()), ex=ttl_seconds, nx=True
        )
        if not written:
            raise RuntimeError(f"Distribution record {key} already exists")

    async def query(self, timeframe: str, limit: int) -> list[DistributionRecord]:
        """
        Most recent records for a timeframe, newest first.

        Malformed entries are skipped.
        """
        if limit <= 0:
            return []

        keys = [
            key
            async for key in self.redis_client.scan_iter(
                match=DISTRIBUTION_RECORD_PATTERN.format(timeframe=timeframe)
            )
        ]
        if not keys:
            return []

        values = await self.redis_client.mget(keys)
        records = []
        for key, raw in zip(keys, values):
            if raw is None:
                # Expired between SCAN and MGET
                continue
            try:
                records.append(DistributionRecord.from_dict(json.loads(raw)))
            except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
                logger.error(f"Failed to parse distribution record {key}: {e}")

        records.sort(key=lambda record: record.timestamp, reverse=True)
        return records[:limit]
