"""Distribution record persistence and history queries."""

from loguru import logger

from podium.config.constants import HISTORY_MAX_LIMIT, HISTORY_RETENTION_DAYS
from podium.models.distribution import DistributionRecord
from podium.services.interfaces import HistoryStore
from podium.utils.exceptions import RecordingError


class DistributionRecorder:
    """Writes one audit record per run and reads recent history."""

    def __init__(
        self, store: HistoryStore, retention_days: int = HISTORY_RETENTION_DAYS
    ) -> None:
        self.store = store
        self.retention_days = retention_days

    @property
    def ttl_seconds(self) -> int:
        return self.retention_days * 86_400

    async def record(self, record: DistributionRecord) -> None:
        """
        Persist a record once.

        Raises:
            RecordingError: If the store rejects or cannot take the write
        """
        try:
            await self.store.put(record, self.ttl_seconds)
        except Exception as e:
            logger.error(f"Failed to record distribution {record.run_id}: {e}")
            raise RecordingError(f"Failed to record distribution: {e}") from e

        logger.info(
            f"Recorded distribution {record.run_id} "
            f"({record.timeframe}, {record.status}, {record.recipient_count} recipients)"
        )

    async def history(self, timeframe: str, limit: int = 5) -> list[DistributionRecord]:
        """
        Recent records for a timeframe, newest first.

        Args:
            timeframe: week, month or all-time
            limit: Maximum number of records (capped)
        """
        limit = max(0, min(limit, HISTORY_MAX_LIMIT))
        return await self.store.query(timeframe, limit)
