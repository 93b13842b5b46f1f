"""
Leaderboard ranking store.

Scores live in a sorted set per timeframe (`leaderboard:{timeframe}`, member
is the player id); player profiles live in `player:{id}` hashes with
`walletAddress`, `name` and optional `fid` fields. The configured pool size
is an integer number of smallest units under `reward:pool_size`.
"""

from typing import Any

from loguru import logger

from podium.config.constants import LEADERBOARD_KEY, PLAYER_KEY, POOL_SIZE_KEY
from podium.models.participant import Participant
from podium.utils.exceptions import InvalidInputError


class RedisLeaderboardRepository:
    """Rankings (read-only) and the configured reward pool size."""

    def __init__(self, redis_client: Any) -> None:
        self.redis_client = redis_client

    async def get_ranked_participants(
        self, timeframe: str, limit: int
    ) -> list[Participant]:
        """
        Read the top of a leaderboard.

        Args:
            timeframe: week, month or all-time
            limit: Maximum number of participants

        Returns:
            Participants ranked by score descending (rank 1 first)
        """
        if limit <= 0:
            return []

        entries = await self.redis_client.zrevrange(
            LEADERBOARD_KEY.format(timeframe=timeframe), 0, limit - 1, withscores=True
        )

        participants = []
        for index, (player_id, score) in enumerate(entries):
            profile = await self.redis_client.hgetall(
                PLAYER_KEY.format(player_id=player_id)
            )
            if not profile:
                logger.warning(
                    f"Player profile not found for player {player_id} at rank {index + 1}"
                )
                profile = {}

            participants.append(
                Participant(
                    payout_address=profile.get("walletAddress", "") or "",
                    rank=index + 1,
                    score=int(score),
                    display_name=profile.get("name") or str(player_id),
                    fid=self._parse_fid(profile.get("fid")),
                )
            )
        return participants

    async def get_configured_pool_size(self) -> int:
        """
        Read the reward pool size.

        Returns:
            Pool size in smallest units (0 if unset)

        Raises:
            InvalidInputError: If the stored value is not a non-negative integer
        """
        raw = await self.redis_client.get(POOL_SIZE_KEY)
        if raw is None or raw == "":
            return 0
        try:
            value = int(str(raw).strip())
        except ValueError as e:
            raise InvalidInputError(
                f"Configured pool size is not an integer: {raw!r}"
            ) from e
        if value < 0:
            raise InvalidInputError(f"Configured pool size is negative: {value}")
        return value

    async def set_configured_pool_size(self, amount: int) -> None:
        """
        Store the reward pool size.

        Args:
            amount: Pool size in smallest units

        Raises:
            InvalidInputError: If amount is not a non-negative integer
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidInputError("Pool size must be an integer amount in smallest units")
        if amount < 0:
            raise InvalidInputError(f"Pool size must not be negative: {amount}")

        await self.redis_client.set(POOL_SIZE_KEY, str(amount))
        logger.info(f"Reward pool size set to {amount}")

    @staticmethod
    def _parse_fid(raw: Any) -> int | None:
        try:
            return int(raw) if raw not in (None, "") else None
        except (TypeError, ValueError):
            return None
