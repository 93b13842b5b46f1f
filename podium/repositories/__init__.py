"""Redis-backed stores for the distribution engine."""

from podium.repositories.admin_pin_repository import RedisAdminPinRepository
from podium.repositories.distribution_history_repository import (
    RedisDistributionHistoryRepository,
)
from podium.repositories.leaderboard_repository import RedisLeaderboardRepository
from podium.repositories.spending_grant_repository import RedisSpendingGrantRepository

__all__ = [
    "RedisAdminPinRepository",
    "RedisDistributionHistoryRepository",
    "RedisLeaderboardRepository",
    "RedisSpendingGrantRepository",
]
