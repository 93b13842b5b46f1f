"""
Static reward tier table.

Ranks 1..10 share the pool; percentages sum to exactly 100.
"""

from decimal import Decimal

from podium.models.enums import TierName
from podium.models.reward import RewardTier

REWARD_TIERS: tuple[RewardTier, ...] = (
    RewardTier(rank=1, percentage=Decimal("40"), tier=TierName.CHAMPION),
    RewardTier(rank=2, percentage=Decimal("12.5"), tier=TierName.ELITE),
    RewardTier(rank=3, percentage=Decimal("12.5"), tier=TierName.ELITE),
    RewardTier(rank=4, percentage=Decimal("8"), tier=TierName.COMPETITIVE),
    RewardTier(rank=5, percentage=Decimal("7"), tier=TierName.COMPETITIVE),
    RewardTier(rank=6, percentage=Decimal("6"), tier=TierName.COMPETITIVE),
    RewardTier(rank=7, percentage=Decimal("5"), tier=TierName.PARTICIPANT),
    RewardTier(rank=8, percentage=Decimal("4"), tier=TierName.PARTICIPANT),
    RewardTier(rank=9, percentage=Decimal("3"), tier=TierName.PARTICIPANT),
    RewardTier(rank=10, percentage=Decimal("2"), tier=TierName.PARTICIPANT),
)

_TIERS_BY_RANK: dict[int, RewardTier] = {tier.rank: tier for tier in REWARD_TIERS}

TIER_EMOJI: dict[TierName, str] = {
    TierName.CHAMPION: "🥇",
    TierName.ELITE: "🥈",
    TierName.COMPETITIVE: "🥉",
    TierName.PARTICIPANT: "🏆",
}


def get_tier(rank: int) -> RewardTier | None:
    """Return the tier row for a rank, or None if the rank is not rewarded."""
    return _TIERS_BY_RANK.get(rank)


def is_reward_eligible_rank(rank: int) -> bool:
    return rank in _TIERS_BY_RANK


def total_percentage() -> Decimal:
    return sum((tier.percentage for tier in REWARD_TIERS), Decimal("0"))
