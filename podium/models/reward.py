"""Reward tier and payout schedule models."""

from dataclasses import dataclass
from decimal import Decimal

from podium.models.enums import TierName


@dataclass(frozen=True)
class RewardTier:
    """One row of the static tier table."""

    rank: int
    percentage: Decimal
    tier: TierName

    @property
    def basis_points(self) -> int:
        """Percentage expressed as an integer count of 0.01%."""
        return int(self.percentage * 100)


@dataclass(frozen=True)
class ScheduleEntry:
    """Payout for one rank within a schedule."""

    rank: int
    amount: int
    percentage: Decimal
    tier: TierName

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "amount": self.amount,
            "percentage": str(self.percentage),
            "tier": self.tier.value,
        }


@dataclass(frozen=True)
class PayoutSchedule:
    """Tiered payouts computed from a pool size (smallest units)."""

    total_pool: int
    entries: tuple[ScheduleEntry, ...]

    @property
    def total_amount(self) -> int:
        """Sum of all entry amounts (never above total_pool)."""
        return sum(entry.amount for entry in self.entries)

    @property
    def residual(self) -> int:
        """Rounding dust that is intentionally not paid out."""
        return self.total_pool - self.total_amount

    def amount_for_rank(self, rank: int) -> int:
        for entry in self.entries:
            if entry.rank == rank:
                return entry.amount
        return 0

    def to_dict(self) -> dict:
        return {
            "totalPool": self.total_pool,
            "entries": [entry.to_dict() for entry in self.entries],
        }
