"""
Reward services package.

- tiers: static rank to percentage table
- reward_calculator: payout schedule arithmetic and display helpers
- eligibility: participant filtering for a run
"""

from podium.services.reward.eligibility import EligibilityFilter, EligibilityResult
from podium.services.reward.reward_calculator import (
    RewardCalculator,
    compute_for_rank,
    compute_schedule,
    format_amount,
    format_reward_amount,
)

__all__ = [
    "EligibilityFilter",
    "EligibilityResult",
    "RewardCalculator",
    "compute_for_rank",
    "compute_schedule",
    "format_amount",
    "format_reward_amount",
]
