"""
Reward calculator.

Turns a pool size into the tiered payout schedule. All payout arithmetic is
done on integers in the asset's smallest unit:

    amount = total_pool * basis_points // 10000

Each rank is computed independently and rounded toward zero; the residual
dust is intentionally left in the pool.
"""

from decimal import ROUND_DOWN, Decimal

from loguru import logger

from podium.config.constants import BASIS_POINTS_DENOMINATOR, MAX_REWARDED_RANK
from podium.models.enums import TierName
from podium.models.reward import PayoutSchedule, ScheduleEntry
from podium.services.reward.tiers import REWARD_TIERS, TIER_EMOJI, get_tier
from podium.utils.exceptions import InvalidInputError


def _validate_pool(total_pool: int) -> None:
    if isinstance(total_pool, bool) or not isinstance(total_pool, int):
        raise InvalidInputError(
            f"Pool size must be an integer amount of smallest units, got {total_pool!r}"
        )
    if total_pool < 0:
        raise InvalidInputError(f"Pool size must be non-negative, got {total_pool}")


def _amount(total_pool: int, basis_points: int) -> int:
    return total_pool * basis_points // BASIS_POINTS_DENOMINATOR


def compute_schedule(total_pool: int) -> PayoutSchedule:
    """
    Compute the full payout schedule for a pool.

    Args:
        total_pool: Pool size in smallest units (non-negative integer)

    Returns:
        PayoutSchedule with one entry per rank 1..10, rank ascending

    Raises:
        InvalidInputError: If total_pool is negative or not an integer

    Example:
        >>> [e.amount for e in compute_schedule(10).entries][:3]
        [4, 1, 1]
    """
    _validate_pool(total_pool)

    entries = tuple(
        ScheduleEntry(
            rank=tier.rank,
            amount=_amount(total_pool, tier.basis_points),
            percentage=tier.percentage,
            tier=tier.tier,
        )
        for tier in REWARD_TIERS
    )
    return PayoutSchedule(total_pool=total_pool, entries=entries)


def compute_for_rank(rank: int, total_pool: int) -> int:
    """
    Compute the payout for a single rank.

    Args:
        rank: Leaderboard rank (1-based)
        total_pool: Pool size in smallest units

    Returns:
        Amount in smallest units; 0 for ranks outside 1..10
    """
    _validate_pool(total_pool)
    tier = get_tier(rank)
    if tier is None:
        return 0
    return _amount(total_pool, tier.basis_points)


def get_reward_tier(rank: int) -> TierName | None:
    tier = get_tier(rank)
    return tier.tier if tier else None


def tier_emoji(tier: TierName | None) -> str:
    if tier is None:
        return ""
    return TIER_EMOJI.get(tier, "")


def format_amount(amount: int, decimals: int) -> str:
    """
    Render a smallest-unit integer as an exact decimal string.

    Uses integer division only, so arbitrarily large amounts keep every digit.

    Examples:
        >>> format_amount(1_234_567, 6)
        '1.234567'
        >>> format_amount(5, 6)
        '0.000005'
    """
    if decimals == 0:
        return str(amount)
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    if not fraction_str:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction_str}"


def format_reward_amount(amount: int, decimals: int) -> str:
    """
    Human-readable reward amount.

    - 1000 units and above: whole units with thousands separators
    - 1 unit and above: 3 decimals
    - 0.001 and above: 4 decimals
    - below: 6 decimals

    Digits beyond the shown precision are truncated, never rounded up.

    Args:
        amount: Amount in smallest units
        decimals: Asset decimals

    Returns:
        Formatted amount string
    """
    if amount < 0:
        logger.warning(f"Negative reward amount passed to formatter: {amount}")
        return "0"

    whole, _ = divmod(amount, 10**decimals)
    if whole >= 1000:
        return f"{whole:,}"

    value = Decimal(format_amount(amount, decimals))
    if value >= 1:
        places = Decimal("0.001")
    elif value >= Decimal("0.001"):
        places = Decimal("0.0001")
    else:
        places = Decimal("0.000001")
    return str(value.quantize(places, rounding=ROUND_DOWN))


def motivation_message(
    current_rank: int, total_pool: int, decimals: int, symbol: str
) -> str:
    """
    Motivational message shown next to a player's rank.

    Args:
        current_rank: Player's current rank
        total_pool: Pool size in smallest units
        decimals: Asset decimals
        symbol: Asset symbol

    Returns:
        Message text
    """
    if 1 <= current_rank <= MAX_REWARDED_RANK:
        reward = compute_for_rank(current_rank, total_pool)
        emoji = tier_emoji(get_reward_tier(current_rank))
        return (
            f"{emoji} Rank {current_rank} - You're earning "
            f"{format_reward_amount(reward, decimals)} {symbol}!"
        )

    last_paid = format_reward_amount(
        compute_for_rank(MAX_REWARDED_RANK, total_pool), decimals
    )
    if MAX_REWARDED_RANK < current_rank <= MAX_REWARDED_RANK + 5:
        spots_away = current_rank - MAX_REWARDED_RANK
        return (
            f"🎯 Only {spots_away} spots from rewards! "
            f"Rank {MAX_REWARDED_RANK} earns {last_paid} {symbol}"
        )
    if MAX_REWARDED_RANK < current_rank <= 25:
        return f"⚡ Push for Top {MAX_REWARDED_RANK} rewards! Minimum reward: {last_paid} {symbol}"

    winner = format_reward_amount(compute_for_rank(1, total_pool), decimals)
    return f"🏆 Climb the leaderboard! Winner takes {winner} {symbol}"


class RewardCalculator:
    """
    Asset-aware facade over the schedule functions.

    Binds the asset's decimals and symbol so callers can compute and render
    payouts without threading them through every call.
    """

    def __init__(self, decimals: int, symbol: str) -> None:
        self.decimals = decimals
        self.symbol = symbol

    def compute_schedule(self, total_pool: int) -> PayoutSchedule:
        return compute_schedule(total_pool)

    def compute_for_rank(self, rank: int, total_pool: int) -> int:
        return compute_for_rank(rank, total_pool)

    def format(self, amount: int) -> str:
        return format_reward_amount(amount, self.decimals)

    def describe_schedule(self, total_pool: int) -> dict:
        """Schedule with exact and display amounts, for previews."""
        schedule = compute_schedule(total_pool)
        data = schedule.to_dict()
        for entry, rendered in zip(schedule.entries, data["entries"]):
            rendered["formatted"] = self.format(entry.amount)
            rendered["exact"] = format_amount(entry.amount, self.decimals)
            rendered["emoji"] = tier_emoji(entry.tier)
        data["symbol"] = self.symbol
        data["totalScheduled"] = schedule.total_amount
        data["residual"] = schedule.residual
        return data

    def motivation_message(self, current_rank: int, total_pool: int) -> str:
        return motivation_message(current_rank, total_pool, self.decimals, self.symbol)
