"""
Eligibility filter.

Decides which ranked participants receive a payout in a run: top-10 rank,
valid payout address, positive score, payout at or above the dust threshold,
and one payout per address (the better rank keeps it).
"""

from dataclasses import dataclass, field

from loguru import logger

from podium.models.enums import ExclusionReason
from podium.models.participant import EligibleRecipient, Participant
from podium.models.reward import PayoutSchedule
from podium.services.reward.reward_calculator import compute_for_rank
from podium.services.reward.tiers import is_reward_eligible_rank
from podium.utils.security import mask_address
from podium.utils.validation import is_valid_payout_address


@dataclass
class EligibilityResult:
    """Participants split into payable recipients and exclusions."""

    eligible: list[EligibleRecipient] = field(default_factory=list)
    excluded: list[EligibleRecipient] = field(default_factory=list)

    @property
    def total_amount(self) -> int:
        return sum(recipient.amount for recipient in self.eligible)


class EligibilityFilter:
    """Filters a ranked participant list against a payout schedule."""

    def __init__(self, dust_threshold: int) -> None:
        """
        Initialize eligibility filter.

        Args:
            dust_threshold: Minimum payout in smallest units
        """
        if dust_threshold < 1:
            raise ValueError("dust_threshold must be at least 1 smallest unit")
        self.dust_threshold = dust_threshold

    def evaluate(
        self, participants: list[Participant], schedule: PayoutSchedule
    ) -> EligibilityResult:
        """
        Evaluate every participant and record why excluded ones were dropped.

        Args:
            participants: Ranked participants, rank ascending
            schedule: Payout schedule of the run

        Returns:
            EligibilityResult; `eligible` is rank ascending, at most 10 entries
        """
        result = EligibilityResult()
        used_addresses: set[str] = set()

        for participant in participants:
            reason = self._exclusion_reason(participant, schedule, used_addresses)
            amount = (
                compute_for_rank(participant.rank, schedule.total_pool)
                if is_reward_eligible_rank(participant.rank)
                else 0
            )
            recipient = EligibleRecipient(
                payout_address=participant.payout_address,
                rank=participant.rank,
                amount=amount,
                display_name=participant.display_name,
                exclusion_reason=reason,
            )

            if reason is None:
                used_addresses.add(participant.payout_address.strip().lower())
                result.eligible.append(recipient)
            else:
                logger.debug(
                    f"Participant at rank {participant.rank} "
                    f"({mask_address(participant.payout_address)}) excluded: {reason.value}"
                )
                result.excluded.append(recipient)

        result.eligible.sort(key=lambda recipient: recipient.rank)
        logger.info(
            f"Eligibility: {len(result.eligible)} of {len(participants)} "
            f"participants qualify, total {result.total_amount}"
        )
        return result

    def filter(
        self, participants: list[Participant], schedule: PayoutSchedule
    ) -> list[EligibleRecipient]:
        """Return only the payable recipients."""
        return self.evaluate(participants, schedule).eligible

    def _exclusion_reason(
        self,
        participant: Participant,
        schedule: PayoutSchedule,
        used_addresses: set[str],
    ) -> ExclusionReason | None:
        if not is_reward_eligible_rank(participant.rank):
            return ExclusionReason.RANK_OUT_OF_RANGE
        if not is_valid_payout_address(participant.payout_address):
            return ExclusionReason.INVALID_ADDRESS
        if participant.score <= 0:
            return ExclusionReason.NON_POSITIVE_SCORE
        if compute_for_rank(participant.rank, schedule.total_pool) < self.dust_threshold:
            return ExclusionReason.BELOW_DUST_THRESHOLD
        if participant.payout_address.strip().lower() in used_addresses:
            return ExclusionReason.DUPLICATE_ADDRESS
        return None
