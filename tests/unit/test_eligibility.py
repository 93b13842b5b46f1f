"""
Tests for the eligibility filter.

Covers:
- Rank, address, score and dust exclusions
- Duplicate payout addresses
- Ordering and size of the eligible set
"""

import pytest
from pydantic import ValidationError

from podium.config.constants import ZERO_ADDRESS
from podium.config.settings import Settings
from podium.models.enums import ExclusionReason
from podium.models.participant import Participant
from podium.services.reward.eligibility import EligibilityFilter
from podium.services.reward.reward_calculator import compute_schedule

POOL = 1_000_000_000


class TestEligibilityFilter:
    """Test participant filtering."""

    def test_top_ten_kept(self, participants):
        result = EligibilityFilter(dust_threshold=100).evaluate(
            participants, compute_schedule(POOL)
        )

        assert [r.rank for r in result.eligible] == list(range(1, 11))
        assert {r.exclusion_reason for r in result.excluded} == {
            ExclusionReason.RANK_OUT_OF_RANGE
        }
        assert result.total_amount == POOL

    def test_amounts_match_schedule(self, participants):
        schedule = compute_schedule(POOL)
        eligible = EligibilityFilter(100).filter(participants, schedule)
        for recipient in eligible:
            assert recipient.amount == schedule.amount_for_rank(recipient.rank)

    def test_invalid_and_zero_addresses_excluded(self, participants):
        participants[1] = Participant("not-an-address", 2, 900, "bad")
        participants[2] = Participant(ZERO_ADDRESS, 3, 850, "zero")

        result = EligibilityFilter(100).evaluate(participants, compute_schedule(POOL))

        excluded = {r.rank: r.exclusion_reason for r in result.excluded}
        assert excluded[2] == ExclusionReason.INVALID_ADDRESS
        assert excluded[3] == ExclusionReason.INVALID_ADDRESS
        assert 2 not in [r.rank for r in result.eligible]

    def test_non_positive_score_excluded(self, participants):
        participants[4] = Participant(participants[4].payout_address, 5, 0, "idle")

        result = EligibilityFilter(100).evaluate(participants, compute_schedule(POOL))

        assert ExclusionReason.NON_POSITIVE_SCORE in {
            r.exclusion_reason for r in result.excluded
        }
        assert 5 not in [r.rank for r in result.eligible]

    def test_zero_score_champion_excluded(self, participants):
        participants[0] = Participant(participants[0].payout_address, 1, 0, "idle")

        result = EligibilityFilter(100).evaluate(participants, compute_schedule(POOL))

        excluded = {r.rank: r.exclusion_reason for r in result.excluded}
        assert excluded[1] == ExclusionReason.NON_POSITIVE_SCORE
        assert [r.rank for r in result.eligible] == list(range(2, 11))

    def test_dust_amounts_excluded(self, participants):
        """With a tiny pool only ranks paying at least the threshold remain."""
        result = EligibilityFilter(dust_threshold=100).evaluate(
            participants, compute_schedule(1_000)
        )

        # 1000 * 4% = 40 and below fall under the threshold
        assert [r.rank for r in result.eligible] == [1, 2, 3]
        assert all(r.amount >= 100 for r in result.eligible)

    def test_duplicate_address_keeps_better_rank(self, participants):
        participants[5] = Participant(
            participants[0].payout_address.upper().replace("0X", "0x"), 6, 700, "alt"
        )

        result = EligibilityFilter(100).evaluate(participants, compute_schedule(POOL))

        excluded = {r.rank: r.exclusion_reason for r in result.excluded}
        assert excluded[6] == ExclusionReason.DUPLICATE_ADDRESS
        assert 1 in [r.rank for r in result.eligible]

    def test_empty_input(self):
        result = EligibilityFilter(100).evaluate([], compute_schedule(POOL))
        assert result.eligible == []
        assert result.total_amount == 0

    def test_output_sorted_even_if_input_is_not(self, participants):
        shuffled = list(reversed(participants))
        eligible = EligibilityFilter(100).filter(shuffled, compute_schedule(POOL))
        assert [r.rank for r in eligible] == list(range(1, 11))


class TestDustThreshold:
    """Test the minimum payout setting."""

    def test_zero_threshold_rejected(self):
        with pytest.raises(ValueError):
            EligibilityFilter(dust_threshold=0)

    def test_zero_setting_rejected(self):
        with pytest.raises(ValidationError):
            Settings(environment="test", dust_threshold_units=0)

    def test_default_threshold(self):
        assert Settings(environment="test", asset_decimals=6).dust_threshold == 100
        assert Settings(environment="test", asset_decimals=2).dust_threshold == 1
