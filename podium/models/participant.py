"""Leaderboard participant and derived recipient models."""

from dataclasses import dataclass

from podium.models.enums import ExclusionReason


@dataclass(frozen=True)
class Participant:
    """A ranked leaderboard entry. Read-only to the engine."""

    payout_address: str
    rank: int
    score: int
    display_name: str
    fid: int | None = None


@dataclass(frozen=True)
class EligibleRecipient:
    """A participant evaluated for one run, with an exclusion reason if dropped."""

    payout_address: str
    rank: int
    amount: int
    display_name: str = ""
    exclusion_reason: ExclusionReason | None = None

    @property
    def is_eligible(self) -> bool:
        return self.exclusion_reason is None
