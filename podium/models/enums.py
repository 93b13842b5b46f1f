"""Enumerations shared by the distribution engine."""

from enum import StrEnum


class Timeframe(StrEnum):
    """Ranking window over which scores are aggregated."""

    WEEK = "week"
    MONTH = "month"
    ALL_TIME = "all-time"


class TriggerType(StrEnum):
    """Who started a distribution run."""

    MANUAL = "manual"
    AUTOMATED = "automated"


class TierName(StrEnum):
    """Qualitative payout bracket."""

    CHAMPION = "champion"
    ELITE = "elite"
    COMPETITIVE = "competitive"
    PARTICIPANT = "participant"


class ExclusionReason(StrEnum):
    """Why a ranked participant does not receive a payout."""

    RANK_OUT_OF_RANGE = "rank_out_of_range"
    INVALID_ADDRESS = "invalid_address"
    NON_POSITIVE_SCORE = "non_positive_score"
    BELOW_DUST_THRESHOLD = "below_dust_threshold"
    DUPLICATE_ADDRESS = "duplicate_address"


class TransferStatus(StrEnum):
    """Terminal status of one recipient transfer."""

    SUCCESS = "success"
    FAILED = "failed"


class DistributionStatus(StrEnum):
    """Outcome stored on a distribution record."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    POOL_TRANSFER_FAILED = "pool_transfer_failed"


class AuthorizationState(StrEnum):
    """Authorization gate states."""

    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    REJECTED = "rejected"


class RunState(StrEnum):
    """Run orchestrator state machine."""

    AUTHORIZING = "authorizing"
    COMPUTING_SCHEDULE = "computing_schedule"
    FUNDING_POOL = "funding_pool"
    DISTRIBUTING = "distributing"
    RECORDING = "recording"
    DONE = "done"
    REJECTED = "rejected"
    ABORTED = "aborted"
