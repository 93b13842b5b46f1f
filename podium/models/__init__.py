"""
Domain models for the reward distribution engine.

Value objects are frozen dataclasses; the externally supplied spending
grant is a pydantic model because it is parsed from untrusted JSON.
"""

from podium.models.distribution import (
    DistributionRecord,
    DistributionResult,
    FundingReceipt,
)
from podium.models.enums import (
    AuthorizationState,
    DistributionStatus,
    ExclusionReason,
    RunState,
    TierName,
    Timeframe,
    TransferStatus,
    TriggerType,
)
from podium.models.participant import EligibleRecipient, Participant
from podium.models.reward import PayoutSchedule, RewardTier, ScheduleEntry
from podium.models.spending_grant import SpendingGrant
from podium.models.transfer import (
    CallExecutionResult,
    PreparedCall,
    TransferOutcome,
    TransferResult,
)

__all__ = [
    "AuthorizationState",
    "CallExecutionResult",
    "DistributionRecord",
    "DistributionResult",
    "DistributionStatus",
    "EligibleRecipient",
    "ExclusionReason",
    "FundingReceipt",
    "Participant",
    "PayoutSchedule",
    "PreparedCall",
    "RewardTier",
    "RunState",
    "ScheduleEntry",
    "SpendingGrant",
    "TierName",
    "Timeframe",
    "TransferOutcome",
    "TransferResult",
    "TransferStatus",
    "TriggerType",
]
