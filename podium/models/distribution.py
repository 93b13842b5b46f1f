"""
Distribution run models.

DistributionRecord is the persisted audit entry of one run;
DistributionResult is what the trigger interface returns to the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime

from podium.models.enums import (
    DistributionStatus,
    RunState,
    Timeframe,
    TransferStatus,
    TriggerType,
)
from podium.models.transfer import TransferOutcome


def summarize_outcomes(outcomes: tuple[TransferOutcome, ...]) -> tuple[int, int, int]:
    """Return (successful_count, failed_count, amount_moved)."""
    successful = [o for o in outcomes if o.status == TransferStatus.SUCCESS]
    return (
        len(successful),
        len(outcomes) - len(successful),
        sum(o.amount for o in successful),
    )


@dataclass(frozen=True)
class FundingReceipt:
    """Proof that the operator account was funded for a run."""

    amount: int
    references: tuple[str, ...]
    balance_before: int
    balance_after: int


@dataclass(frozen=True)
class DistributionRecord:
    """Immutable audit record written once per run."""

    run_id: str
    timestamp: datetime
    timeframe: Timeframe
    trigger_type: TriggerType
    status: DistributionStatus
    total_amount: int
    recipient_count: int
    outcomes: tuple[TransferOutcome, ...] = ()
    error: str | None = None
    funding_references: tuple[str, ...] = ()

    @property
    def amount_moved(self) -> int:
        return summarize_outcomes(self.outcomes)[2]

    def to_dict(self) -> dict:
        return {
            "runId": self.run_id,
            "timestamp": self.timestamp.isoformat(),
            "timeframe": self.timeframe.value,
            "triggerType": self.trigger_type.value,
            "status": self.status.value,
            "totalAmount": self.total_amount,
            "recipientCount": self.recipient_count,
            "amountMoved": self.amount_moved,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "error": self.error,
            "fundingReferences": list(self.funding_references),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DistributionRecord":
        """
        Rebuild a record from its stored JSON form.

        Raises:
            KeyError, ValueError, TypeError: If the stored entry is malformed
        """
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            raise ValueError(f"Timestamp without UTC offset: {data['timestamp']}")

        return cls(
            run_id=data["runId"],
            timestamp=timestamp,
            timeframe=Timeframe(data["timeframe"]),
            trigger_type=TriggerType(data["triggerType"]),
            status=DistributionStatus(data["status"]),
            total_amount=int(data["totalAmount"]),
            recipient_count=int(data["recipientCount"]),
            outcomes=tuple(
                TransferOutcome.from_dict(item) for item in data.get("outcomes", [])
            ),
            error=data.get("error"),
            funding_references=tuple(data.get("fundingReferences", [])),
        )


@dataclass(frozen=True)
class DistributionResult:
    """Aggregate outcome of one orchestrator run."""

    success: bool
    state: RunState
    timeframe: str
    trigger_type: str
    run_id: str | None = None
    total_amount: int = 0
    outcomes: tuple[TransferOutcome, ...] = ()
    warnings: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None
    error_code: str | None = None
    record_written: bool = False

    @property
    def successful_count(self) -> int:
        return summarize_outcomes(self.outcomes)[0]

    @property
    def failed_count(self) -> int:
        return summarize_outcomes(self.outcomes)[1]

    @property
    def amount_moved(self) -> int:
        return summarize_outcomes(self.outcomes)[2]

    @property
    def recipient_count(self) -> int:
        return len(self.outcomes)

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "state": self.state.value,
            "runId": self.run_id,
            "timeframe": self.timeframe,
            "triggerType": self.trigger_type,
            "totalAmount": self.total_amount,
            "recipientCount": self.recipient_count,
            "successfulCount": self.successful_count,
            "failedCount": self.failed_count,
            "amountMoved": self.amount_moved,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "warnings": list(self.warnings),
            "recordWritten": self.record_written,
        }
        if self.error:
            data["error"] = self.error
            data["errorCode"] = self.error_code
        return data
