"""Transfer request and outcome models."""

from dataclasses import dataclass, field

from podium.models.enums import TransferStatus


@dataclass(frozen=True)
class TransferResult:
    """Response of the external transfer primitive."""

    success: bool
    reference: str | None = None
    error_detail: str | None = None


@dataclass(frozen=True)
class PreparedCall:
    """One executable call derived from a spending grant."""

    to: str
    data: str
    value: int = 0


@dataclass(frozen=True)
class CallExecutionResult:
    """Result of executing prepared calls from the operator account."""

    success: bool
    references: tuple[str, ...] = field(default_factory=tuple)
    error_detail: str | None = None


@dataclass(frozen=True)
class TransferOutcome:
    """Terminal result of one attempted recipient transfer."""

    payout_address: str
    rank: int
    amount: int
    status: TransferStatus
    transfer_reference: str | None = None
    error_detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == TransferStatus.SUCCESS

    def to_dict(self) -> dict:
        return {
            "payoutAddress": self.payout_address,
            "rank": self.rank,
            "amount": self.amount,
            "status": self.status.value,
            "transferReference": self.transfer_reference,
            "errorDetail": self.error_detail,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TransferOutcome":
        return cls(
            payout_address=data["payoutAddress"],
            rank=int(data["rank"]),
            amount=int(data["amount"]),
            status=TransferStatus(data["status"]),
            transfer_reference=data.get("transferReference"),
            error_detail=data.get("errorDetail"),
        )
