"""
Payout fan-out.

Issues one transfer per eligible recipient from the operator account.
Each transfer is isolated: a failure becomes a failed outcome for that
recipient only and never stops the others.
"""

import asyncio
from collections.abc import Sequence

from loguru import logger

from podium.models.enums import TransferStatus
from podium.models.participant import EligibleRecipient
from podium.models.transfer import TransferOutcome
from podium.services.interfaces import TransferSubmitter
from podium.utils.exceptions import RecipientTransferError
from podium.utils.security import mask_address, mask_tx_hash


class PayoutFanOut:
    """Bounded-concurrency recipient transfers with per-recipient isolation."""

    def __init__(
        self,
        submitter: TransferSubmitter,
        operator_address: str,
        max_concurrency: int = 3,
        app_name: str = "Podium",
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.submitter = submitter
        self.operator_address = operator_address
        self.max_concurrency = max_concurrency
        self.app_name = app_name

    def memo_for(self, timeframe: str, rank: int) -> str:
        return f"{self.app_name} {timeframe} reward - Rank #{rank}"

    async def distribute(
        self, recipients: Sequence[EligibleRecipient], timeframe: str
    ) -> list[TransferOutcome]:
        """
        Pay every recipient once.

        Args:
            recipients: Eligible recipients in rank order
            timeframe: Timeframe label used in transfer memos

        Returns:
            Exactly one outcome per recipient, in rank order
        """
        if not recipients:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(recipient: EligibleRecipient) -> TransferOutcome:
            async with semaphore:
                return await self._pay(recipient, timeframe)

        outcomes = await asyncio.gather(*(_bounded(r) for r in recipients))
        ordered = sorted(outcomes, key=lambda outcome: outcome.rank)

        succeeded = sum(1 for outcome in ordered if outcome.succeeded)
        logger.info(
            f"Fan-out finished for {timeframe}: "
            f"{succeeded} succeeded, {len(ordered) - succeeded} failed"
        )
        return ordered

    async def _pay(self, recipient: EligibleRecipient, timeframe: str) -> TransferOutcome:
        try:
            result = await self.submitter.submit(
                self.operator_address,
                recipient.payout_address,
                recipient.amount,
                memo=self.memo_for(timeframe, recipient.rank),
            )
        except Exception as e:
            error = RecipientTransferError(
                f"Transfer to rank #{recipient.rank} raised: {e}"
            )
            logger.error(f"{error} ({mask_address(recipient.payout_address)})")
            return self._failed(recipient, str(error))

        if not result.success:
            error = RecipientTransferError(
                f"Transfer to rank #{recipient.rank} failed: "
                f"{result.error_detail or 'unknown error'}"
            )
            logger.warning(f"{error} ({mask_address(recipient.payout_address)})")
            return self._failed(recipient, str(error))

        logger.info(
            f"Rank #{recipient.rank} paid {recipient.amount} to "
            f"{mask_address(recipient.payout_address)}, "
            f"ref: {mask_tx_hash(result.reference or '')}"
        )
        return TransferOutcome(
            payout_address=recipient.payout_address,
            rank=recipient.rank,
            amount=recipient.amount,
            status=TransferStatus.SUCCESS,
            transfer_reference=result.reference,
        )

    @staticmethod
    def _failed(recipient: EligibleRecipient, detail: str) -> TransferOutcome:
        return TransferOutcome(
            payout_address=recipient.payout_address,
            rank=recipient.rank,
            amount=recipient.amount,
            status=TransferStatus.FAILED,
            error_detail=detail,
        )
