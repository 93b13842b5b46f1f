"""
Funding-pool transfer.

Moves the run's aggregate payout amount from the authorizer's account into
the operator account using a delegated spending grant, then verifies the
operator balance actually increased before any recipient is paid.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from loguru import logger

from podium.models.distribution import FundingReceipt
from podium.models.spending_grant import SpendingGrant
from podium.services.interfaces import BalanceReader, CallExecutor, GrantCallPreparer
from podium.utils.exceptions import PoolTransferError
from podium.utils.security import mask_address, mask_tx_hash
from podium.utils.validation import same_address


class FundingPoolTransfer:
    """Authorizer to operator funding step of a distribution run."""

    def __init__(
        self,
        call_preparer: GrantCallPreparer,
        call_executor: CallExecutor,
        balance_reader: BalanceReader,
        operator_address: str,
        asset_address: str,
        chain_id: int,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize funding transfer.

        Args:
            call_preparer: Derives executable calls from a grant
            call_executor: Executes calls from the operator account
            balance_reader: Reads the operator's asset balance
            operator_address: Account the grant must name as spender
            asset_address: Asset the grant must cover
            chain_id: Chain the grant must be scoped to
            clock: Current time source (UTC)
        """
        self.call_preparer = call_preparer
        self.call_executor = call_executor
        self.balance_reader = balance_reader
        self.operator_address = operator_address
        self.asset_address = asset_address
        self.chain_id = chain_id
        self.clock = clock or (lambda: datetime.now(UTC))

    def check_grant(self, grant: SpendingGrant | None, amount: int) -> None:
        """
        Validate a grant against the run without making any external call.

        Raises:
            PoolTransferError: If the grant cannot fund `amount`
        """
        if amount <= 0:
            raise PoolTransferError(f"Funding amount must be positive, got {amount}")
        if grant is None:
            raise PoolTransferError("No spending grant available for funding")
        if not same_address(grant.operator, self.operator_address):
            raise PoolTransferError(
                f"Grant operator {mask_address(grant.operator)} "
                f"does not match operator account"
            )
        if not same_address(grant.asset, self.asset_address):
            raise PoolTransferError(
                f"Grant asset {mask_address(grant.asset)} does not match payout asset"
            )
        if grant.chain_scope != self.chain_id:
            raise PoolTransferError(
                f"Grant is scoped to chain {grant.chain_scope}, expected {self.chain_id}"
            )
        if not grant.is_active(self.clock()):
            raise PoolTransferError("Spending grant is outside its validity window")
        if amount > grant.cap_amount:
            raise PoolTransferError(
                f"Funding amount {amount} exceeds grant cap {grant.cap_amount}"
            )

    async def fund(self, grant: SpendingGrant | None, amount: int) -> FundingReceipt:
        """
        Move `amount` from the authorizer to the operator account.

        Args:
            grant: Delegated spending grant
            amount: Aggregate payout amount in smallest units

        Returns:
            FundingReceipt with call references and observed balances

        Raises:
            PoolTransferError: On any pre-check, execution or verification failure
        """
        self.check_grant(grant, amount)

        try:
            balance_before = await self.balance_reader.get_balance(self.operator_address)
            calls = list(await self.call_preparer.prepare_calls(grant, amount))
        except PoolTransferError:
            raise
        except Exception as e:
            logger.error(f"Funding preparation failed: {e}")
            raise PoolTransferError(f"Funding preparation failed: {e}") from e

        if not calls:
            raise PoolTransferError("Spending grant produced no executable calls")

        logger.info(
            f"Funding operator {mask_address(self.operator_address)} with {amount} "
            f"from {mask_address(grant.authorizer)} ({len(calls)} calls)"
        )

        try:
            result = await self.call_executor.execute(calls)
        except Exception as e:
            logger.error(f"Funding call execution raised: {e}")
            raise PoolTransferError(f"Funding call execution failed: {e}") from e

        if not result.success:
            raise PoolTransferError(
                f"Funding call execution failed: {result.error_detail or 'unknown error'}"
            )

        try:
            balance_after = await self.balance_reader.get_balance(self.operator_address)
        except Exception as e:
            logger.error(f"Operator balance re-check failed: {e}")
            raise PoolTransferError(f"Could not verify operator balance: {e}") from e

        if balance_after - balance_before < amount:
            raise PoolTransferError(
                f"Operator balance increased by {balance_after - balance_before}, "
                f"expected at least {amount}"
            )

        logger.success(
            f"Operator funded with {amount}, "
            f"refs: {', '.join(mask_tx_hash(ref) for ref in result.references)}"
        )
        return FundingReceipt(
            amount=amount,
            references=tuple(result.references),
            balance_before=balance_before,
            balance_after=balance_after,
        )
