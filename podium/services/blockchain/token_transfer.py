"""
ERC-20 payouts.

Implements the transfer submission primitive (operator to recipient) and
balance reads for the payout asset.
"""

from eth_utils import to_checksum_address
from loguru import logger

from podium.models.transfer import TransferResult
from podium.utils.security import mask_address
from podium.utils.validation import same_address

from .core_constants import DEFAULT_TRANSFER_GAS_LIMIT, ERC20_ABI
from .transaction_sender import OperatorTransactionSender


class Web3TransferSubmitter:
    """ERC-20 `transfer` from the operator account."""

    def __init__(self, sender: OperatorTransactionSender, asset_address: str) -> None:
        """
        Initialize transfer submitter.

        Args:
            sender: Operator transaction sender
            asset_address: ERC-20 token contract address
        """
        self.sender = sender
        self.asset_address = to_checksum_address(asset_address)
        self.contract = sender.w3.eth.contract(address=self.asset_address, abi=ERC20_ABI)

    async def submit(
        self,
        from_address: str,
        to_address: str,
        amount: int,
        memo: str | None = None,
    ) -> TransferResult:
        """
        Send `amount` smallest units to `to_address`.

        The memo is logged only; ERC-20 transfers carry no memo field.
        """
        if not same_address(from_address, self.sender.address):
            return TransferResult(
                success=False,
                error_detail=f"Cannot sign for {mask_address(from_address)}",
            )
        if amount <= 0:
            return TransferResult(success=False, error_detail="Amount must be positive")

        try:
            data = self._encode_transfer(to_checksum_address(to_address), amount)
        except ValueError as e:
            return TransferResult(success=False, error_detail=str(e))

        if memo:
            logger.info(f"{memo}: {amount} to {mask_address(to_address)}")

        result = await self.sender.send_transaction(
            {"to": self.asset_address, "data": data},
            fallback_gas=DEFAULT_TRANSFER_GAS_LIMIT,
        )
        if not result["success"]:
            return TransferResult(
                success=False,
                reference=result["tx_hash"],
                error_detail=result["error"],
            )
        return TransferResult(success=True, reference=result["tx_hash"])

    async def get_balance(self, address: str) -> int:
        """
        Token balance in smallest units.

        Raises:
            Web3Exception: On RPC failure
        """
        checksum = to_checksum_address(address)
        balance = await self.sender.run_sync(
            self.contract.functions.balanceOf(checksum).call
        )
        logger.debug(f"Balance of {mask_address(address)}: {balance}")
        return int(balance)

    def _encode_transfer(self, to_address: str, amount: int) -> str:
        return self.contract.encode_abi("transfer", args=[to_address, amount])
