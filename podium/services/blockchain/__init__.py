"""
Blockchain adapters.

- transaction_sender: signs and sends operator transactions (nonce lock, receipts)
- token_transfer: ERC-20 payouts and balance reads
- spend_permission: spend permission calls for pool funding
"""

from podium.services.blockchain.spend_permission import (
    SpendPermissionCallPreparer,
    Web3CallExecutor,
)
from podium.services.blockchain.token_transfer import Web3TransferSubmitter
from podium.services.blockchain.transaction_sender import OperatorTransactionSender

__all__ = [
    "OperatorTransactionSender",
    "SpendPermissionCallPreparer",
    "Web3CallExecutor",
    "Web3TransferSubmitter",
]
