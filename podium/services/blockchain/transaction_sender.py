"""
Operator transaction sender.

This module handles:
- Nonce management under an async lock
- Gas estimation with a safety multiplier
- Signing, sending and waiting for receipts in a thread pool

Web3 here is the synchronous client; every RPC call runs in an executor so
the event loop is never blocked.
"""

import asyncio
from concurrent.futures import Executor
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from loguru import logger
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from podium.utils.exceptions import must_log
from podium.utils.security import mask_address, mask_tx_hash

from .core_constants import GAS_LIMIT_MULTIPLIER, NONCE_STUCK_THRESHOLD


class OperatorTransactionSender:
    """
    Sends transactions from the operator account.
    """

    def __init__(
        self,
        w3: Web3,
        private_key: str,
        receipt_timeout: float = 120,
        executor: Executor | None = None,
    ) -> None:
        """
        Initialize transaction sender.

        Args:
            w3: Synchronous Web3 instance
            private_key: Operator private key
            receipt_timeout: Seconds to wait for a receipt
            executor: Thread pool executor (default loop executor if None)
        """
        self.w3 = w3
        self.account: LocalAccount = Account.from_key(private_key)
        self.receipt_timeout = receipt_timeout
        self.executor = executor

        # Nonce lock for preventing race conditions in parallel transactions
        self._nonce_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self.account.address

    async def run_sync(self, func: Any, *args: Any) -> Any:
        """Run a blocking Web3 call in the executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, lambda: func(*args))

    def _get_safe_nonce(self) -> int:
        """
        Get nonce with stuck transaction detection.

        SYNC method - runs in executor.
        """
        pending_nonce = self.w3.eth.get_transaction_count(self.address, "pending")
        confirmed_nonce = self.w3.eth.get_transaction_count(self.address, "latest")

        if pending_nonce > confirmed_nonce + NONCE_STUCK_THRESHOLD:
            logger.warning(
                f"Possible stuck transactions detected: "
                f"pending={pending_nonce}, confirmed={confirmed_nonce}, "
                f"stuck={pending_nonce - confirmed_nonce}"
            )
        return pending_nonce

    def _sign_and_send(self, tx: dict[str, Any], nonce: int, fallback_gas: int) -> str:
        """SYNC method - runs in executor."""
        tx = dict(tx)
        tx["from"] = self.address
        tx["nonce"] = nonce
        tx["chainId"] = self.w3.eth.chain_id
        tx.setdefault("value", 0)
        tx.setdefault("gasPrice", self.w3.eth.gas_price)

        if "gas" not in tx:
            try:
                tx["gas"] = int(self.w3.eth.estimate_gas(tx) * GAS_LIMIT_MULTIPLIER)
            except (Web3Exception, ContractLogicError) as e:
                logger.warning(f"Gas estimation failed: {e}")
                tx["gas"] = fallback_gas

        logger.info(
            f"Sending tx: to={mask_address(tx.get('to'))}, nonce={nonce}, "
            f"gas_limit={tx['gas']}, gas_price={tx['gasPrice']} wei"
        )
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def send_transaction(
        self, tx: dict[str, Any], fallback_gas: int
    ) -> dict[str, Any]:
        """
        Sign, send and confirm one transaction.

        Args:
            tx: Transaction fields (to, data, value; gas optional)
            fallback_gas: Gas limit used if estimation fails

        Returns:
            Dict with success, tx_hash, error
        """
        try:
            # Nonce and broadcast stay together so parallel sends cannot reuse a nonce
            async with self._nonce_lock:
                nonce = await self.run_sync(self._get_safe_nonce)
                tx_hash = await self.run_sync(self._sign_and_send, tx, nonce, fallback_gas)
        except Exception as e:
            if must_log(e):
                logger.error(f"Failed to send transaction: {e}")
            else:
                logger.exception(f"Unexpected error sending transaction: {e}")
            return {"success": False, "tx_hash": None, "error": str(e)}

        try:
            receipt = await self.run_sync(
                lambda: self.w3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self.receipt_timeout
                )
            )
        except TimeExhausted:
            logger.warning(f"Receipt timeout for {mask_tx_hash(tx_hash)}")
            return {
                "success": False,
                "tx_hash": tx_hash,
                "error": f"Transaction {tx_hash} not confirmed within {self.receipt_timeout}s",
            }
        except Exception as e:
            if must_log(e):
                logger.error(f"Failed to get receipt for {mask_tx_hash(tx_hash)}: {e}")
            else:
                logger.exception(
                    f"Unexpected error waiting for {mask_tx_hash(tx_hash)}: {e}"
                )
            return {"success": False, "tx_hash": tx_hash, "error": str(e)}

        if receipt["status"] != 1:
            logger.error(f"Transaction reverted: {mask_tx_hash(tx_hash)}")
            return {"success": False, "tx_hash": tx_hash, "error": "Transaction reverted"}

        logger.info(
            f"Transaction confirmed: {mask_tx_hash(tx_hash)} "
            f"in block {receipt['blockNumber']}"
        )
        return {"success": True, "tx_hash": tx_hash, "error": None}
