"""
Spend permission funding calls.

The authorizer signs a spend permission off-chain that lets the operator
pull up to `allowance` tokens per period from the authorizer's account.
Funding a run is one or two calls to the SpendPermissionManager contract:
`approveWithSignature` (sent whenever the grant carries a signature) followed
by `spend`.
"""

from collections.abc import Sequence

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address
from loguru import logger

from podium.models.spending_grant import SpendingGrant
from podium.models.transfer import CallExecutionResult, PreparedCall
from podium.utils.security import mask_address

from .core_constants import (
    APPROVE_WITH_SIGNATURE_SIGNATURE,
    DEFAULT_CALL_GAS_LIMIT,
    MAX_UINT160,
    SPEND_PERMISSION_TUPLE,
    SPEND_SIGNATURE,
)
from .transaction_sender import OperatorTransactionSender


def encode_call(signature: str, arg_types: list[str], args: list) -> str:
    """
    ABI-encode a function call.

    Args:
        signature: Canonical function signature, e.g. "spend((...),uint160)"
        arg_types: ABI types of the arguments
        args: Argument values

    Returns:
        0x-prefixed calldata
    """
    selector = function_signature_to_4byte_selector(signature)
    return "0x" + (selector + encode(arg_types, args)).hex()


def permission_tuple(grant: SpendingGrant) -> tuple:
    """SpendPermission struct values in ABI order."""
    return (
        to_checksum_address(grant.authorizer),
        to_checksum_address(grant.operator),
        to_checksum_address(grant.asset),
        grant.cap_amount,
        grant.period_seconds,
        grant.window_start,
        grant.window_end,
        grant.salt,
        bytes.fromhex(grant.extra_data[2:]),
    )


class SpendPermissionCallPreparer:
    """Builds SpendPermissionManager calls for a grant."""

    def __init__(self, manager_address: str) -> None:
        self.manager_address = to_checksum_address(manager_address)

    async def prepare_calls(
        self, grant: SpendingGrant, amount: int
    ) -> list[PreparedCall]:
        """
        Calls that move `amount` from the authorizer to the operator.

        Raises:
            ValueError: If amount does not fit the allowance width
        """
        if amount <= 0 or amount > MAX_UINT160:
            raise ValueError(f"Spend amount out of range: {amount}")

        permission = permission_tuple(grant)
        calls = []
        if grant.signature:
            calls.append(
                PreparedCall(
                    to=self.manager_address,
                    data=encode_call(
                        APPROVE_WITH_SIGNATURE_SIGNATURE,
                        [SPEND_PERMISSION_TUPLE, "bytes"],
                        [permission, bytes.fromhex(grant.signature[2:])],
                    ),
                )
            )
        calls.append(
            PreparedCall(
                to=self.manager_address,
                data=encode_call(
                    SPEND_SIGNATURE,
                    [SPEND_PERMISSION_TUPLE, "uint160"],
                    [permission, amount],
                ),
            )
        )
        logger.debug(
            f"Prepared {len(calls)} spend permission calls for "
            f"{mask_address(grant.authorizer)}, amount={amount}"
        )
        return calls


class Web3CallExecutor:
    """Executes prepared calls from the operator account, in order."""

    def __init__(self, sender: OperatorTransactionSender) -> None:
        self.sender = sender

    async def execute(self, calls: Sequence[PreparedCall]) -> CallExecutionResult:
        """
        Send each call and wait for its receipt. Stops at the first failure.
        """
        references: list[str] = []
        for index, call in enumerate(calls):
            result = await self.sender.send_transaction(
                {"to": to_checksum_address(call.to), "data": call.data, "value": call.value},
                fallback_gas=DEFAULT_CALL_GAS_LIMIT,
            )
            if result["tx_hash"]:
                references.append(result["tx_hash"])
            if not result["success"]:
                return CallExecutionResult(
                    success=False,
                    references=tuple(references),
                    error_detail=f"Call {index + 1}/{len(calls)} failed: {result['error']}",
                )
        return CallExecutionResult(success=True, references=tuple(references))
