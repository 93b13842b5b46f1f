"""
Tests for spend permission call encoding.

Covers:
- Call sequence with and without a signature
- Selector and argument encoding
- Executor stop-on-failure
"""

from unittest.mock import AsyncMock

import pytest
from eth_abi import decode
from eth_utils import function_signature_to_4byte_selector

from podium.config.constants import SPEND_PERMISSION_MANAGER_ADDRESS
from podium.models.transfer import PreparedCall
from podium.services.blockchain.core_constants import (
    APPROVE_WITH_SIGNATURE_SIGNATURE,
    SPEND_PERMISSION_TUPLE,
    SPEND_SIGNATURE,
)
from podium.services.blockchain.spend_permission import (
    SpendPermissionCallPreparer,
    Web3CallExecutor,
)


def _selector(signature):
    return "0x" + function_signature_to_4byte_selector(signature).hex()


class TestSpendPermissionCallPreparer:
    """Test funding call preparation."""

    @pytest.mark.asyncio
    async def test_signed_grant_approves_then_spends(self, spending_grant):
        preparer = SpendPermissionCallPreparer(SPEND_PERMISSION_MANAGER_ADDRESS)

        calls = await preparer.prepare_calls(spending_grant, 1_000_000)

        assert len(calls) == 2
        assert calls[0].data.startswith(_selector(APPROVE_WITH_SIGNATURE_SIGNATURE))
        assert calls[1].data.startswith(_selector(SPEND_SIGNATURE))
        assert all(
            call.to.lower() == SPEND_PERMISSION_MANAGER_ADDRESS for call in calls
        )

    @pytest.mark.asyncio
    async def test_unsigned_grant_only_spends(self, spending_grant):
        grant = spending_grant.model_copy(update={"signature": None})
        preparer = SpendPermissionCallPreparer(SPEND_PERMISSION_MANAGER_ADDRESS)

        (call,) = await preparer.prepare_calls(grant, 1_000_000)

        assert call.data.startswith(_selector(SPEND_SIGNATURE))

    @pytest.mark.asyncio
    async def test_spend_arguments(self, spending_grant):
        preparer = SpendPermissionCallPreparer(SPEND_PERMISSION_MANAGER_ADDRESS)

        calls = await preparer.prepare_calls(spending_grant, 1_234_567)
        payload = bytes.fromhex(calls[-1].data[10:])
        permission, amount = decode([SPEND_PERMISSION_TUPLE, "uint160"], payload)

        assert amount == 1_234_567
        assert permission[0].lower() == spending_grant.authorizer
        assert permission[1].lower() == spending_grant.operator
        assert permission[3] == spending_grant.cap_amount
        assert permission[4] == 7 * 86_400
        assert permission[6] == spending_grant.end

    @pytest.mark.asyncio
    async def test_amount_out_of_range(self, spending_grant):
        preparer = SpendPermissionCallPreparer(SPEND_PERMISSION_MANAGER_ADDRESS)
        with pytest.raises(ValueError):
            await preparer.prepare_calls(spending_grant, 0)


class TestWeb3CallExecutor:
    """Test sequential call execution."""

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self):
        sender = AsyncMock()
        sender.send_transaction = AsyncMock(
            side_effect=[
                {"success": True, "tx_hash": "0xaaa", "error": None},
                {"success": False, "tx_hash": "0xbbb", "error": "Transaction reverted"},
                {"success": True, "tx_hash": "0xccc", "error": None},
            ]
        )
        calls = [
            PreparedCall(to=SPEND_PERMISSION_MANAGER_ADDRESS, data="0x01"),
            PreparedCall(to=SPEND_PERMISSION_MANAGER_ADDRESS, data="0x02"),
            PreparedCall(to=SPEND_PERMISSION_MANAGER_ADDRESS, data="0x03"),
        ]

        result = await Web3CallExecutor(sender).execute(calls)

        assert result.success is False
        assert result.references == ("0xaaa", "0xbbb")
        assert "Call 2/3" in result.error_detail
        assert sender.send_transaction.await_count == 2

    @pytest.mark.asyncio
    async def test_all_calls_succeed(self):
        sender = AsyncMock()
        sender.send_transaction = AsyncMock(
            return_value={"success": True, "tx_hash": "0xaaa", "error": None}
        )
        calls = [PreparedCall(to=SPEND_PERMISSION_MANAGER_ADDRESS, data="0x01")] * 2

        result = await Web3CallExecutor(sender).execute(calls)

        assert result.success is True
        assert len(result.references) == 2
