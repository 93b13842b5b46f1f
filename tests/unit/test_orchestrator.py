"""
Tests for the run orchestrator.

Covers:
- Happy path end to end with fakes
- Rejection before funding (auth, input, lock, timeout)
- Funding failure abort
- Partial and total recipient failure
- Recording failure warning
- Notifications
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from podium.models.distribution import FundingReceipt
from podium.models.enums import DistributionStatus, RunState, TransferStatus
from podium.models.transfer import TransferResult
from podium.repositories.distribution_history_repository import (
    RedisDistributionHistoryRepository,
)
from podium.schemas.trigger import parse_trigger_request
from podium.services.admin.authorization import AuthorizationGate
from podium.services.distribution import (
    DistributionConfig,
    DistributionOrchestrator,
    DistributionRecorder,
    PayoutFanOut,
)
from podium.services.notification.core import NotificationDispatcher
from podium.services.reward import EligibilityFilter, RewardCalculator
from podium.utils.distributed_lock import DistributedLock
from podium.utils.exceptions import PoolTransferError

SECRET = "scheduled-trigger-secret"
PIN = "1234"
POOL = 1_000_000_000


def _manual(pin=PIN, timeframe="week", **extra):
    return parse_trigger_request(
        {"timeframe": timeframe, "triggerType": "manual", "credential": pin, **extra}
    )


def _automated(secret=SECRET):
    return parse_trigger_request(
        {"timeframe": "week", "triggerType": "automated", "credential": secret}
    )


class Harness:
    """Orchestrator wired with fakes."""

    def __init__(self, fake_redis, participants, spending_grant, submitter, operator):
        self.pin_store = AsyncMock()
        self.pin_store.get_pin = AsyncMock(return_value=PIN)

        self.ranking = AsyncMock()
        self.ranking.get_ranked_participants = AsyncMock(return_value=participants)
        self.ranking.get_configured_pool_size = AsyncMock(return_value=POOL)

        self.funding = AsyncMock()
        self.funding.operator_address = operator
        self.funding.fund = AsyncMock(
            side_effect=lambda grant, amount: FundingReceipt(amount, ("0xfund",), 0, amount)
        )

        self.grant_store = AsyncMock()
        self.grant_store.get_grant = AsyncMock(return_value=spending_grant)

        self.notifier = AsyncMock()
        self.notifier.notify = AsyncMock()

        self.redis = fake_redis
        self.submitter = submitter
        self.recorder = DistributionRecorder(RedisDistributionHistoryRepository(fake_redis))
        self.orchestrator = DistributionOrchestrator(
            gate=AuthorizationGate(self.pin_store, SECRET),
            ranking_store=self.ranking,
            pool_source=self.ranking,
            calculator=RewardCalculator(6, "USDC"),
            eligibility_filter=EligibilityFilter(100),
            funding=self.funding,
            fanout=PayoutFanOut(submitter, operator, max_concurrency=3),
            recorder=self.recorder,
            notifications=NotificationDispatcher(self.notifier),
            grant_store=self.grant_store,
            run_lock=DistributedLock(fake_redis),
            config=DistributionConfig(
                authorizer_address=spending_grant.authorizer,
                pre_funding_timeout_seconds=1.0,
            ),
        )

    def records(self):
        return [k for k in self.redis.store if k.startswith("reward_distribution:")]


@pytest.fixture
def harness(fake_redis, participants, spending_grant, mock_submitter, operator_address):
    return Harness(fake_redis, participants, spending_grant, mock_submitter, operator_address)


class TestDistributionOrchestrator:
    """Test run state machine."""

    @pytest.mark.asyncio
    async def test_happy_path(self, harness, spending_grant):
        result = await harness.orchestrator.run(_automated())

        assert result.success is True
        assert result.state == RunState.DONE
        assert result.recipient_count == 10
        assert result.successful_count == 10
        assert result.amount_moved == POOL
        assert result.total_amount == POOL
        assert result.record_written is True
        harness.funding.fund.assert_awaited_once_with(spending_grant, POOL)
        assert len(harness.records()) == 1

        (record,) = await harness.recorder.history("week")
        assert record.status == DistributionStatus.COMPLETED
        assert record.recipient_count == 10
        assert record.run_id == result.run_id

    @pytest.mark.asyncio
    async def test_run_lock_released(self, harness):
        await harness.orchestrator.run(_automated())
        assert "reward_distribution_lock:week" not in harness.redis.store

    @pytest.mark.asyncio
    async def test_request_grant_takes_precedence(self, harness, spending_grant):
        grant = spending_grant.model_dump()
        result = await harness.orchestrator.run(_manual(spendPermission=grant))

        assert result.success is True
        harness.grant_store.get_grant.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_pin_rejected_without_side_effects(self, harness):
        result = await harness.orchestrator.run(_manual(pin="9999"))

        assert result.success is False
        assert result.state == RunState.REJECTED
        assert result.error_code == "unauthorized"
        harness.ranking.get_ranked_participants.assert_not_called()
        harness.funding.fund.assert_not_called()
        harness.submitter.submit.assert_not_called()
        assert harness.records() == []

    @pytest.mark.asyncio
    async def test_wrong_secret_rejected(self, harness):
        result = await harness.orchestrator.run(_automated("wrong"))
        assert result.state == RunState.REJECTED
        harness.funding.fund.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_pool_is_invalid_input(self, harness):
        harness.ranking.get_configured_pool_size.return_value = 0

        result = await harness.orchestrator.run(_automated())

        assert result.state == RunState.REJECTED
        assert result.error_code == "invalid_input"
        harness.funding.fund.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_eligible_recipients(self, harness):
        harness.ranking.get_ranked_participants.return_value = []

        result = await harness.orchestrator.run(_automated())

        assert result.success is True
        assert result.state == RunState.DONE
        assert result.recipient_count == 0
        harness.funding.fund.assert_not_called()
        assert harness.records() == []

    @pytest.mark.asyncio
    async def test_ranking_store_failure_rejects(self, harness):
        harness.ranking.get_ranked_participants.side_effect = ConnectionError("down")

        result = await harness.orchestrator.run(_automated())

        assert result.state == RunState.REJECTED
        assert result.error_code == "distribution_error"
        harness.funding.fund.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_in_progress(self, harness):
        harness.redis.store["reward_distribution_lock:week"] = "other-run"

        result = await harness.orchestrator.run(_automated())

        assert result.state == RunState.REJECTED
        assert result.error_code == "run_in_progress"
        harness.funding.fund.assert_not_called()
        assert harness.redis.store["reward_distribution_lock:week"] == "other-run"

    @pytest.mark.asyncio
    async def test_slow_preparation_is_cancelled(self, harness):
        async def slow(timeframe, limit):
            await asyncio.sleep(5)
            return []

        harness.ranking.get_ranked_participants.side_effect = slow

        result = await harness.orchestrator.run(_automated())

        assert result.state == RunState.REJECTED
        assert result.error_code == "cancelled"
        harness.funding.fund.assert_not_called()
        assert "reward_distribution_lock:week" not in harness.redis.store

    @pytest.mark.asyncio
    async def test_funding_failure_aborts(self, harness):
        harness.funding.fund.side_effect = PoolTransferError("spend reverted")

        result = await harness.orchestrator.run(_automated())

        assert result.success is False
        assert result.state == RunState.ABORTED
        assert result.error_code == "pool_transfer_failed"
        assert result.outcomes == ()
        harness.submitter.submit.assert_not_called()

        (record,) = await harness.recorder.history("week")
        assert record.status == DistributionStatus.POOL_TRANSFER_FAILED
        assert record.outcomes == ()
        assert "spend reverted" in record.error

    @pytest.mark.asyncio
    async def test_partial_failure(self, harness, participants):
        failing = participants[2].payout_address

        async def submit(from_address, to_address, amount, memo=None):
            if to_address == failing:
                return TransferResult(success=False, error_detail="reverted")
            return TransferResult(success=True, reference="0xabc")

        harness.submitter.submit.side_effect = submit

        result = await harness.orchestrator.run(_automated())

        assert result.success is True
        assert result.state == RunState.DONE
        assert result.successful_count == 9
        assert result.failed_count == 1
        assert result.amount_moved == POOL - 125_000_000
        assert result.outcomes[2].status == TransferStatus.FAILED

        (record,) = await harness.recorder.history("week")
        assert record.status == DistributionStatus.PARTIAL

    @pytest.mark.asyncio
    async def test_all_recipients_failed(self, harness):
        harness.submitter.submit.side_effect = RuntimeError("nonce too low")

        result = await harness.orchestrator.run(_automated())

        assert result.success is False
        assert result.state == RunState.DONE
        assert result.failed_count == 10
        assert result.error_code == "recipient_transfer_failed"

        (record,) = await harness.recorder.history("week")
        assert record.status == DistributionStatus.FAILED

    @pytest.mark.asyncio
    async def test_recording_failure_is_a_warning(self, harness):
        harness.recorder.store = AsyncMock()
        harness.recorder.store.put = AsyncMock(side_effect=ConnectionError("down"))

        result = await harness.orchestrator.run(_automated())

        assert result.success is True
        assert result.successful_count == 10
        assert result.record_written is False
        assert len(result.warnings) == 1
        assert "down" in result.warnings[0]

    @pytest.mark.asyncio
    async def test_winners_notified(self, harness, participants):
        await harness.orchestrator.run(_automated())
        await harness.orchestrator.wait_for_notifications()

        assert harness.notifier.notify.await_count == 10
        address, message = harness.notifier.notify.await_args_list[0].args
        assert address == participants[0].payout_address
        assert "#1" in message
        assert "400.000 USDC" in message

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_change_result(self, harness):
        harness.notifier.notify.side_effect = RuntimeError("webhook down")

        result = await harness.orchestrator.run(_automated())
        await harness.orchestrator.wait_for_notifications()

        assert result.success is True
        assert result.successful_count == 10

    @pytest.mark.asyncio
    async def test_pin_store_error_rejects(self, harness):
        harness.pin_store.get_pin.side_effect = RuntimeError("store down")

        result = await harness.orchestrator.run(_manual())

        assert result.state == RunState.REJECTED
        assert result.error_code == "unauthorized"
        harness.funding.fund.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_lock_renewed_during_run(self, harness):
        run_lock = harness.orchestrator.run_lock
        with patch.object(run_lock, "lock", wraps=run_lock.lock) as lock:
            await harness.orchestrator.run(_automated())

        assert lock.call_args.kwargs["timeout"] == 900
        assert lock.call_args.kwargs["renew_interval"] == 300

    @pytest.mark.asyncio
    async def test_failed_recipient_does_not_affect_others(self, harness, participants):
        harness.ranking.get_ranked_participants.return_value = participants[:5]
        failing = participants[2].payout_address

        async def submit(from_address, to_address, amount, memo=None):
            if to_address == failing:
                raise RuntimeError("execution reverted")
            return TransferResult(success=True, reference="0xabc")

        harness.submitter.submit.side_effect = submit

        result = await harness.orchestrator.run(_automated())

        (record,) = await harness.recorder.history("week")
        assert record.recipient_count == 5
        assert [o.rank for o in record.outcomes] == [1, 2, 3, 4, 5]
        assert [o.status for o in record.outcomes] == [
            TransferStatus.SUCCESS,
            TransferStatus.SUCCESS,
            TransferStatus.FAILED,
            TransferStatus.SUCCESS,
            TransferStatus.SUCCESS,
        ]
        assert "execution reverted" in record.outcomes[2].error_detail
        assert result.successful_count == 4

    @pytest.mark.asyncio
    async def test_record_keeps_funding_references(self, harness):
        await harness.orchestrator.run(_automated())

        (record,) = await harness.recorder.history("week")
        assert record.funding_references == ("0xfund",)
