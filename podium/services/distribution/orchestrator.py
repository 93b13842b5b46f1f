"""
Run orchestrator.

Drives one distribution run through
AUTHORIZING -> COMPUTING_SCHEDULE -> FUNDING_POOL -> DISTRIBUTING -> RECORDING -> DONE.

Anything that fails before funding rejects the run with no side effects.
A funding failure aborts the run before any recipient is paid. Once funds
have moved the caller always gets per-recipient outcomes back, even when
recording the run fails afterwards.
"""

import asyncio
import uuid
from collections.abc import Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from podium.config.constants import DISTRIBUTION_LOCK_KEY
from podium.models.distribution import DistributionRecord, DistributionResult
from podium.models.enums import DistributionStatus, RunState, Timeframe, TriggerType
from podium.models.participant import EligibleRecipient
from podium.models.spending_grant import SpendingGrant
from podium.models.transfer import TransferOutcome
from podium.services.admin.authorization import AuthorizationGate
from podium.services.distribution.fanout import PayoutFanOut
from podium.services.distribution.funding import FundingPoolTransfer
from podium.services.distribution.recorder import DistributionRecorder
from podium.services.interfaces import GrantStore, PoolSizeSource, RankingStore
from podium.services.notification.core import NotificationDispatcher
from podium.services.reward.eligibility import EligibilityFilter
from podium.services.reward.reward_calculator import RewardCalculator
from podium.utils.distributed_lock import DistributedLock, LockNotAcquiredError
from podium.utils.exceptions import (
    DistributionError,
    InvalidInputError,
    PoolTransferError,
    RecipientTransferError,
    RecordingError,
    RunCancelledError,
    RunInProgressError,
)
from podium.utils.security import mask_address


@dataclass(frozen=True)
class DistributionConfig:
    """Per-deployment run parameters."""

    authorizer_address: str | None = None
    leaderboard_fetch_limit: int = 15
    pre_funding_timeout_seconds: float = 30.0
    run_lock_ttl_seconds: int = 900

    @classmethod
    def from_settings(cls, config: Any) -> "DistributionConfig":
        return cls(
            authorizer_address=config.authorizer_address,
            leaderboard_fetch_limit=config.leaderboard_fetch_limit,
            pre_funding_timeout_seconds=config.pre_funding_timeout_seconds,
            run_lock_ttl_seconds=config.run_lock_ttl_seconds,
        )


@dataclass(frozen=True)
class _RunPlan:
    run_id: str
    timeframe: Timeframe
    trigger_type: TriggerType
    total_pool: int
    recipients: tuple[EligibleRecipient, ...]
    grant: SpendingGrant | None

    @property
    def total_amount(self) -> int:
        return sum(recipient.amount for recipient in self.recipients)


class DistributionOrchestrator:
    """Runs reward distributions. Holds no state between runs."""

    def __init__(
        self,
        gate: AuthorizationGate,
        ranking_store: RankingStore,
        pool_source: PoolSizeSource,
        calculator: RewardCalculator,
        eligibility_filter: EligibilityFilter,
        funding: FundingPoolTransfer,
        fanout: PayoutFanOut,
        recorder: DistributionRecorder,
        notifications: NotificationDispatcher | None = None,
        grant_store: GrantStore | None = None,
        run_lock: DistributedLock | None = None,
        config: DistributionConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.gate = gate
        self.ranking_store = ranking_store
        self.pool_source = pool_source
        self.calculator = calculator
        self.eligibility_filter = eligibility_filter
        self.funding = funding
        self.fanout = fanout
        self.recorder = recorder
        self.notifications = notifications or NotificationDispatcher(None)
        self.grant_store = grant_store
        self.run_lock = run_lock or DistributedLock()
        self.config = config or DistributionConfig()
        self.clock = clock or (lambda: datetime.now(UTC))

    async def run(self, request: Any) -> DistributionResult:
        """
        Execute one distribution run.

        Args:
            request: Validated ManualTriggerRequest or AutomatedTriggerRequest

        Returns:
            DistributionResult. Pre-funding failures come back as REJECTED,
            funding failures as ABORTED, everything else as DONE.
        """
        run_id = uuid.uuid4().hex[:16]
        timeframe = Timeframe(request.timeframe)
        trigger_type = request.trigger

        logger.info(
            f"Distribution run {run_id} started: timeframe={timeframe}, trigger={trigger_type}"
        )

        try:
            async with AsyncExitStack() as stack:
                try:
                    plan = await asyncio.wait_for(
                        self._prepare(request, run_id, timeframe, trigger_type, stack),
                        timeout=self.config.pre_funding_timeout_seconds,
                    )
                except asyncio.TimeoutError as e:
                    raise RunCancelledError(
                        "Distribution cancelled: preparation exceeded "
                        f"{self.config.pre_funding_timeout_seconds}s"
                    ) from e

                if not plan.recipients:
                    logger.info(f"Run {run_id}: no eligible recipients, nothing to pay")
                    return DistributionResult(
                        success=True,
                        state=RunState.DONE,
                        timeframe=timeframe.value,
                        trigger_type=trigger_type.value,
                        run_id=run_id,
                    )

                return await self._execute(plan)
        except DistributionError as e:
            logger.warning(f"Run {run_id} rejected: {e}")
            return DistributionResult(
                success=False,
                state=RunState.REJECTED,
                timeframe=timeframe.value,
                trigger_type=trigger_type.value,
                run_id=run_id,
                error=str(e),
                error_code=e.code,
            )

    async def wait_for_notifications(self) -> None:
        """Drain background winner notifications."""
        await self.notifications.wait_for_pending()

    async def _prepare(
        self,
        request: Any,
        run_id: str,
        timeframe: Timeframe,
        trigger_type: TriggerType,
        stack: AsyncExitStack,
    ) -> _RunPlan:
        self._log_state(run_id, RunState.AUTHORIZING)
        await self.gate.authorize(trigger_type, request.credential)

        lock_key = DISTRIBUTION_LOCK_KEY.format(timeframe=timeframe.value)
        try:
            await stack.enter_async_context(
                self.run_lock.lock(
                    lock_key,
                    timeout=self.config.run_lock_ttl_seconds,
                    renew_interval=self.config.run_lock_ttl_seconds / 3,
                )
            )
        except LockNotAcquiredError as e:
            raise RunInProgressError(
                f"A {timeframe} distribution is already in progress"
            ) from e

        self._log_state(run_id, RunState.COMPUTING_SCHEDULE)
        try:
            total_pool = await self.pool_source.get_configured_pool_size()
            participants = await self.ranking_store.get_ranked_participants(
                timeframe.value, self.config.leaderboard_fetch_limit
            )
        except DistributionError:
            raise
        except Exception as e:
            logger.error(f"Run {run_id}: ranking store unavailable: {e}")
            raise DistributionError(f"Ranking store unavailable: {e}") from e

        if total_pool <= 0:
            raise InvalidInputError("Reward pool is empty")

        schedule = self.calculator.compute_schedule(total_pool)
        eligibility = self.eligibility_filter.evaluate(participants, schedule)

        grant = request.spending_grant
        if grant is None and eligibility.eligible:
            grant = await self._load_grant()

        logger.info(
            f"Run {run_id}: pool={total_pool}, eligible={len(eligibility.eligible)}, "
            f"excluded={len(eligibility.excluded)}, total={eligibility.total_amount}"
        )
        return _RunPlan(
            run_id=run_id,
            timeframe=timeframe,
            trigger_type=trigger_type,
            total_pool=total_pool,
            recipients=tuple(eligibility.eligible),
            grant=grant,
        )

    async def _load_grant(self) -> SpendingGrant | None:
        if self.grant_store is None or not self.config.authorizer_address:
            return None
        try:
            return await self.grant_store.get_grant(self.config.authorizer_address)
        except Exception as e:
            # Funding pre-checks report the missing grant
            logger.error(
                f"Could not load grant for {mask_address(self.config.authorizer_address)}: {e}"
            )
            return None

    async def _execute(self, plan: _RunPlan) -> DistributionResult:
        self._log_state(plan.run_id, RunState.FUNDING_POOL)
        try:
            receipt = await self.funding.fund(plan.grant, plan.total_amount)
        except PoolTransferError as e:
            logger.error(f"Run {plan.run_id} aborted: {e}")
            record = self._build_record(
                plan, DistributionStatus.POOL_TRANSFER_FAILED, (), error=str(e)
            )
            warnings = await self._record(record)
            return DistributionResult(
                success=False,
                state=RunState.ABORTED,
                timeframe=plan.timeframe.value,
                trigger_type=plan.trigger_type.value,
                run_id=plan.run_id,
                total_amount=plan.total_amount,
                warnings=warnings,
                error=str(e),
                error_code=e.code,
                record_written=not warnings,
            )

        self._log_state(plan.run_id, RunState.DISTRIBUTING)
        outcomes = tuple(await self.fanout.distribute(plan.recipients, plan.timeframe.value))

        self._log_state(plan.run_id, RunState.RECORDING)
        status = self._status_for(outcomes)
        warnings = await self._record(
            self._build_record(
                plan, status, outcomes, funding_references=receipt.references
            )
        )

        self._log_state(plan.run_id, RunState.DONE)
        any_paid = status != DistributionStatus.FAILED
        result = DistributionResult(
            success=any_paid,
            state=RunState.DONE,
            timeframe=plan.timeframe.value,
            trigger_type=plan.trigger_type.value,
            run_id=plan.run_id,
            total_amount=plan.total_amount,
            outcomes=outcomes,
            warnings=warnings,
            error=None if any_paid else "All recipient transfers failed",
            error_code=None if any_paid else RecipientTransferError.code,
            record_written=not warnings,
        )
        logger.success(
            f"Run {plan.run_id} finished ({status}): {result.successful_count}/"
            f"{result.recipient_count} paid, {result.amount_moved} moved"
        )

        self.notifications.schedule_winners(
            outcomes, lambda outcome: self._winner_message(outcome, plan.timeframe)
        )
        return result

    async def _record(self, record: DistributionRecord) -> tuple[str, ...]:
        try:
            await self.recorder.record(record)
        except RecordingError as e:
            return (str(e),)
        return ()

    def _build_record(
        self,
        plan: _RunPlan,
        status: DistributionStatus,
        outcomes: tuple[TransferOutcome, ...],
        error: str | None = None,
        funding_references: tuple[str, ...] = (),
    ) -> DistributionRecord:
        return DistributionRecord(
            run_id=plan.run_id,
            timestamp=self.clock(),
            timeframe=plan.timeframe,
            trigger_type=plan.trigger_type,
            status=status,
            total_amount=plan.total_amount,
            recipient_count=len(outcomes),
            outcomes=outcomes,
            error=error,
            funding_references=tuple(funding_references),
        )

    @staticmethod
    def _status_for(outcomes: tuple[TransferOutcome, ...]) -> DistributionStatus:
        succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
        if succeeded == len(outcomes):
            return DistributionStatus.COMPLETED
        if succeeded == 0:
            return DistributionStatus.FAILED
        return DistributionStatus.PARTIAL

    def _winner_message(self, outcome: TransferOutcome, timeframe: Timeframe) -> str:
        return (
            f"🏆 You finished #{outcome.rank} on the {timeframe} leaderboard and "
            f"received {self.calculator.format(outcome.amount)} {self.calculator.symbol}!"
        )

    @staticmethod
    def _log_state(run_id: str, state: RunState) -> None:
        logger.debug(f"Run {run_id} -> {state}")
