"""
Dependency wiring.

Builds the orchestrator and its collaborators from settings. Nothing here
is cached at module level; each process calls build_services() once at
startup and owns the result.
"""

from dataclasses import dataclass
from typing import Any

from loguru import logger
from web3 import Web3

from podium.config.settings import Settings
from podium.repositories import (
    RedisAdminPinRepository,
    RedisDistributionHistoryRepository,
    RedisLeaderboardRepository,
    RedisSpendingGrantRepository,
)
from podium.services.admin import AdminPinService, AuthorizationGate, PinAttemptLimiter
from podium.services.blockchain import (
    OperatorTransactionSender,
    SpendPermissionCallPreparer,
    Web3CallExecutor,
    Web3TransferSubmitter,
)
from podium.services.distribution import (
    DistributionConfig,
    DistributionOrchestrator,
    DistributionRecorder,
    FundingPoolTransfer,
    PayoutFanOut,
)
from podium.services.interfaces import BalanceReader, GrantStore, PoolConfigStore
from podium.services.notification import (
    LogNotifier,
    NotificationDispatcher,
    WebhookNotifier,
)
from podium.services.reward import EligibilityFilter, RewardCalculator
from podium.utils.distributed_lock import DistributedLock
from podium.utils.security import mask_address
from podium.utils.validation import same_address


@dataclass
class AppServices:
    """Everything the API and the worker need, built once per process."""

    config: Settings
    orchestrator: DistributionOrchestrator
    recorder: DistributionRecorder
    calculator: RewardCalculator
    pool_source: PoolConfigStore
    balance_reader: BalanceReader | None
    grant_store: GrantStore
    pin_service: AdminPinService
    pin_limiter: PinAttemptLimiter
    redis_client: Any = None

    async def close(self) -> None:
        await self.orchestrator.wait_for_notifications()
        if self.redis_client is not None:
            await self.redis_client.aclose()


def build_services(config: Settings, redis_client: Any) -> AppServices:
    """
    Wire the distribution engine.

    Args:
        config: Application settings
        redis_client: Async Redis client

    Returns:
        AppServices

    Raises:
        RuntimeError: If the operator key is missing or does not match
            the configured operator address
    """
    if not config.operator_private_key:
        raise RuntimeError("OPERATOR_PRIVATE_KEY is not configured")

    w3 = Web3(Web3.HTTPProvider(config.rpc_url))
    sender = OperatorTransactionSender(
        w3,
        config.operator_private_key,
        receipt_timeout=config.receipt_timeout_seconds,
    )
    operator_address = config.operator_address or sender.address
    if not same_address(operator_address, sender.address):
        raise RuntimeError(
            f"OPERATOR_ADDRESS {mask_address(operator_address)} does not match "
            f"the operator key ({mask_address(sender.address)})"
        )

    pin_store = RedisAdminPinRepository(redis_client)
    leaderboard = RedisLeaderboardRepository(redis_client)
    grant_store = RedisSpendingGrantRepository(redis_client)
    recorder = DistributionRecorder(
        RedisDistributionHistoryRepository(redis_client),
        retention_days=config.history_retention_days,
    )
    calculator = RewardCalculator(config.asset_decimals, config.asset_symbol)
    gate = AuthorizationGate(pin_store, config.automated_trigger_secret)
    submitter = Web3TransferSubmitter(sender, config.asset_address)

    if config.notification_webhook_url:
        notifier = WebhookNotifier(
            config.notification_webhook_url, timeout=config.notification_timeout_seconds
        )
    else:
        notifier = LogNotifier()

    orchestrator = DistributionOrchestrator(
        gate=gate,
        ranking_store=leaderboard,
        pool_source=leaderboard,
        calculator=calculator,
        eligibility_filter=EligibilityFilter(config.dust_threshold),
        funding=FundingPoolTransfer(
            call_preparer=SpendPermissionCallPreparer(
                config.spend_permission_manager_address
            ),
            call_executor=Web3CallExecutor(sender),
            balance_reader=submitter,
            operator_address=operator_address,
            asset_address=config.asset_address,
            chain_id=config.chain_id,
        ),
        fanout=PayoutFanOut(
            submitter,
            operator_address,
            max_concurrency=config.max_concurrent_transfers,
            app_name=config.app_name,
        ),
        recorder=recorder,
        notifications=NotificationDispatcher(
            notifier, timeout=config.notification_timeout_seconds
        ),
        grant_store=grant_store,
        run_lock=DistributedLock(redis_client),
        config=DistributionConfig.from_settings(config),
    )

    logger.info(
        f"Distribution engine wired: operator={mask_address(operator_address)}, "
        f"asset={config.asset_symbol}, chain={config.chain_id}"
    )
    return AppServices(
        config=config,
        orchestrator=orchestrator,
        recorder=recorder,
        calculator=calculator,
        pool_source=leaderboard,
        balance_reader=submitter,
        grant_store=grant_store,
        pin_service=AdminPinService(pin_store, gate),
        pin_limiter=PinAttemptLimiter(
            redis_client,
            max_attempts=config.admin_pin_max_attempts,
            window_seconds=config.admin_pin_lockout_seconds,
        ),
        redis_client=redis_client,
    )
