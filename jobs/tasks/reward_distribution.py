"""
Reward distribution task.

Runs one automated distribution for a timeframe. Enqueued by the scheduler;
never retried, since a retry after funding could pay recipients twice.
"""

import asyncio

import dramatiq
from loguru import logger

import jobs.broker  # noqa: F401
from podium.bootstrap import build_services
from podium.config.settings import settings
from podium.models.distribution import DistributionResult
from podium.schemas.trigger import parse_trigger_request
from podium.utils.redis_utils import get_redis_client


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min
def distribute_rewards(timeframe: str | None = None) -> None:
    """
    Run an automated reward distribution.

    Args:
        timeframe: week, month or all-time (defaults to the configured one)
    """
    timeframe = timeframe or settings.distribution_timeframe
    logger.info(f"Starting automated reward distribution for {timeframe}...")

    try:
        result = asyncio.run(_distribute_rewards_async(timeframe))
    except Exception as e:
        logger.exception(f"Automated reward distribution crashed: {e}")
        raise

    if result.success:
        logger.info(
            f"Automated distribution complete: {result.successful_count}/"
            f"{result.recipient_count} paid, {result.amount_moved} moved"
        )
    else:
        logger.error(
            f"Automated distribution did not pay out ({result.state}): {result.error}"
        )


async def _distribute_rewards_async(timeframe: str) -> DistributionResult:
    """Async implementation of the distribution task."""
    if not settings.automated_trigger_secret:
        logger.error("AUTOMATED_TRIGGER_SECRET is not set; automated run will be rejected")

    request = parse_trigger_request(
        {
            "timeframe": timeframe,
            "triggerType": "automated",
            "credential": settings.automated_trigger_secret or "",
        }
    )

    services = build_services(settings, get_redis_client())
    try:
        return await services.orchestrator.run(request)
    finally:
        await services.close()
