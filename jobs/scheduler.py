"""
Distribution scheduler.

Owns the periodic trigger: an APScheduler cron job that enqueues the
reward distribution actor. The engine itself keeps no state between runs.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from jobs.health import start_health_server, stop_health_server
from podium.config.settings import Settings, settings
from podium.initialization.logging import setup_logging

DISTRIBUTION_JOB_ID = "reward_distribution"


def enqueue_distribution(timeframe: str) -> None:
    """Send the distribution actor message."""
    from jobs.tasks.reward_distribution import distribute_rewards

    distribute_rewards.send(timeframe)
    logger.info(f"Enqueued {timeframe} reward distribution")


def create_scheduler(config: Settings) -> AsyncIOScheduler:
    """
    Build the scheduler with the distribution cron job.

    Args:
        config: Application settings

    Returns:
        Unstarted AsyncIOScheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        enqueue_distribution,
        CronTrigger(
            day_of_week=config.distribution_cron_day_of_week,
            hour=config.distribution_cron_hour,
            minute=config.distribution_cron_minute,
            timezone="UTC",
        ),
        args=[config.distribution_timeframe],
        id=DISTRIBUTION_JOB_ID,
        name=f"{config.distribution_timeframe} reward distribution",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    return scheduler


async def run_scheduler(config: Settings) -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    scheduler = create_scheduler(config)
    scheduler.start()
    for job in scheduler.get_jobs():
        logger.info(f"Scheduled {job.name}, next run: {job.next_run_time}")

    runner = await start_health_server(scheduler, port=config.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Stopping scheduler...")
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)


def main() -> None:
    setup_logging("scheduler", settings.log_level)
    asyncio.run(run_scheduler(settings))


if __name__ == "__main__":
    main()
