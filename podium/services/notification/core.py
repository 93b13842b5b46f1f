"""
Core notification dispatcher.

Notifications are issued after a run's result is final, as background
tasks. Delivery failures are logged and swallowed.
"""

import asyncio
from collections.abc import Callable, Iterable

from loguru import logger

from podium.models.transfer import TransferOutcome
from podium.services.interfaces import Notifier
from podium.utils.exceptions import is_safe_to_ignore
from podium.utils.security import mask_address


class NotificationDispatcher:
    """Fire-and-forget wrapper around a Notifier."""

    def __init__(self, notifier: Notifier | None, timeout: float = 10.0) -> None:
        """
        Initialize notification dispatcher.

        Args:
            notifier: Notification channel (None disables notifications)
            timeout: Per-notification delivery timeout in seconds
        """
        self.notifier = notifier
        self.timeout = timeout
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def send(self, address: str, message: str) -> bool:
        """
        Deliver one notification.

        Returns:
            True if delivered, False if it failed (never raises)
        """
        if self.notifier is None:
            return False
        try:
            await asyncio.wait_for(
                self.notifier.notify(address, message), timeout=self.timeout
            )
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Notification to {mask_address(address)} timed out")
        except Exception as e:
            if is_safe_to_ignore(e):
                logger.warning(f"Notification to {mask_address(address)} failed: {e}")
            else:
                logger.error(
                    f"Unexpected notification error for {mask_address(address)}: {e}"
                )
        return False

    def schedule(self, address: str, message: str) -> asyncio.Task | None:
        """Send in the background; the task is tracked until it finishes."""
        if self.notifier is None:
            return None
        task = asyncio.create_task(self.send(address, message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def schedule_winners(
        self,
        outcomes: Iterable[TransferOutcome],
        render: Callable[[TransferOutcome], str],
    ) -> int:
        """
        Notify every successful recipient.

        Args:
            outcomes: Run outcomes
            render: Builds the message for one outcome

        Returns:
            Number of notifications scheduled
        """
        scheduled = 0
        for outcome in outcomes:
            if outcome.succeeded and self.schedule(outcome.payout_address, render(outcome)):
                scheduled += 1
        if scheduled:
            logger.info(f"Scheduled {scheduled} winner notifications")
        return scheduled

    async def wait_for_pending(self) -> None:
        """Wait until all scheduled notifications have finished."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
