"""Notification channels."""

import aiohttp
from loguru import logger

from podium.utils.exceptions import NotificationError
from podium.utils.security import mask_address


class WebhookNotifier:
    """Posts `{address, message}` JSON to a webhook endpoint."""

    def __init__(self, webhook_url: str, timeout: float = 10.0) -> None:
        self.webhook_url = webhook_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def notify(self, address: str, message: str) -> None:
        """
        Deliver a notification.

        Raises:
            NotificationError: If the endpoint answers with an error status
            aiohttp.ClientError: On connection failures
        """
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(
                self.webhook_url, json={"address": address, "message": message}
            ) as response:
                if response.status >= 400:
                    raise NotificationError(
                        f"Webhook answered {response.status} for {mask_address(address)}"
                    )
        logger.debug(f"Notification delivered to {mask_address(address)}")


class LogNotifier:
    """Writes notifications to the log when no webhook is configured."""

    async def notify(self, address: str, message: str) -> None:
        logger.info(f"[notify {mask_address(address)}] {message}")
