"""
Winner notifications.

- core: best-effort dispatcher, failures never affect a run
- webhook: HTTP webhook notification channel
"""

from podium.services.notification.core import NotificationDispatcher
from podium.services.notification.webhook import LogNotifier, WebhookNotifier

__all__ = ["LogNotifier", "NotificationDispatcher", "WebhookNotifier"]
