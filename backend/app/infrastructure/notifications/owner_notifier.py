"""
Owner Notifier

Best-effort notifications to the application owner (new posts, paid
tier changes). Delivery failures are logged and never reach the caller.
"""

import logging
from typing import Optional

import httpx

from app.config.settings import settings

logger = logging.getLogger(__name__)


class OwnerNotifier:
    """POSTs ``{"title", "content"}`` JSON to the configured webhook URL."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url if url is not None else settings.owner_notification_url
        self.timeout = timeout if timeout is not None else settings.owner_notification_timeout

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    async def notify(self, title: str, content: str) -> bool:
        """
        Send a notification.

        Returns:
            True if the endpoint accepted it, False otherwise
        """
        if not self.enabled:
            logger.debug(f"[NOTIFY] Skipped (no URL configured): {title}")
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.url,
                    json={"title": title, "content": content},
                )
                response.raise_for_status()
            logger.info(f"[NOTIFY] Sent: {title}")
            return True

        except httpx.HTTPStatusError as e:
            logger.warning(f"[NOTIFY] HTTP {e.response.status_code} for '{title}'")
            return False
        except httpx.HTTPError as e:
            logger.warning(f"[NOTIFY] Failed to send '{title}': {e}")
            return False


_notifier: Optional[OwnerNotifier] = None


def get_owner_notifier() -> OwnerNotifier:
    """Get or create the notifier singleton."""
    global _notifier
    if _notifier is None:
        _notifier = OwnerNotifier()
    return _notifier
