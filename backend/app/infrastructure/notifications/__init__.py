"""Owner notification delivery."""

from app.infrastructure.notifications.owner_notifier import (
    OwnerNotifier,
    get_owner_notifier,
)

__all__ = ["OwnerNotifier", "get_owner_notifier"]
