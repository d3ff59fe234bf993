"""
Repository Layer for Liftx

Exports all repository classes for dependency injection.
"""

from app.infrastructure.db.repositories.base_repository import BaseRepository
from app.infrastructure.db.repositories.user_repository import UserRepository
from app.infrastructure.db.repositories.post_repository import PostRepository
from app.infrastructure.db.repositories.connected_account_repository import (
    ConnectedAccountRepository,
)
from app.infrastructure.db.repositories.post_metric_repository import (
    PostMetricRepository,
)
from app.infrastructure.db.repositories.webhook_event_repository import (
    WebhookEventRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    # Repositories
    "UserRepository",
    "PostRepository",
    "ConnectedAccountRepository",
    "PostMetricRepository",
    "WebhookEventRepository",
]
