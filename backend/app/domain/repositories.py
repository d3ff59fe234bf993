"""
Repository Interfaces

Abstract persistence contracts the domain services depend on.
Concrete SQLModel implementations live in app.infrastructure.db.repositories.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from app.domain.models import (
    ConnectedAccount,
    Platform,
    PlatformTargetStatus,
    Post,
    PostMetric,
    PostStatus,
    User,
)


class IUserRepository(ABC):
    """Users and their subscription state."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_open_id(self, open_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def lock_for_update(self, user_id: int) -> Optional[User]:
        """Load the user and hold a row lock until the transaction ends."""
        pass

    @abstractmethod
    async def upsert_on_login(
        self,
        open_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        login_method: Optional[str] = None,
        is_owner: bool = False,
    ) -> User:
        pass

    @abstractmethod
    async def update_subscription(self, user_id: int, **fields: Any) -> Optional[User]:
        pass

    @abstractmethod
    async def update_subscription_by_customer(
        self, customer_id: str, **fields: Any
    ) -> Optional[User]:
        pass


class IPostRepository(ABC):
    """Posts and their platform fan-out rows."""

    @abstractmethod
    async def count_active_since(self, user_id: int, since: datetime) -> int:
        """Count non-cancelled posts created at or after ``since``."""
        pass

    @abstractmethod
    async def create_with_targets(
        self,
        post: Post,
        platforms: List[Platform],
        target_status: PlatformTargetStatus,
    ) -> Post:
        pass

    @abstractmethod
    async def get_for_user(self, post_id: int, user_id: int) -> Optional[Post]:
        pass

    @abstractmethod
    async def mark_cancelled(self, post_id: int, target_failure_reason: str) -> Post:
        pass

    @abstractmethod
    async def list_by_user(
        self,
        user_id: int,
        status: Optional[PostStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Post]:
        pass


class IConnectedAccountRepository(ABC):
    """Linked social accounts."""

    @abstractmethod
    async def list_active(self, user_id: int) -> List[ConnectedAccount]:
        pass

    @abstractmethod
    async def upsert(self, account: ConnectedAccount) -> ConnectedAccount:
        """Reactivate and overwrite an existing (user, platform) row, else insert."""
        pass

    @abstractmethod
    async def deactivate(self, user_id: int, platform: Platform) -> bool:
        pass


class IPostMetricRepository(ABC):
    """Engagement metrics written by the external fetcher."""

    @abstractmethod
    async def list_for_user(self, user_id: int) -> List[PostMetric]:
        """All metric rows for the user's posts, newest first."""
        pass
