"""
Test configuration and fixtures for Liftx.

Provides in-memory repositories, wired domain services, and a FastAPI
test client whose database-backed dependencies are overridden, so no
database is needed.
"""

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time; configure before importing the app
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("OWNER_OPEN_ID", "owner-open-id")

import jwt
import pytest
from fastapi.testclient import TestClient

from app.domain.models import (
    ConnectedAccount,
    Platform,
    PlatformTargetStatus,
    Post,
    PostMetric,
    PostPlatformTarget,
    PostStatus,
    User,
    UserRole,
)
from app.domain.quota import QuotaAccounting
from app.domain.repositories import (
    IConnectedAccountRepository,
    IPostMetricRepository,
    IPostRepository,
    IUserRepository,
)
from app.domain.services import (
    MetricsService,
    PlatformConnectionRegistry,
    PostLifecycleService,
    SubscriptionProjection,
)
from app.domain.subscription import SubscriptionTier


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# In-memory repositories
# =============================================================================

class InMemoryUserRepository(IUserRepository):
    """Dict-backed users; ``locked`` records lock_for_update calls."""

    def __init__(self):
        self.rows: Dict[int, User] = {}
        self.locked: List[int] = []
        self._next_id = 1

    def add(self, tier: SubscriptionTier = SubscriptionTier.TRIAL, **fields: Any) -> User:
        user_id = self._next_id
        self._next_id += 1
        fields.setdefault("open_id", f"user-{user_id}")
        user = User(id=user_id, subscription_tier=tier, created_at=_now(), **fields)
        self.rows[user_id] = user
        return user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return self.rows.get(user_id)

    async def get_by_open_id(self, open_id: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.open_id == open_id), None)

    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.stripe_customer_id == customer_id), None)

    async def lock_for_update(self, user_id: int) -> Optional[User]:
        self.locked.append(user_id)
        return self.rows.get(user_id)

    async def upsert_on_login(
        self,
        open_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        login_method: Optional[str] = None,
        is_owner: bool = False,
    ) -> User:
        existing = await self.get_by_open_id(open_id)
        if existing is None:
            return self.add(
                open_id=open_id,
                name=name,
                email=email,
                login_method=login_method,
                role=UserRole.ADMIN if is_owner else UserRole.USER,
                last_signed_in=_now(),
            )

        update: Dict[str, Any] = {"last_signed_in": _now()}
        if name is not None:
            update["name"] = name
        if email is not None:
            update["email"] = email
        if login_method is not None:
            update["login_method"] = login_method
        if is_owner:
            update["role"] = UserRole.ADMIN
        user = existing.model_copy(update=update)
        self.rows[user.id] = user
        return user

    async def update_subscription(self, user_id: int, **fields: Any) -> Optional[User]:
        user = self.rows.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update=fields)
        self.rows[user_id] = updated
        return updated

    async def update_subscription_by_customer(self, customer_id: str, **fields: Any) -> Optional[User]:
        user = await self.get_by_stripe_customer_id(customer_id)
        if user is None:
            return None
        return await self.update_subscription(user.id, **fields)


class InMemoryPostRepository(IPostRepository):
    """List-backed posts with the same filtering the SQL queries apply."""

    def __init__(self):
        self.rows: Dict[int, Post] = {}
        self._next_id = 1
        self._next_target_id = 1

    def add(self, post: Post, platforms: List[Platform] = (),
            target_status: PlatformTargetStatus = PlatformTargetStatus.PENDING) -> Post:
        post_id = self._next_id
        self._next_id += 1
        targets = []
        for platform in platforms:
            targets.append(PostPlatformTarget(
                id=self._next_target_id,
                post_id=post_id,
                platform=platform,
                status=target_status,
                published_at=post.published_at if target_status == PlatformTargetStatus.PUBLISHED else None,
                created_at=post.created_at,
            ))
            self._next_target_id += 1
        stored = post.model_copy(update={
            "id": post_id,
            "created_at": post.created_at or _now(),
            "platforms": targets,
        })
        self.rows[post_id] = stored
        return stored

    async def count_active_since(self, user_id: int, since: datetime) -> int:
        return sum(
            1 for p in self.rows.values()
            if p.user_id == user_id
            and p.created_at >= since
            and p.status != PostStatus.CANCELLED
        )

    async def create_with_targets(
        self,
        post: Post,
        platforms: List[Platform],
        target_status: PlatformTargetStatus,
    ) -> Post:
        return self.add(post, platforms, target_status)

    async def get_for_user(self, post_id: int, user_id: int) -> Optional[Post]:
        post = self.rows.get(post_id)
        if post is None or post.user_id != user_id:
            return None
        return post

    async def mark_cancelled(self, post_id: int, target_failure_reason: str) -> Post:
        post = self.rows[post_id]
        targets = [
            t.model_copy(update={
                "status": PlatformTargetStatus.FAILED,
                "failure_reason": target_failure_reason,
            }) if t.status == PlatformTargetStatus.PENDING else t
            for t in post.platforms
        ]
        cancelled = post.model_copy(update={
            "status": PostStatus.CANCELLED,
            "platforms": targets,
            "updated_at": _now(),
        })
        self.rows[post_id] = cancelled
        return cancelled

    async def list_by_user(
        self,
        user_id: int,
        status: Optional[PostStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Post]:
        posts = [
            p for p in self.rows.values()
            if p.user_id == user_id and (status is None or p.status == status)
        ]
        posts.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        return posts[offset:offset + limit]


class InMemoryConnectedAccountRepository(IConnectedAccountRepository):
    def __init__(self):
        self.rows: Dict[tuple, ConnectedAccount] = {}
        self._next_id = 1

    async def list_active(self, user_id: int) -> List[ConnectedAccount]:
        return sorted(
            (a for (uid, _), a in self.rows.items() if uid == user_id and a.is_active),
            key=lambda a: a.platform.value,
        )

    async def upsert(self, account: ConnectedAccount) -> ConnectedAccount:
        key = (account.user_id, account.platform)
        existing = self.rows.get(key)
        account_id = existing.id if existing else self._next_id
        if existing is None:
            self._next_id += 1
        stored = account.model_copy(update={"id": account_id, "is_active": True, "updated_at": _now()})
        self.rows[key] = stored
        return stored

    async def deactivate(self, user_id: int, platform: Platform) -> bool:
        existing = self.rows.get((user_id, platform))
        if existing is None or not existing.is_active:
            return False
        self.rows[(user_id, platform)] = existing.model_copy(update={"is_active": False})
        return True


class InMemoryPostMetricRepository(IPostMetricRepository):
    def __init__(self):
        self.rows: List[tuple] = []

    def add(self, user_id: int, metric: PostMetric) -> None:
        self.rows.append((user_id, metric))

    async def list_for_user(self, user_id: int) -> List[PostMetric]:
        metrics = [m for uid, m in self.rows if uid == user_id]
        metrics.sort(key=lambda m: m.fetched_at, reverse=True)
        return metrics


class InMemoryWebhookEventRepository:
    def __init__(self):
        self.processed: Dict[str, str] = {}

    async def is_processed(self, event_id: str) -> bool:
        return event_id in self.processed

    async def mark_processed(self, event_id: str, event_type: str) -> None:
        self.processed.setdefault(event_id, event_type)


# =============================================================================
# Repository & Service Fixtures
# =============================================================================

@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def posts():
    return InMemoryPostRepository()


@pytest.fixture
def accounts():
    return InMemoryConnectedAccountRepository()


@pytest.fixture
def metrics():
    return InMemoryPostMetricRepository()


@pytest.fixture
def webhook_events():
    return InMemoryWebhookEventRepository()


@pytest.fixture
def quota(posts):
    return QuotaAccounting(posts, zone=timezone.utc)


@pytest.fixture
def registry(accounts):
    return PlatformConnectionRegistry(accounts)


@pytest.fixture
def lifecycle(users, posts, quota, registry):
    return PostLifecycleService(
        users=users,
        posts=posts,
        quota=quota,
        connections=registry,
        require_connected_platforms=True,
    )


@pytest.fixture
def projection(quota):
    return SubscriptionProjection(quota)


@pytest.fixture
def metrics_service(metrics):
    return MetricsService(metrics)


@pytest.fixture
def connect(accounts):
    """Mark platforms as connected for a user (sync helper)."""
    def _connect(user: User, *platforms: Platform) -> None:
        for platform in platforms:
            accounts.rows[(user.id, platform)] = ConnectedAccount(
                id=len(accounts.rows) + 1,
                user_id=user.id,
                platform=platform,
                platform_username=f"{platform.value}_handle",
                is_active=True,
            )
    return _connect


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def mock_stripe_service():
    """Mock for StripeService."""
    mock = MagicMock()
    mock.create_checkout_session = AsyncMock(return_value="https://checkout.stripe.test/session")
    return mock


@pytest.fixture
def mock_notifier():
    """Mock for OwnerNotifier."""
    mock = MagicMock()
    mock.notify = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def app(users, posts, accounts, metrics, webhook_events, mock_stripe_service, mock_notifier, tmp_path):
    """FastAPI application with database-backed dependencies replaced."""
    from app.infrastructure.db import dependencies as db_deps
    from app.infrastructure.notifications import get_owner_notifier
    from app.infrastructure.payments.stripe_service import get_stripe_service
    from app.infrastructure.storage import LocalBlobStore, get_blob_store
    from app.main import app

    app.dependency_overrides[db_deps.get_user_repository] = lambda: users
    app.dependency_overrides[db_deps.get_post_repository] = lambda: posts
    app.dependency_overrides[db_deps.get_connected_account_repository] = lambda: accounts
    app.dependency_overrides[db_deps.get_post_metric_repository] = lambda: metrics
    app.dependency_overrides[db_deps.get_webhook_event_repository] = lambda: webhook_events
    app.dependency_overrides[get_stripe_service] = lambda: mock_stripe_service
    app.dependency_overrides[get_owner_notifier] = lambda: mock_notifier
    app.dependency_overrides[get_blob_store] = lambda: LocalBlobStore(
        root=str(tmp_path), base_url="http://media.test"
    )
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


def make_token(sub: str, **claims: Any) -> str:
    from app.config.settings import get_settings

    settings = get_settings()
    payload = {
        "sub": sub,
        "aud": settings.jwt_audience,
        "exp": int(time.time()) + 3600,
        **claims,
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build Authorization headers for an identity."""
    def _headers(sub: str = "user-1", **claims: Any) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub, **claims)}"}
    return _headers
