"""
Dependency Injection Providers for Liftx

Provides FastAPI dependencies for database sessions, repositories and
domain services. Follows Dependency Inversion Principle - routes depend
on the repository interfaces, and every repository of a request shares
one session.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
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
from app.infrastructure.db.database import get_session
from app.infrastructure.db.repositories import (
    ConnectedAccountRepository,
    PostMetricRepository,
    PostRepository,
    UserRepository,
    WebhookEventRepository,
)


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


# =============================================================================
# Repositories
# =============================================================================

async def get_user_repository(
    session: SessionDep,
) -> AsyncGenerator[IUserRepository, None]:
    """
    Dependency provider for UserRepository.

    Usage:
        @router.get("/me")
        async def me(users: UserRepoDep):
            ...
    """
    yield UserRepository(session)


async def get_post_repository(
    session: SessionDep,
) -> AsyncGenerator[IPostRepository, None]:
    yield PostRepository(session)


async def get_connected_account_repository(
    session: SessionDep,
) -> AsyncGenerator[IConnectedAccountRepository, None]:
    yield ConnectedAccountRepository(session)


async def get_post_metric_repository(
    session: SessionDep,
) -> AsyncGenerator[IPostMetricRepository, None]:
    yield PostMetricRepository(session)


async def get_webhook_event_repository(
    session: SessionDep,
) -> AsyncGenerator[WebhookEventRepository, None]:
    yield WebhookEventRepository(session)


UserRepoDep = Annotated[IUserRepository, Depends(get_user_repository)]
PostRepoDep = Annotated[IPostRepository, Depends(get_post_repository)]
ConnectedAccountRepoDep = Annotated[
    IConnectedAccountRepository,
    Depends(get_connected_account_repository)
]
PostMetricRepoDep = Annotated[IPostMetricRepository, Depends(get_post_metric_repository)]
WebhookEventRepoDep = Annotated[
    WebhookEventRepository,
    Depends(get_webhook_event_repository)
]


# =============================================================================
# Domain services
# =============================================================================

def get_quota_accounting(posts: PostRepoDep) -> QuotaAccounting:
    return QuotaAccounting(posts, zone=settings.quota_zone)


QuotaDep = Annotated[QuotaAccounting, Depends(get_quota_accounting)]


def get_connection_registry(accounts: ConnectedAccountRepoDep) -> PlatformConnectionRegistry:
    return PlatformConnectionRegistry(accounts)


ConnectionRegistryDep = Annotated[PlatformConnectionRegistry, Depends(get_connection_registry)]


def get_post_lifecycle_service(
    users: UserRepoDep,
    posts: PostRepoDep,
    quota: QuotaDep,
    connections: ConnectionRegistryDep,
) -> PostLifecycleService:
    """Wire the post lifecycle with the configured posting policy."""
    return PostLifecycleService(
        users=users,
        posts=posts,
        quota=quota,
        connections=connections,
        require_connected_platforms=settings.require_connected_platforms,
    )


def get_subscription_projection(quota: QuotaDep) -> SubscriptionProjection:
    return SubscriptionProjection(quota)


def get_metrics_service(metrics: PostMetricRepoDep) -> MetricsService:
    return MetricsService(metrics)


PostLifecycleDep = Annotated[PostLifecycleService, Depends(get_post_lifecycle_service)]
SubscriptionProjectionDep = Annotated[
    SubscriptionProjection,
    Depends(get_subscription_projection)
]
MetricsServiceDep = Annotated[MetricsService, Depends(get_metrics_service)]
