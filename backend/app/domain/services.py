"""
Domain Services for Liftx

Post lifecycle, platform connections, subscription projection, and metrics.
Services depend only on the repository interfaces, so a request's
repositories share one session and one transaction.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Set

from app.domain.models import (
    ConnectedAccount,
    ConnectPlatformRequest,
    MetricsOverview,
    MetricTotals,
    Platform,
    PlatformTargetStatus,
    Post,
    PostCreateRequest,
    PostCreateResponse,
    PostStatus,
    User,
)
from app.domain.quota import QuotaAccounting
from app.domain.repositories import (
    IConnectedAccountRepository,
    IPostMetricRepository,
    IPostRepository,
    IUserRepository,
)
from app.domain.subscription import (
    ContentType,
    SubscriptionView,
    effective_limits,
    limits_for,
)
from app.infrastructure.exceptions import (
    AnalyticsNotAllowed,
    ContentTypeNotAllowed,
    InvalidStateTransition,
    NotFoundError,
    PlatformLimitExceeded,
    PlatformNotConnected,
    PostNotFoundError,
    QuotaExceeded,
    SchedulingNotAllowed,
)


logger = logging.getLogger(__name__)

CANCELLED_TARGET_REASON = "Post cancelled"
RECENT_METRICS_LIMIT = 20


class PlatformConnectionRegistry:
    """Tracks which external accounts a user has linked."""

    def __init__(self, accounts: IConnectedAccountRepository):
        self._accounts = accounts

    async def list_active(self, user_id: int) -> List[ConnectedAccount]:
        return await self._accounts.list_active(user_id)

    async def active_platforms(self, user_id: int) -> Set[Platform]:
        accounts = await self._accounts.list_active(user_id)
        return {account.platform for account in accounts}

    async def connect(self, user_id: int, request: ConnectPlatformRequest) -> ConnectedAccount:
        """Link a platform, reactivating and overwriting an existing row."""
        account = ConnectedAccount(
            user_id=user_id,
            platform=request.platform,
            platform_user_id=request.platform_user_id,
            platform_username=request.platform_username,
            platform_display_name=request.platform_display_name,
            platform_avatar_url=request.platform_avatar_url,
            is_active=True,
        )
        saved = await self._accounts.upsert(account)
        logger.info(f"User {user_id} connected {request.platform.value}")
        return saved

    async def disconnect(self, user_id: int, platform: Platform) -> None:
        """Soft-deactivate the (user, platform) account if one exists."""
        changed = await self._accounts.deactivate(user_id, platform)
        if changed:
            logger.info(f"User {user_id} disconnected {platform.value}")


class PostLifecycleService:
    """
    Creation and cancellation transitions of the post state machine.

    Everything after creation (publishing -> published|failed) belongs to
    the asynchronous publisher.
    """

    def __init__(
        self,
        users: IUserRepository,
        posts: IPostRepository,
        quota: QuotaAccounting,
        connections: PlatformConnectionRegistry,
        require_connected_platforms: bool = True,
    ):
        self._users = users
        self._posts = posts
        self._quota = quota
        self._connections = connections
        self._require_connected_platforms = require_connected_platforms

    async def create_post(
        self,
        user_id: int,
        request: PostCreateRequest,
        now: Optional[datetime] = None,
    ) -> PostCreateResponse:
        """
        Check entitlements in a fixed order, then commit the post aggregate.

        Checks, first violation wins: daily quota, platform count, content
        type, scheduling, connected accounts. No row is written before all
        of them pass.

        Raises:
            QuotaExceeded, PlatformLimitExceeded, ContentTypeNotAllowed,
            SchedulingNotAllowed, PlatformNotConnected
        """
        now = now or datetime.now(timezone.utc)

        # Row lock serializes concurrent creates until this transaction ends
        user = await self._users.lock_for_update(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", operation="create_post", table="users")

        tier = user.subscription_tier
        profile = effective_limits(tier, user.pro_post_limit)

        if profile.daily_posts is not None:
            used = await self._quota.used_today(user.id, now)
            if used >= profile.daily_posts:
                logger.info(f"User {user.id} hit daily limit {profile.daily_posts} ({tier.value})")
                raise QuotaExceeded(limit=profile.daily_posts, tier=tier.value)

        if profile.platforms is not None and len(request.platforms) > profile.platforms:
            raise PlatformLimitExceeded(
                limit=profile.platforms,
                requested=len(request.platforms),
                tier=tier.value,
            )

        if request.content_type not in profile.content_types:
            raise ContentTypeNotAllowed(content_type=request.content_type.value, tier=tier.value)

        if request.scheduled_at is not None and not profile.can_schedule:
            raise SchedulingNotAllowed(tier=tier.value)

        if self._require_connected_platforms:
            connected = await self._connections.active_platforms(user.id)
            missing = [p.value for p in request.platforms if p not in connected]
            if missing:
                raise PlatformNotConnected(missing)

        scheduled = request.scheduled_at is not None
        post = Post(
            user_id=user.id,
            caption=request.caption or "",
            content_type=request.content_type,
            media_urls=list(request.media_urls),
            media_keys=list(request.media_keys),
            status=PostStatus.SCHEDULED if scheduled else PostStatus.PUBLISHED,
            scheduled_at=request.scheduled_at,
            published_at=None if scheduled else now,
            created_at=now,
            updated_at=now,
        )
        target_status = (
            PlatformTargetStatus.PENDING if scheduled else PlatformTargetStatus.PUBLISHED
        )

        created = await self._posts.create_with_targets(post, list(request.platforms), target_status)

        logger.info(
            f"User {user.id} created {request.content_type.value} post {created.id} "
            f"({created.status.value}) for {', '.join(p.value for p in request.platforms)}"
        )
        return PostCreateResponse(post_id=created.id, status=created.status)

    async def cancel_post(self, user_id: int, post_id: int) -> Post:
        """
        Cancel a scheduled post and fail its pending platform targets.

        Raises:
            PostNotFoundError: missing or owned by another user
            InvalidStateTransition: the post is not scheduled
        """
        post = await self._posts.get_for_user(post_id, user_id)
        if post is None:
            raise PostNotFoundError(post_id)

        if post.status != PostStatus.SCHEDULED:
            raise InvalidStateTransition(
                "Only scheduled posts can be cancelled",
                current_status=post.status.value,
                target_status=PostStatus.CANCELLED.value,
            )

        cancelled = await self._posts.mark_cancelled(post_id, CANCELLED_TARGET_REASON)
        logger.info(f"User {user_id} cancelled post {post_id}")
        return cancelled

    async def list_posts(
        self,
        user_id: int,
        status: Optional[PostStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Post]:
        return await self._posts.list_by_user(user_id, status=status, limit=limit, offset=offset)


class SubscriptionProjection:
    """Read-only view of a user's tier, usage, and capabilities."""

    def __init__(self, quota: QuotaAccounting):
        self._quota = quota

    async def current_view(self, user: User, now: Optional[datetime] = None) -> SubscriptionView:
        profile = effective_limits(user.subscription_tier, user.pro_post_limit)
        usage = await self._quota.daily_usage(user, now)

        return SubscriptionView(
            tier=user.subscription_tier,
            status=user.subscription_status or "active",
            expires_at=user.subscription_expires_at,
            stripe_subscription_id=user.stripe_subscription_id,
            daily_used=usage.used,
            daily_limit=usage.limit,
            unlimited=usage.unlimited,
            platform_limit=profile.platforms,
            allowed_content_types=[ct for ct in ContentType if ct in profile.content_types],
            can_schedule=profile.can_schedule,
            has_analytics=profile.has_analytics,
        )


class MetricsService:
    """Aggregates engagement metrics for analytics-enabled tiers."""

    def __init__(self, metrics: IPostMetricRepository):
        self._metrics = metrics

    async def overview(self, user: User) -> MetricsOverview:
        if not limits_for(user.subscription_tier).has_analytics:
            raise AnalyticsNotAllowed(tier=user.subscription_tier.value)

        rows = await self._metrics.list_for_user(user.id)

        totals = MetricTotals()
        by_platform: dict[Platform, MetricTotals] = {}
        for row in rows:
            totals = totals.add(row)
            by_platform[row.platform] = by_platform.get(row.platform, MetricTotals()).add(row)

        return MetricsOverview(
            totals=totals,
            by_platform=by_platform,
            recent_metrics=rows[:RECENT_METRICS_LIMIT],
        )
