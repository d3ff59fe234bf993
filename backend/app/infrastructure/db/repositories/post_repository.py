"""
Post Repository

Data access for posts and their per-platform fan-out rows.
A post and its targets are written in the same flush.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import (
    Platform,
    PlatformTargetStatus,
    Post,
    PostPlatformTarget,
    PostStatus,
)
from app.domain.repositories import IPostRepository
from app.domain.subscription import ContentType
from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.post import PostModel, PostPlatformModel
from app.infrastructure.db.repositories.base_repository import BaseRepository
from app.infrastructure.exceptions import NotFoundError


logger = logging.getLogger(__name__)


class PostRepository(BaseRepository[PostModel], IPostRepository):
    """Repository for posts and post_platforms."""

    def __init__(self, session: AsyncSession):
        super().__init__(PostModel, session)

    # =========================================================================
    # Query Methods
    # =========================================================================

    async def count_active_since(self, user_id: int, since: datetime) -> int:
        """
        Count a user's non-cancelled posts created at or after ``since``.

        Raises:
            DependencyUnavailable: database unreachable
        """
        stmt = (
            select(func.count())
            .select_from(PostModel)
            .where(
                PostModel.user_id == user_id,
                PostModel.created_at >= since,
                PostModel.status != PostStatus.CANCELLED.value,
            )
        )
        result = await self.execute(stmt, "count_active_since")
        return int(result.scalar_one() or 0)

    async def get_for_user(self, post_id: int, user_id: int) -> Optional[Post]:
        stmt = select(PostModel).where(
            PostModel.id == post_id,
            PostModel.user_id == user_id,
        )
        result = await self.execute(stmt, "get_for_user")
        model = result.scalar_one_or_none()
        if model is None:
            return None

        targets = await self._targets_by_post([model.id])
        return self._to_domain(model, targets.get(model.id, []))

    async def list_by_user(
        self,
        user_id: int,
        status: Optional[PostStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Post]:
        """
        List a user's posts newest first, each with its targets.

        Args:
            status: Optional status filter
            limit: Page size
            offset: Rows to skip
        """
        stmt = select(PostModel).where(PostModel.user_id == user_id)
        if status is not None:
            stmt = stmt.where(PostModel.status == status.value)
        stmt = stmt.order_by(PostModel.created_at.desc(), PostModel.id.desc()).offset(offset).limit(limit)

        result = await self.execute(stmt, "list_by_user")
        models = list(result.scalars().all())
        if not models:
            return []

        targets = await self._targets_by_post([m.id for m in models])
        return [self._to_domain(m, targets.get(m.id, [])) for m in models]

    # =========================================================================
    # Command Methods
    # =========================================================================

    async def create_with_targets(
        self,
        post: Post,
        platforms: List[Platform],
        target_status: PlatformTargetStatus,
    ) -> Post:
        """
        Insert a post and one target row per platform.

        Published targets share the post's ``published_at``.
        """
        model = PostModel(
            user_id=post.user_id,
            caption=post.caption,
            content_type=post.content_type.value,
            media_urls=list(post.media_urls),
            media_keys=list(post.media_keys),
            status=post.status.value,
            scheduled_at=post.scheduled_at,
            published_at=post.published_at,
            failure_reason=post.failure_reason,
        )
        if post.created_at is not None:
            model.created_at = post.created_at
            model.updated_at = post.created_at

        self.session.add(model)
        await self.flush("create_post")

        target_published_at = (
            post.published_at if target_status == PlatformTargetStatus.PUBLISHED else None
        )
        target_models = [
            PostPlatformModel(
                post_id=model.id,
                platform=platform.value,
                status=target_status.value,
                published_at=target_published_at,
            )
            for platform in platforms
        ]
        self.session.add_all(target_models)
        await self.flush("create_post_platforms")

        return self._to_domain(model, target_models)

    async def mark_cancelled(self, post_id: int, target_failure_reason: str) -> Post:
        """
        Move a post to cancelled and fail its still-pending targets.

        Raises:
            NotFoundError: the post does not exist
        """
        model = await self.get_model(post_id)
        if model is None:
            raise NotFoundError(f"Post {post_id} not found", operation="cancel", table="posts")

        model.status = PostStatus.CANCELLED.value
        model.updated_at = utcnow()
        self.session.add(model)

        stmt = (
            update(PostPlatformModel)
            .where(
                PostPlatformModel.post_id == post_id,
                PostPlatformModel.status == PlatformTargetStatus.PENDING.value,
            )
            .values(
                status=PlatformTargetStatus.FAILED.value,
                failure_reason=target_failure_reason,
            )
            .execution_options(synchronize_session=False)
        )
        await self.execute(stmt, "cancel_post_platforms")
        await self.flush("cancel_post")

        targets = await self._targets_by_post([post_id])
        return self._to_domain(model, targets.get(post_id, []))

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _targets_by_post(self, post_ids: List[int]) -> Dict[int, List[PostPlatformModel]]:
        stmt = (
            select(PostPlatformModel)
            .where(PostPlatformModel.post_id.in_(post_ids))
            .order_by(PostPlatformModel.id)
            # Rows changed by a bulk UPDATE in this session must be reloaded
            .execution_options(populate_existing=True)
        )
        result = await self.execute(stmt, "get_post_platforms")

        grouped: Dict[int, List[PostPlatformModel]] = defaultdict(list)
        for target in result.scalars().all():
            grouped[target.post_id].append(target)
        return grouped

    def _to_domain(self, model: PostModel, targets: List[PostPlatformModel]) -> Post:
        """Convert database rows to the Post aggregate."""
        return Post(
            id=model.id,
            user_id=model.user_id,
            caption=model.caption,
            content_type=ContentType(model.content_type),
            media_urls=list(model.media_urls or []),
            media_keys=list(model.media_keys or []),
            status=PostStatus(model.status),
            scheduled_at=model.scheduled_at,
            published_at=model.published_at,
            failure_reason=model.failure_reason,
            created_at=model.created_at,
            updated_at=model.updated_at,
            platforms=[
                PostPlatformTarget(
                    id=t.id,
                    post_id=t.post_id,
                    platform=Platform(t.platform),
                    status=PlatformTargetStatus(t.status),
                    platform_post_id=t.platform_post_id,
                    published_at=t.published_at,
                    failure_reason=t.failure_reason,
                    created_at=t.created_at,
                )
                for t in targets
            ],
        )
