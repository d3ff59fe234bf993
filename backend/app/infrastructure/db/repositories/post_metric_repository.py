"""
Post Metric Repository

Read access to engagement metrics of a user's posts.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import Platform, PostMetric
from app.domain.repositories import IPostMetricRepository
from app.infrastructure.db.models.post import PostModel
from app.infrastructure.db.models.post_metric import PostMetricModel
from app.infrastructure.db.repositories.base_repository import BaseRepository


class PostMetricRepository(BaseRepository[PostMetricModel], IPostMetricRepository):
    """Repository for post_metrics."""

    def __init__(self, session: AsyncSession):
        super().__init__(PostMetricModel, session)

    async def list_for_user(self, user_id: int) -> List[PostMetric]:
        stmt = (
            select(PostMetricModel)
            .join(PostModel, PostModel.id == PostMetricModel.post_id)
            .where(PostModel.user_id == user_id)
            .order_by(PostMetricModel.fetched_at.desc(), PostMetricModel.id.desc())
        )
        result = await self.execute(stmt, "list_for_user")
        return [
            PostMetric(
                id=m.id,
                post_id=m.post_id,
                post_platform_id=m.post_platform_id,
                platform=Platform(m.platform),
                impressions=m.impressions or 0,
                reach=m.reach or 0,
                likes=m.likes or 0,
                comments=m.comments or 0,
                shares=m.shares or 0,
                clicks=m.clicks or 0,
                saves=m.saves or 0,
                estimated_revenue=m.estimated_revenue or "0.00",
                fetched_at=m.fetched_at,
            )
            for m in result.scalars().all()
        ]
