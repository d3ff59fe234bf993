"""
Post Metric Database Model

Engagement counters written by the external metrics fetcher.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime
from sqlmodel import Field, SQLModel

from app.infrastructure.db.models.base import utcnow


class PostMetricModel(SQLModel, table=True):
    """Metrics snapshot for one post on one platform."""

    __tablename__ = "post_metrics"

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True, nullable=False)
    post_platform_id: int = Field(foreign_key="post_platforms.id", nullable=False)
    platform: str = Field(max_length=16, nullable=False)

    impressions: int = Field(default=0, sa_type=BigInteger)
    reach: int = Field(default=0, sa_type=BigInteger)
    likes: int = Field(default=0, sa_type=BigInteger)
    comments: int = Field(default=0, sa_type=BigInteger)
    shares: int = Field(default=0, sa_type=BigInteger)
    clicks: int = Field(default=0, sa_type=BigInteger)
    saves: int = Field(default=0, sa_type=BigInteger)
    estimated_revenue: str = Field(default="0.00", max_length=32)

    fetched_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
