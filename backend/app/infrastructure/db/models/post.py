"""
Post Database Models

SQLModel tables for posts and their per-platform fan-out rows.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.infrastructure.db.models.base import BaseModel, utcnow


class PostModel(BaseModel, table=True):
    """
    Posts table.

    ``media_urls`` and ``media_keys`` are index-aligned JSON arrays.
    """

    __tablename__ = "posts"

    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    caption: Optional[str] = Field(default=None)
    content_type: str = Field(max_length=16, nullable=False)
    media_urls: List[str] = Field(default_factory=list, sa_type=JSON)
    media_keys: List[str] = Field(default_factory=list, sa_type=JSON)
    status: str = Field(default="draft", max_length=16, index=True)
    scheduled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    published_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    failure_reason: Optional[str] = Field(default=None)


class PostPlatformModel(SQLModel, table=True):
    """One row per platform a post targets."""

    __tablename__ = "post_platforms"
    __table_args__ = (
        UniqueConstraint("post_id", "platform", name="uq_post_platforms_post_platform"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    post_id: int = Field(foreign_key="posts.id", index=True, nullable=False)
    platform: str = Field(max_length=16, nullable=False)
    status: str = Field(default="pending", max_length=16)
    platform_post_id: Optional[str] = Field(default=None, max_length=256)
    published_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    failure_reason: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
