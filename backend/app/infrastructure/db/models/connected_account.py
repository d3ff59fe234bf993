"""
Connected Account Database Model

Linked social accounts. Token material is stored opaquely.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from app.infrastructure.db.models.base import BaseModel


class ConnectedAccountModel(BaseModel, table=True):
    """
    Connected accounts table.

    One row per (user, platform); disconnecting clears ``is_active``.
    """

    __tablename__ = "connected_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "platform", name="uq_connected_accounts_user_platform"),
    )

    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)
    platform: str = Field(max_length=16, nullable=False)
    platform_user_id: Optional[str] = Field(default=None, max_length=128)
    platform_username: Optional[str] = Field(default=None, max_length=128)
    platform_display_name: Optional[str] = Field(default=None)
    platform_avatar_url: Optional[str] = Field(default=None)
    access_token: Optional[str] = Field(default=None)
    refresh_token: Optional[str] = Field(default=None)
    token_expires_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    is_active: bool = Field(default=True, nullable=False)
