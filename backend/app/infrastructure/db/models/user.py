"""
User Database Model

SQLModel table for users and their subscription state.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from app.infrastructure.db.models.base import BaseModel, utcnow


class UserModel(BaseModel, table=True):
    """
    Users table.

    Maps to the 'users' table in PostgreSQL. Limits are never stored here;
    they are derived from ``subscription_tier`` on every read.
    """

    __tablename__ = "users"

    # Identity
    open_id: str = Field(max_length=255, unique=True, index=True, nullable=False)
    name: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None, max_length=320)
    avatar_url: Optional[str] = Field(default=None)
    login_method: Optional[str] = Field(default=None, max_length=64)
    role: str = Field(default="user", max_length=16)

    # Subscription
    subscription_tier: str = Field(default="trial", max_length=16)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=128, unique=True, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=128)
    subscription_status: str = Field(default="active", max_length=32)
    subscription_expires_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
    )
    pro_post_limit: Optional[int] = Field(
        default=None,
        description="Per-user override of the pro daily post limit"
    )

    last_signed_in: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
