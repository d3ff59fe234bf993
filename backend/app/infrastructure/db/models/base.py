"""
Base Model for SQLModel ORM

Provides common fields and behavior for all database models.
Follows Single Responsibility Principle - only defines base schema.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """
    Mixin providing timestamp fields for models.

    Follows Interface Segregation - separates timestamp concern.
    """

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        description="Record creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utcnow},
        description="Last update timestamp (UTC)"
    )


class IntIDMixin(SQLModel):
    """
    Mixin providing an autoincrement integer primary key.

    Follows Single Responsibility - only handles ID generation.
    """

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        description="Autoincrement identifier"
    )


class BaseModel(IntIDMixin, TimestampMixin):
    """
    Base model combining integer ID and timestamp mixins.

    Table models inherit from this class.
    Provides: id, created_at, updated_at
    """
