"""
SQLModel ORM Models for Liftx

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from app.infrastructure.db.models.base import (
    BaseModel,
    IntIDMixin,
    TimestampMixin,
    utcnow,
)
from app.infrastructure.db.models.user import UserModel
from app.infrastructure.db.models.post import PostModel, PostPlatformModel
from app.infrastructure.db.models.connected_account import ConnectedAccountModel
from app.infrastructure.db.models.post_metric import PostMetricModel
from app.infrastructure.db.models.webhook_event import ProcessedWebhookEventModel


__all__ = [
    # Base
    "BaseModel",
    "IntIDMixin",
    "TimestampMixin",
    "utcnow",
    # Tables
    "UserModel",
    "PostModel",
    "PostPlatformModel",
    "ConnectedAccountModel",
    "PostMetricModel",
    "ProcessedWebhookEventModel",
]
