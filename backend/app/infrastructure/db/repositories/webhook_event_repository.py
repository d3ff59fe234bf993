"""
Webhook Event Repository

DB-backed idempotency for Stripe webhook processing (survives restarts).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.webhook_event import ProcessedWebhookEventModel
from app.infrastructure.db.repositories.base_repository import BaseRepository


class WebhookEventRepository(BaseRepository[ProcessedWebhookEventModel]):
    """Tracks which Stripe events have been handled."""

    def __init__(self, session: AsyncSession):
        super().__init__(ProcessedWebhookEventModel, session)

    async def is_processed(self, event_id: str) -> bool:
        """Check if a webhook event has already been processed."""
        stmt = select(ProcessedWebhookEventModel.event_id).where(
            ProcessedWebhookEventModel.event_id == event_id
        )
        result = await self.execute(stmt, "is_processed")
        return result.scalar_one_or_none() is not None

    async def mark_processed(self, event_id: str, event_type: str) -> None:
        """Record a processed webhook event."""
        stmt = (
            self.insert()
            .values(event_id=event_id, event_type=event_type, processed_at=utcnow())
            .on_conflict_do_nothing(index_elements=["event_id"])
        )
        await self.execute(stmt, "mark_processed")
