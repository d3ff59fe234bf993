"""
Connected Account Repository

Data access for linked social accounts. Rows are never deleted;
disconnecting clears ``is_active``.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import ConnectedAccount, Platform
from app.domain.repositories import IConnectedAccountRepository
from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.connected_account import ConnectedAccountModel
from app.infrastructure.db.repositories.base_repository import BaseRepository


class ConnectedAccountRepository(
    BaseRepository[ConnectedAccountModel], IConnectedAccountRepository
):
    """
    Repository for connected_accounts.

    The (user_id, platform) pair is unique, so reconnecting updates the
    existing row instead of inserting a duplicate.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(ConnectedAccountModel, session)

    async def list_active(self, user_id: int) -> List[ConnectedAccount]:
        stmt = (
            select(ConnectedAccountModel)
            .where(
                ConnectedAccountModel.user_id == user_id,
                ConnectedAccountModel.is_active.is_(True),
            )
            .order_by(ConnectedAccountModel.platform)
        )
        result = await self.execute(stmt, "list_active")
        return [self._to_domain(m) for m in result.scalars().all()]

    async def upsert(self, account: ConnectedAccount) -> ConnectedAccount:
        """
        Insert or reactivate the (user, platform) row with the latest fields.

        A single ``INSERT ... ON CONFLICT DO UPDATE``, so two concurrent
        first connects end with one row instead of a unique violation.

        Args:
            account: Account with the fields captured at connect time

        Returns:
            The stored account
        """
        now = utcnow()
        fields = {
            "platform_user_id": account.platform_user_id,
            "platform_username": account.platform_username,
            "platform_display_name": account.platform_display_name,
            "platform_avatar_url": account.platform_avatar_url,
            "is_active": True,
            "updated_at": now,
        }
        stmt = self.insert().values(
            user_id=account.user_id,
            platform=account.platform.value,
            created_at=now,
            **fields,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "platform"],
            set_=fields,
        )
        await self.execute(stmt, "upsert")

        model = await self._get_model_for(account.user_id, account.platform)
        await self.session.refresh(model)
        return self._to_domain(model)

    async def deactivate(self, user_id: int, platform: Platform) -> bool:
        """
        Soft-deactivate an account.

        Returns:
            True if an active row was deactivated
        """
        model = await self._get_model_for(user_id, platform)
        if model is None or not model.is_active:
            return False

        model.is_active = False
        model.updated_at = utcnow()
        self.session.add(model)
        await self.flush("deactivate")
        return True

    async def _get_model_for(
        self, user_id: int, platform: Platform
    ) -> Optional[ConnectedAccountModel]:
        stmt = select(ConnectedAccountModel).where(
            ConnectedAccountModel.user_id == user_id,
            ConnectedAccountModel.platform == platform.value,
        )
        result = await self.execute(stmt, "get_for_platform")
        return result.scalar_one_or_none()

    def _to_domain(self, model: ConnectedAccountModel) -> ConnectedAccount:
        """Convert database model to domain entity (token material stays behind)."""
        return ConnectedAccount(
            id=model.id,
            user_id=model.user_id,
            platform=Platform(model.platform),
            platform_user_id=model.platform_user_id,
            platform_username=model.platform_username,
            platform_display_name=model.platform_display_name,
            platform_avatar_url=model.platform_avatar_url,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
