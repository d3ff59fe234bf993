"""
User Repository

Data access for users and their subscription state.
Maps UserModel rows to the User domain entity.
"""

import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import User, UserRole
from app.domain.repositories import IUserRepository
from app.domain.subscription import SubscriptionTier
from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.user import UserModel
from app.infrastructure.db.repositories.base_repository import BaseRepository


logger = logging.getLogger(__name__)

SUBSCRIPTION_FIELDS = frozenset({
    "subscription_tier",
    "stripe_customer_id",
    "stripe_subscription_id",
    "subscription_status",
    "subscription_expires_at",
    "pro_post_limit",
})


class UserRepository(BaseRepository[UserModel], IUserRepository):
    """
    Repository for user rows.

    Subscription writes come from the billing webhook and the
    tier-change endpoint; both are last-write-wins.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(UserModel, session)

    # =========================================================================
    # Query Methods
    # =========================================================================

    async def get_by_id(self, user_id: int) -> Optional[User]:
        model = await self.get_model(user_id)
        return self._to_domain(model) if model else None

    async def get_by_open_id(self, open_id: str) -> Optional[User]:
        model = await self._get_model_by_open_id(open_id)
        return self._to_domain(model) if model else None

    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[User]:
        """
        Get a user by Stripe customer ID.

        Args:
            customer_id: Stripe customer ID

        Returns:
            User domain model or None
        """
        stmt = select(UserModel).where(UserModel.stripe_customer_id == customer_id)
        result = await self.execute(stmt, "get_by_stripe_customer_id")
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def lock_for_update(self, user_id: int) -> Optional[User]:
        """
        Load a user with SELECT ... FOR UPDATE.

        The lock is held until the request transaction commits, which
        serializes quota checks of concurrent creates by the same user.
        """
        stmt = select(UserModel).where(UserModel.id == user_id).with_for_update()
        result = await self.execute(stmt, "lock_for_update")
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    # =========================================================================
    # Command Methods
    # =========================================================================

    async def upsert_on_login(
        self,
        open_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        login_method: Optional[str] = None,
        is_owner: bool = False,
    ) -> User:
        """
        Create the user on first authentication, else refresh profile fields.

        Args:
            open_id: External identity (token subject)
            is_owner: Grants the admin role

        Returns:
            The stored user
        """
        now = utcnow()
        model = await self._get_model_by_open_id(open_id)

        if model is None:
            # Concurrent first logins race here; the loser's insert is a no-op
            stmt = self.insert().values(
                open_id=open_id,
                name=name,
                email=email,
                login_method=login_method,
                role=UserRole.ADMIN.value if is_owner else UserRole.USER.value,
                subscription_tier=SubscriptionTier.TRIAL.value,
                subscription_status="active",
                last_signed_in=now,
                created_at=now,
                updated_at=now,
            ).on_conflict_do_nothing(index_elements=["open_id"])
            result = await self.execute(stmt, "create")

            model = await self._get_model_by_open_id(open_id)
            if result.rowcount == 1:
                logger.info(f"Created user {model.id} for identity {open_id}")
                return self._to_domain(model)

        if name is not None:
            model.name = name
        if email is not None:
            model.email = email
        if login_method is not None:
            model.login_method = login_method
        if is_owner:
            model.role = UserRole.ADMIN.value
        model.last_signed_in = now

        self.session.add(model)
        await self.flush("login")
        return self._to_domain(model)

    async def update_subscription(self, user_id: int, **fields: Any) -> Optional[User]:
        """
        Update subscription fields of a user.

        Returns:
            Updated user or None if not found
        """
        model = await self.get_model(user_id)
        if model is None:
            return None
        return await self._apply_subscription(model, fields)

    async def update_subscription_by_customer(
        self, customer_id: str, **fields: Any
    ) -> Optional[User]:
        """Update subscription fields of the user owning a Stripe customer."""
        stmt = select(UserModel).where(UserModel.stripe_customer_id == customer_id)
        result = await self.execute(stmt, "get_by_stripe_customer_id")
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return await self._apply_subscription(model, fields)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_model_by_open_id(self, open_id: str) -> Optional[UserModel]:
        stmt = select(UserModel).where(UserModel.open_id == open_id)
        result = await self.execute(stmt, "get_by_open_id")
        return result.scalar_one_or_none()

    async def _apply_subscription(self, model: UserModel, fields: dict) -> User:
        unknown = set(fields) - SUBSCRIPTION_FIELDS
        if unknown:
            raise ValueError(f"Not subscription fields: {sorted(unknown)}")

        for field, value in fields.items():
            if isinstance(value, SubscriptionTier):
                value = value.value
            setattr(model, field, value)
        model.updated_at = utcnow()

        self.session.add(model)
        await self.flush("update_subscription")
        logger.info(f"Updated subscription for user {model.id}: {sorted(fields)}")
        return self._to_domain(model)

    def _to_domain(self, model: UserModel) -> User:
        """Convert database model to domain entity."""
        return User(
            id=model.id,
            open_id=model.open_id,
            name=model.name,
            email=model.email,
            avatar_url=model.avatar_url,
            login_method=model.login_method,
            role=UserRole(model.role) if model.role else UserRole.USER,
            subscription_tier=SubscriptionTier(model.subscription_tier or SubscriptionTier.TRIAL.value),
            stripe_customer_id=model.stripe_customer_id,
            stripe_subscription_id=model.stripe_subscription_id,
            subscription_status=model.subscription_status or "active",
            subscription_expires_at=model.subscription_expires_at,
            pro_post_limit=model.pro_post_limit,
            created_at=model.created_at,
            updated_at=model.updated_at,
            last_signed_in=model.last_signed_in,
        )
