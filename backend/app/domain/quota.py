"""
Quota Accounting

Daily post allowance computed live from the post store. Nothing is cached:
cancelling a post today frees its slot on the next read.
"""

from datetime import datetime, timezone, tzinfo
from typing import Optional

from app.domain.models import User
from app.domain.repositories import IPostRepository
from app.domain.subscription import DailyUsage, effective_daily_limit


def start_of_local_day(now: datetime, zone: tzinfo) -> datetime:
    """Midnight of ``now``'s calendar day in ``zone``, as an aware UTC datetime."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(zone)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


class QuotaAccounting:
    """
    Computes a user's consumed and remaining daily posts.

    Store failures propagate as DependencyUnavailable from the repository;
    there is no fallback to "0 used".
    """

    def __init__(self, posts: IPostRepository, zone: tzinfo = timezone.utc):
        self._posts = posts
        self._zone = zone

    async def used_today(self, user_id: int, now: Optional[datetime] = None) -> int:
        """Non-cancelled posts created since local midnight."""
        now = now or datetime.now(timezone.utc)
        since = start_of_local_day(now, self._zone)
        return await self._posts.count_active_since(user_id, since)

    async def daily_usage(self, user: User, now: Optional[datetime] = None) -> DailyUsage:
        used = await self.used_today(user.id, now)
        limit = effective_daily_limit(user.subscription_tier, user.pro_post_limit)

        if limit is None:
            return DailyUsage(used=used, limit=None, unlimited=True, remaining=None)

        return DailyUsage(
            used=used,
            limit=limit,
            unlimited=False,
            remaining=max(0, limit - used),
        )
