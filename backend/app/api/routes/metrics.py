"""
Metrics API Routes

Engagement overview for analytics-enabled tiers.
"""

from fastapi import APIRouter

from app.api.dependencies import CurrentUserDep, MetricsServiceDep
from app.domain.models import MetricsOverview


router = APIRouter()


@router.get("/metrics/overview", response_model=MetricsOverview)
async def get_metrics_overview(user: CurrentUserDep, service: MetricsServiceDep):
    """
    Totals, per-platform totals, and the most recent metric rows.

    Raises AnalyticsNotAllowed (403) below Ultra Pro.
    """
    return await service.overview(user)
