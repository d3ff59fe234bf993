"""
Post API Routes

Create, list and cancel posts, plus the daily usage read.
Entitlement failures raise EntitlementError and are rendered as 403 by
the application-level handler.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from app.api.dependencies import CurrentUserDep, PostLifecycleDep, QuotaDep
from app.domain.models import (
    PLATFORM_CONTENT_TYPES,
    CancelPostRequest,
    Platform,
    Post,
    PostCreateRequest,
    PostCreateResponse,
    PostStatus,
    SuccessResponse,
)
from app.domain.subscription import ContentType, DailyUsageResponse
from app.infrastructure.notifications import OwnerNotifier, get_owner_notifier


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/posts", response_model=list[Post])
async def list_posts(
    user: CurrentUserDep,
    service: PostLifecycleDep,
    status: Optional[PostStatus] = Query(default=None),
    limit: int = Query(default=20, ge=1, le=50),
    offset: int = Query(default=0, ge=0),
):
    """List the current user's posts, newest first."""
    return await service.list_posts(user.id, status=status, limit=limit, offset=offset)


@router.post("/posts", response_model=PostCreateResponse)
async def create_post(
    request: PostCreateRequest,
    user: CurrentUserDep,
    service: PostLifecycleDep,
    background_tasks: BackgroundTasks,
    notifier: OwnerNotifier = Depends(get_owner_notifier),
):
    """
    Create a post for immediate publish or for a future time.

    Checks run in a fixed order (quota, platform count, content type,
    scheduling, connected accounts); the first failure is returned.
    """
    result = await service.create_post(user.id, request)

    platforms = ", ".join(p.value for p in request.platforms)
    if result.status == PostStatus.SCHEDULED:
        title = "New Scheduled Post"
        content = (
            f"{user.display_name} scheduled a {request.content_type.value} post "
            f"for {request.scheduled_at.isoformat()} on {platforms}."
        )
    else:
        title = "New Post Published"
        content = f"{user.display_name} published a {request.content_type.value} post on {platforms}."
    background_tasks.add_task(notifier.notify, title, content)

    return result


@router.post("/posts/cancel", response_model=SuccessResponse)
async def cancel_post(
    request: CancelPostRequest,
    user: CurrentUserDep,
    service: PostLifecycleDep,
):
    """Cancel a scheduled post. Only ``scheduled`` posts can be cancelled."""
    await service.cancel_post(user.id, request.post_id)
    return SuccessResponse()


@router.get("/posts/daily-usage", response_model=DailyUsageResponse)
async def get_daily_usage(user: CurrentUserDep, quota: QuotaDep):
    usage = await quota.daily_usage(user)
    return DailyUsageResponse(**usage.model_dump(), tier=user.subscription_tier)


@router.get("/posts/platform-content-types", response_model=dict[Platform, list[ContentType]])
async def get_platform_content_types():
    """Content types each platform accepts (public)."""
    return {platform: list(types) for platform, types in PLATFORM_CONTENT_TYPES.items()}
