"""
Domain Models for Liftx

Pure Python/Pydantic models with no framework dependencies.
These models define the core business entities and validation rules
for users, posts, per-platform fan-out rows, and connected accounts.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from app.domain.subscription import CamelModel, ContentType, SubscriptionTier


class Platform(str, Enum):
    """Supported social networks."""
    LINKEDIN = "linkedin"
    INSTAGRAM = "instagram"
    X = "x"
    FACEBOOK = "facebook"
    TIKTOK = "tiktok"


class PostStatus(str, Enum):
    """Overall status of a post."""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PlatformTargetStatus(str, Enum):
    """Status of one platform fan-out row."""
    PENDING = "pending"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    FAILED = "failed"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


# Content types each network accepts (compose-time hint only)
PLATFORM_CONTENT_TYPES: Mapping[Platform, tuple[ContentType, ...]] = MappingProxyType({
    Platform.LINKEDIN: (ContentType.TEXT, ContentType.IMAGE, ContentType.CAROUSEL, ContentType.VIDEO),
    Platform.INSTAGRAM: (ContentType.IMAGE, ContentType.CAROUSEL, ContentType.VIDEO, ContentType.REEL, ContentType.STORY),
    Platform.X: (ContentType.TEXT, ContentType.IMAGE, ContentType.VIDEO),
    Platform.FACEBOOK: (ContentType.TEXT, ContentType.IMAGE, ContentType.CAROUSEL, ContentType.VIDEO, ContentType.STORY),
    Platform.TIKTOK: (ContentType.VIDEO, ContentType.REEL),
})


# =============================================================================
# Entities
# =============================================================================

class User(CamelModel):
    """Authenticated user with subscription state."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    login_method: Optional[str] = None
    role: UserRole = UserRole.USER
    subscription_tier: SubscriptionTier = SubscriptionTier.TRIAL
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    subscription_status: str = "active"
    subscription_expires_at: Optional[datetime] = None
    pro_post_limit: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.open_id


class PostPlatformTarget(CamelModel):
    """One platform fan-out row of a post."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    post_id: Optional[int] = None
    platform: Platform
    status: PlatformTargetStatus = PlatformTargetStatus.PENDING
    platform_post_id: Optional[str] = None
    published_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class Post(CamelModel):
    """A composed post with its per-platform targets."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: int
    caption: Optional[str] = None
    content_type: ContentType
    media_urls: list[str] = Field(default_factory=list)
    media_keys: list[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    scheduled_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    platforms: list[PostPlatformTarget] = Field(default_factory=list)


class ConnectedAccount(CamelModel):
    """A linked external identity used for fan-out."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: int
    platform: Platform
    platform_user_id: Optional[str] = None
    platform_username: Optional[str] = None
    platform_display_name: Optional[str] = None
    platform_avatar_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostMetric(CamelModel):
    """Engagement counters for one post on one platform."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    post_id: int
    post_platform_id: int
    platform: Platform
    impressions: int = 0
    reach: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    clicks: int = 0
    saves: int = 0
    estimated_revenue: str = "0.00"
    fetched_at: Optional[datetime] = None


# =============================================================================
# Request/Response DTOs
# =============================================================================

class PostCreateRequest(CamelModel):
    """
    Validated input for creating a post.

    Platforms must be 1..5 distinct values, media lists index-aligned, and
    a schedule time, when given, strictly in the future.
    """
    caption: Optional[str] = None
    content_type: ContentType
    media_urls: list[str] = Field(default_factory=list)
    media_keys: list[str] = Field(default_factory=list)
    platforms: list[Platform] = Field(..., min_length=1, max_length=len(Platform))
    scheduled_at: Optional[datetime] = None

    @field_validator("platforms")
    @classmethod
    def validate_distinct_platforms(cls, v: list[Platform]) -> list[Platform]:
        if len(set(v)) != len(v):
            raise ValueError("Each platform can only be selected once")
        return v

    @field_validator("scheduled_at")
    @classmethod
    def validate_future_schedule(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("scheduledAt must be in the future")
        return v

    @model_validator(mode="after")
    def validate_media(self) -> "PostCreateRequest":
        if len(self.media_urls) != len(self.media_keys):
            raise ValueError("mediaUrls and mediaKeys must have the same length")
        if self.content_type != ContentType.TEXT and not self.media_urls:
            raise ValueError(
                f"At least one media item is required for {self.content_type.value} posts"
            )
        return self


class PostCreateResponse(CamelModel):
    post_id: int
    status: PostStatus


class CancelPostRequest(CamelModel):
    post_id: int


class SuccessResponse(CamelModel):
    success: bool = True


class ConnectPlatformRequest(CamelModel):
    """Profile fields captured when linking an account."""
    platform: Platform
    platform_user_id: Optional[str] = None
    platform_username: Optional[str] = None
    platform_display_name: Optional[str] = None
    platform_avatar_url: Optional[str] = None


class DisconnectPlatformRequest(CamelModel):
    platform: Platform


class MetricTotals(CamelModel):
    impressions: int = 0
    reach: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    clicks: int = 0
    saves: int = 0
    estimated_revenue: str = "0.00"

    def add(self, metric: PostMetric) -> "MetricTotals":
        revenue = Decimal(self.estimated_revenue) + Decimal(metric.estimated_revenue or "0")
        return MetricTotals(
            impressions=self.impressions + metric.impressions,
            reach=self.reach + metric.reach,
            likes=self.likes + metric.likes,
            comments=self.comments + metric.comments,
            shares=self.shares + metric.shares,
            clicks=self.clicks + metric.clicks,
            saves=self.saves + metric.saves,
            estimated_revenue=f"{revenue:.2f}",
        )


class MetricsOverview(CamelModel):
    totals: MetricTotals
    by_platform: dict[Platform, MetricTotals] = Field(default_factory=dict)
    recent_metrics: list[PostMetric] = Field(default_factory=list)


# =============================================================================
# Media uploads
# =============================================================================

MAX_UPLOAD_BYTES = 100 * 1024 * 1024


class UploadUrlRequest(CamelModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=128)
    file_size: int = Field(..., ge=0, le=MAX_UPLOAD_BYTES)


class UploadUrlResponse(CamelModel):
    key: str
    upload_endpoint: str


class UploadResponse(CamelModel):
    success: bool = True
    url: str
    key: str
