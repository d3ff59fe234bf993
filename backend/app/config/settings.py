"""
Application Settings for Liftx

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    QUOTA_TIMEZONE decides where "today" starts for the daily post quota.
    REQUIRE_CONNECTED_PLATFORMS makes an active connected account a hard
    precondition for targeting a platform.
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    frontend_url: str = "http://localhost:5173"
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    # Authentication (JWT issued by the identity provider)
    jwt_secret: Optional[str] = None
    jwt_issuer: Optional[str] = None
    jwt_audience: str = "authenticated"
    jwks_url: Optional[str] = None
    owner_open_id: Optional[str] = None

    # Stripe Configuration
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_price_id_pro_monthly: Optional[str] = None
    stripe_price_id_pro_yearly: Optional[str] = None
    stripe_price_id_ultra_monthly: Optional[str] = None
    stripe_price_id_ultra_yearly: Optional[str] = None

    # Posting policy
    quota_timezone: str = "UTC"
    require_connected_platforms: bool = True
    allow_simulated_upgrades: bool = True

    # Media storage
    media_root: str = "./media"
    media_base_url: str = "http://localhost:8000/media"
    max_upload_bytes: int = 100 * 1024 * 1024

    # Owner notifications (best effort)
    owner_notification_url: Optional[str] = None
    owner_notification_timeout: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_policy(self) -> "Settings":
        """Validate timezone and production-only requirements."""
        try:
            ZoneInfo(self.quota_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown QUOTA_TIMEZONE: {self.quota_timezone}")

        if self.is_production:
            if not self.stripe_secret_key or not self.stripe_webhook_secret:
                raise ValueError(
                    "STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET are required in production"
                )
            if not self.jwt_secret and not self.jwks_url:
                raise ValueError("JWT_SECRET or JWKS_URL is required in production")

        return self

    @property
    def quota_zone(self) -> ZoneInfo:
        """Timezone used to compute the start of the quota day."""
        return ZoneInfo(self.quota_timezone)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
