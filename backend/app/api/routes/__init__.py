# API Routes Module
from app.api.routes import (
    auth,
    posts,
    platforms,
    subscriptions,
    webhooks,
    uploads,
    metrics,
)

__all__ = [
    "auth",
    "posts",
    "platforms",
    "subscriptions",
    "webhooks",
    "uploads",
    "metrics",
]
