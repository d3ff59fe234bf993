"""
Database Infrastructure Package for Liftx

Exports database utilities and dependency providers.
"""

from app.infrastructure.db.database import (
    DatabaseManager,
    get_db_manager,
    get_session,
    init_db,
    close_db,
)

from app.infrastructure.db.dependencies import (
    SessionDep,
    UserRepoDep,
    PostRepoDep,
    ConnectedAccountRepoDep,
    PostMetricRepoDep,
    WebhookEventRepoDep,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "get_db_manager",
    "get_session",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "UserRepoDep",
    "PostRepoDep",
    "ConnectedAccountRepoDep",
    "PostMetricRepoDep",
    "WebhookEventRepoDep",
]
