"""
Custom Exceptions for Liftx

Hierarchical exception classes for proper error handling across layers.
Every error carries a machine ``code`` and a human ``message``; entitlement
messages are matched by the frontend, so their wording is stable.
"""

from typing import Optional, Dict, Any, Iterable


class LiftxError(Exception):
    """Base exception for all Liftx errors."""

    code = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(LiftxError):
    """Raised when input validation fails."""
    code = "BAD_REQUEST"


class ConfigurationError(LiftxError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)


# =============================================================================
# Persistence
# =============================================================================

class DatabaseError(LiftxError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    code = "NOT_FOUND"


class DependencyUnavailable(DatabaseError):
    """
    Raised when the backing store cannot be reached.

    Callers must fail closed: no writes and no zero-usage defaults.
    """
    code = "SERVICE_UNAVAILABLE"


# =============================================================================
# Entitlements
# =============================================================================

class EntitlementError(LiftxError):
    """A tier-derived limit or permission was violated."""
    code = "FORBIDDEN"


class QuotaExceeded(EntitlementError):
    """Daily post cap reached for the tier."""

    def __init__(self, limit: int, tier: str):
        super().__init__(
            f"Daily post limit of {limit} reached for your {tier} plan. Upgrade to post more.",
            details={"limit": limit, "tier": tier},
        )


class PlatformLimitExceeded(EntitlementError):
    """Too many platforms selected for one post."""

    def __init__(self, limit: int, requested: int, tier: str):
        super().__init__(
            f"Your {tier} plan allows up to {limit} platforms per post.",
            details={"limit": limit, "requested": requested, "tier": tier},
        )


class ContentTypeNotAllowed(EntitlementError):
    """The tier does not permit this content type."""

    def __init__(self, content_type: str, tier: str):
        super().__init__(
            f'Content type "{content_type}" is not available on your {tier} plan.',
            details={"content_type": content_type, "tier": tier},
        )


class SchedulingNotAllowed(EntitlementError):
    """The tier cannot schedule posts."""

    def __init__(self, tier: str):
        super().__init__(
            "Scheduling is not available on the Trial plan. Upgrade to Pro or Ultra Pro.",
            details={"tier": tier},
        )


class PlatformNotConnected(EntitlementError):
    """A target platform has no active connected account."""

    def __init__(self, platforms: Iterable[str]):
        missing = sorted(platforms)
        noun = "account" if len(missing) == 1 else "accounts"
        super().__init__(
            f"Connect your {', '.join(missing)} {noun} before posting.",
            details={"platforms": missing},
        )


class AnalyticsNotAllowed(EntitlementError):
    """Metrics requested on a tier without analytics."""

    def __init__(self, tier: str):
        super().__init__(
            "Real-time metrics are available for Ultra Pro subscribers only.",
            details={"tier": tier},
        )


# =============================================================================
# Post lifecycle
# =============================================================================

class InvalidStateTransition(LiftxError):
    """Raised when a post cannot move to the requested state."""
    code = "BAD_REQUEST"

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
    ):
        details = {}
        if current_status:
            details["current_status"] = current_status
        if target_status:
            details["target_status"] = target_status
        super().__init__(message, details)


class PostNotFoundError(InvalidStateTransition):
    """The post does not exist or belongs to someone else."""
    code = "NOT_FOUND"

    def __init__(self, post_id: int):
        super().__init__("Post not found")
        self.details = {"post_id": post_id}


# =============================================================================
# Billing
# =============================================================================

class BillingError(LiftxError):
    """Raised when the payment provider rejects or fails a request."""
    code = "BAD_GATEWAY"
