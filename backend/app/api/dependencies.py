"""
API Dependencies

FastAPI dependency injection for authentication and common services.

Security: JWT tokens are verified cryptographically, via the identity
provider's JWKS (RS256/ES256) when JWKS_URL is set, with HS256 via
JWT_SECRET otherwise. Never decode without verification.
"""

import logging
from typing import Annotated, Any, Dict, Optional

import jwt
from jwt import PyJWKClient
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config.settings import get_settings
from app.domain.models import User
from app.infrastructure.db.dependencies import UserRepoDep


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ASYMMETRIC_ALGORITHMS = ["RS256", "ES256"]

# Cached JWKS client; PyJWKClient caches keys internally.
_jwks_client: Optional[PyJWKClient] = None


def _get_jwks_client(jwks_url: str) -> PyJWKClient:
    """Return a singleton PyJWKClient for the configured JWKS endpoint."""
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = PyJWKClient(jwks_url, cache_keys=True)
    return _jwks_client


def _decode_options(issuer: Optional[str]) -> Dict[str, Any]:
    required = ["exp", "sub"]
    if issuer:
        required.append("iss")
    return {"require": required}


def _decode_with_jwks(token: str, jwks_url: str, issuer: Optional[str], audience: str) -> dict:
    """Verify JWT using the JWKS endpoint (asymmetric keys)."""
    client = _get_jwks_client(jwks_url)
    signing_key = client.get_signing_key_from_jwt(token)
    return jwt.decode(
        token,
        signing_key.key,
        algorithms=ASYMMETRIC_ALGORITHMS,
        issuer=issuer,
        audience=audience,
        options=_decode_options(issuer),
    )


def _decode_with_secret(token: str, secret: str, issuer: Optional[str], audience: str) -> dict:
    """Verify JWT using HS256 symmetric secret."""
    return jwt.decode(
        token,
        secret,
        algorithms=["HS256"],
        issuer=issuer,
        audience=audience,
        options=_decode_options(issuer),
    )


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """
    Verify the bearer token and return its claims.

    Verification strategy (in order):
      1. JWKS, when ``JWKS_URL`` is configured.
      2. HS256 with ``JWT_SECRET``.

    Raises:
        HTTPException 401: token missing, expired, or invalid.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = credentials.credentials
    settings = get_settings()
    issuer = settings.jwt_issuer
    audience = settings.jwt_audience

    payload: Optional[dict] = None

    # --- Strategy 1: JWKS ---
    if settings.jwks_url:
        try:
            payload = _decode_with_jwks(token, settings.jwks_url, issuer, audience)
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
            )
        except (jwt.exceptions.PyJWKClientError, jwt.InvalidTokenError) as jwks_err:
            logger.debug("JWKS verification failed, trying HS256 fallback: %s", jwks_err)

    # --- Strategy 2: HS256 ---
    if payload is None and settings.jwt_secret:
        try:
            payload = _decode_with_secret(token, settings.jwt_secret, issuer, audience)
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
            )
        except jwt.InvalidTokenError as e:
            logger.warning("HS256 JWT verification failed: %s", e)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or unverifiable token",
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID",
        )

    return payload


TokenClaimsDep = Annotated[Dict[str, Any], Depends(get_token_claims)]


def _login_method(claims: Dict[str, Any]) -> Optional[str]:
    app_metadata = claims.get("app_metadata") or {}
    return claims.get("login_method") or app_metadata.get("provider")


async def get_current_user(claims: TokenClaimsDep, users: UserRepoDep) -> User:
    """
    Resolve the authenticated user, creating the row on first sight.

    The configured owner identity is granted the admin role.
    """
    settings = get_settings()
    open_id = claims["sub"]
    return await users.upsert_on_login(
        open_id=open_id,
        name=claims.get("name"),
        email=claims.get("email"),
        login_method=_login_method(claims),
        is_owner=bool(settings.owner_open_id) and open_id == settings.owner_open_id,
    )


CurrentUserDep = Annotated[User, Depends(get_current_user)]


# =============================================================================
# Re-export DB dependencies for a single import source
# Routers should import from api.dependencies, not db.dependencies directly.
# =============================================================================
from app.infrastructure.db.dependencies import (  # noqa: E402, F401
    SessionDep,
    PostRepoDep,
    ConnectedAccountRepoDep,
    PostMetricRepoDep,
    WebhookEventRepoDep,
    QuotaDep,
    ConnectionRegistryDep,
    PostLifecycleDep,
    SubscriptionProjectionDep,
    MetricsServiceDep,
)
