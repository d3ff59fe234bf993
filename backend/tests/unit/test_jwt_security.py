"""
Security Test Suite: JWT Authentication

Tests that the centralized JWT verification in dependencies.py correctly:
- Rejects missing Authorization headers
- Rejects malformed, expired, and wrongly signed tokens
- Accepts properly signed HS256 tokens
"""

import time

import jwt
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.api.dependencies import get_token_claims
from app.config.settings import get_settings


# ---------------------------------------------------------------------------
# Minimal app that uses the real dependency
# ---------------------------------------------------------------------------

test_app = FastAPI()


@test_app.get("/protected")
async def protected_endpoint(claims: dict = Depends(get_token_claims)):
    return {"sub": claims["sub"]}


client = TestClient(test_app, raise_server_exceptions=False)


def _token(secret=None, **overrides):
    settings = get_settings()
    payload = {
        "sub": "open-id-1",
        "aud": settings.jwt_audience,
        "exp": int(time.time()) + 3600,
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm="HS256")


def _get(token):
    return client.get("/protected", headers={"Authorization": f"Bearer {token}"})


# ---------------------------------------------------------------------------
# Tests: rejection scenarios
# ---------------------------------------------------------------------------


class TestJWTRejection:
    """Verify that invalid/missing JWTs are rejected with 401."""

    def test_no_auth_header(self):
        resp = client.get("/protected")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Missing authorization token"

    def test_malformed_scheme(self):
        resp = client.get("/protected", headers={"Authorization": "Basic abc123"})
        assert resp.status_code == 401

    def test_garbage_token(self):
        resp = _get("not.a.jwt")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid or unverifiable token"

    def test_wrong_signing_key(self):
        resp = _get(_token(secret="a-completely-different-secret-value-0123"))
        assert resp.status_code == 401

    def test_expired_token(self):
        resp = _get(_token(exp=int(time.time()) - 60))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired"

    def test_wrong_audience(self):
        resp = _get(_token(aud="someone-else"))
        assert resp.status_code == 401

    def test_missing_subject(self):
        resp = _get(_token(sub=None))
        assert resp.status_code == 401

    def test_raw_identifier_rejected(self):
        """A bare user id is not a bearer token."""
        resp = _get("00000000-0000-0000-0000-000000000001")
        assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Tests: acceptance scenarios
# ---------------------------------------------------------------------------


class TestJWTAcceptance:
    """Verify that valid JWTs are accepted."""

    def test_valid_hs256_token(self):
        resp = _get(_token())
        assert resp.status_code == 200
        assert resp.json() == {"sub": "open-id-1"}
