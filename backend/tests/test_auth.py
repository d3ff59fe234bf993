"""
Integration Tests for Authentication

Verifies that the main application correctly integrates:
- JWT verification dependency
- Protected route denial (401)
- First-sight user creation and owner promotion
"""

from app.domain.models import UserRole
from app.domain.subscription import SubscriptionTier


class TestAuthIntegration:

    def test_protected_route_no_auth(self, client):
        """Accessing a protected route without auth should return 401."""
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authorization token"

    def test_protected_route_invalid_token(self, client):
        response = client.get(
            "/api/auth/me",
            headers={"Authorization": "Bearer invalid.token.here"}
        )
        assert response.status_code == 401

    def test_first_request_creates_user(self, client, auth_headers, users):
        response = client.get(
            "/api/auth/me",
            headers=auth_headers("new-user", name="Rita", email="rita@example.com"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["openId"] == "new-user"
        assert data["name"] == "Rita"
        assert data["role"] == "user"
        assert data["subscriptionTier"] == "trial"
        assert len(users.rows) == 1

    def test_repeat_sign_in_reuses_user(self, client, auth_headers, users):
        existing = users.add(SubscriptionTier.PRO, open_id="user-1", name="Old")

        response = client.get("/api/auth/me", headers=auth_headers("user-1", name="New"))

        assert response.status_code == 200
        assert response.json()["id"] == existing.id
        assert response.json()["subscriptionTier"] == "pro"
        assert users.rows[existing.id].name == "New"

    def test_owner_becomes_admin(self, client, auth_headers, users):
        response = client.get("/api/auth/me", headers=auth_headers("owner-open-id"))

        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert next(iter(users.rows.values())).role == UserRole.ADMIN

    def test_login_method_from_app_metadata(self, client, auth_headers):
        response = client.get(
            "/api/auth/me",
            headers=auth_headers("user-2", app_metadata={"provider": "google"}),
        )
        assert response.json()["loginMethod"] == "google"
