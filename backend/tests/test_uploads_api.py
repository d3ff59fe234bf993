"""
Integration Tests for media uploads
"""

from unittest.mock import patch

from app.config.settings import Settings


class TestUploadUrl:

    def test_reserves_key_under_user_prefix(self, client, auth_headers, users):
        user = users.add(open_id="user-1")

        response = client.post(
            "/api/uploads/url",
            json={"fileName": "cover.PNG", "contentType": "image/png", "fileSize": 2048},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["key"].startswith(f"uploads/{user.id}/")
        assert data["key"].endswith(".png")
        assert data["uploadEndpoint"] == "/api/uploads"

    def test_oversized_file_rejected(self, client, auth_headers, users):
        users.add(open_id="user-1")

        response = client.post(
            "/api/uploads/url",
            json={"fileName": "huge.mp4", "contentType": "video/mp4", "fileSize": 101 * 1024 * 1024},
            headers=auth_headers(),
        )

        assert response.status_code == 422


class TestUpload:

    def test_upload_with_reserved_key(self, client, auth_headers, users, tmp_path):
        user = users.add(open_id="user-1")
        key = f"uploads/{user.id}/abc.png"

        response = client.post(
            f"/api/uploads?key={key}",
            content=b"\x89PNG data",
            headers={**auth_headers(), "Content-Type": "image/png"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "url": f"http://media.test/{key}",
            "key": key,
        }
        assert (tmp_path / "uploads" / str(user.id) / "abc.png").read_bytes() == b"\x89PNG data"

    def test_upload_without_key_generates_one(self, client, auth_headers, users):
        user = users.add(open_id="user-1")

        response = client.post(
            "/api/uploads",
            content=b"video bytes",
            headers={**auth_headers(), "Content-Type": "video/mp4"},
        )

        assert response.status_code == 200
        key = response.json()["key"]
        assert key.startswith(f"uploads/{user.id}/")
        assert key.endswith(".mp4")

    def test_foreign_key_rejected(self, client, auth_headers, users):
        users.add(open_id="user-1")

        response = client.post(
            "/api/uploads?key=uploads/999/abc.png",
            content=b"data",
            headers=auth_headers(),
        )

        assert response.status_code == 400

    def test_traversal_rejected(self, client, auth_headers, users):
        user = users.add(open_id="user-1")

        response = client.post(
            f"/api/uploads?key=uploads/{user.id}/../../etc/passwd",
            content=b"data",
            headers=auth_headers(),
        )

        assert response.status_code == 400

    def test_empty_body_rejected(self, client, auth_headers, users):
        users.add(open_id="user-1")
        response = client.post("/api/uploads", content=b"", headers=auth_headers())
        assert response.status_code == 400

    def test_body_over_limit_rejected(self, client, auth_headers, users):
        users.add(open_id="user-1")
        small = Settings(_env_file=None, jwt_secret="x", max_upload_bytes=4)

        with patch("app.api.routes.uploads.get_settings", return_value=small):
            response = client.post("/api/uploads", content=b"12345", headers=auth_headers())

        assert response.status_code == 413
