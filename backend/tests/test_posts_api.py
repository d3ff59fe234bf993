"""
Integration Tests for the Post API

Entitlement failures surface as 403 with a machine code; lifecycle
conflicts as 409; the quota read reflects the caller's tier.
"""

from datetime import datetime, timedelta, timezone

from app.domain.models import Platform, PlatformTargetStatus, Post, PostStatus
from app.domain.subscription import ContentType, SubscriptionTier


def _image_post(**overrides):
    body = {
        "caption": "Launch",
        "contentType": "image",
        "mediaUrls": ["http://media.test/uploads/1/a.png"],
        "mediaKeys": ["uploads/1/a.png"],
        "platforms": ["linkedin"],
    }
    body.update(overrides)
    return body


def _published(user_id, minutes_ago=5):
    return Post(
        user_id=user_id,
        caption="earlier",
        content_type=ContentType.IMAGE,
        media_urls=["http://media.test/x.png"],
        media_keys=["uploads/x.png"],
        status=PostStatus.PUBLISHED,
        created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
    )


class TestCreatePost:

    def test_publish_now(self, client, auth_headers, users, posts, connect, mock_notifier):
        user = users.add(open_id="user-1")
        connect(user, Platform.LINKEDIN)

        response = client.post("/api/posts", json=_image_post(), headers=auth_headers())

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "published"
        stored = posts.rows[data["postId"]]
        assert [t.status for t in stored.platforms] == [PlatformTargetStatus.PUBLISHED]
        mock_notifier.notify.assert_called_once()
        assert mock_notifier.notify.call_args.args[0] == "New Post Published"

    def test_schedule(self, client, auth_headers, users, connect, mock_notifier):
        user = users.add(SubscriptionTier.PRO, open_id="user-1")
        connect(user, Platform.X)
        when = (datetime.now(timezone.utc) + timedelta(hours=3)).isoformat()

        response = client.post(
            "/api/posts",
            json=_image_post(platforms=["x"], scheduledAt=when),
            headers=auth_headers(),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "scheduled"
        assert mock_notifier.notify.call_args.args[0] == "New Scheduled Post"

    def test_quota_exceeded_is_403(self, client, auth_headers, users, posts, connect):
        user = users.add(open_id="user-1")
        connect(user, Platform.LINKEDIN)
        posts.add(_published(user.id, 10))
        posts.add(_published(user.id, 5))

        response = client.post("/api/posts", json=_image_post(), headers=auth_headers())

        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "FORBIDDEN"
        assert body["error"] == "QuotaExceeded"
        assert body["details"] == {"limit": 2, "tier": "trial"}
        assert len(posts.rows) == 2

    def test_trial_cannot_schedule(self, client, auth_headers, users, connect):
        user = users.add(open_id="user-1")
        connect(user, Platform.LINKEDIN)
        when = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()

        response = client.post("/api/posts", json=_image_post(scheduledAt=when), headers=auth_headers())

        assert response.status_code == 403
        assert response.json()["error"] == "SchedulingNotAllowed"

    def test_unconnected_platform_is_403(self, client, auth_headers, users):
        users.add(open_id="user-1")

        response = client.post("/api/posts", json=_image_post(), headers=auth_headers())

        assert response.status_code == 403
        assert response.json()["details"] == {"platforms": ["linkedin"]}

    def test_invalid_body_is_422(self, client, auth_headers, users):
        users.add(open_id="user-1")

        response = client.post(
            "/api/posts",
            json=_image_post(platforms=["x", "x"]),
            headers=auth_headers(),
        )

        assert response.status_code == 422

    def test_requires_auth(self, client):
        assert client.post("/api/posts", json=_image_post()).status_code == 401


class TestListAndCancel:

    def _scheduled(self, user_id):
        return Post(
            user_id=user_id,
            caption="later",
            content_type=ContentType.TEXT,
            status=PostStatus.SCHEDULED,
            scheduled_at=datetime.now(timezone.utc) + timedelta(days=1),
            created_at=datetime.now(timezone.utc),
        )

    def test_list_posts_camel_case(self, client, auth_headers, users, posts):
        user = users.add(open_id="user-1")
        posts.add(_published(user.id), [Platform.LINKEDIN], PlatformTargetStatus.PUBLISHED)

        response = client.get("/api/posts", headers=auth_headers())

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]["contentType"] == "image"
        assert items[0]["platforms"][0]["platform"] == "linkedin"

    def test_list_filters_by_status(self, client, auth_headers, users, posts):
        user = users.add(SubscriptionTier.PRO, open_id="user-1")
        posts.add(_published(user.id))
        posts.add(self._scheduled(user.id))

        response = client.get("/api/posts?status=scheduled", headers=auth_headers())

        assert [p["status"] for p in response.json()] == ["scheduled"]

    def test_list_limit_bounds(self, client, auth_headers, users):
        users.add(open_id="user-1")
        assert client.get("/api/posts?limit=51", headers=auth_headers()).status_code == 422
        assert client.get("/api/posts?limit=0", headers=auth_headers()).status_code == 422

    def test_cancel_scheduled(self, client, auth_headers, users, posts):
        user = users.add(SubscriptionTier.PRO, open_id="user-1")
        post = posts.add(self._scheduled(user.id), [Platform.X, Platform.FACEBOOK])

        response = client.post("/api/posts/cancel", json={"postId": post.id}, headers=auth_headers())

        assert response.status_code == 200
        assert response.json() == {"success": True}
        cancelled = posts.rows[post.id]
        assert cancelled.status == PostStatus.CANCELLED
        assert {t.failure_reason for t in cancelled.platforms} == {"Post cancelled"}

    def test_cancel_published_is_409(self, client, auth_headers, users, posts):
        user = users.add(open_id="user-1")
        post = posts.add(_published(user.id))

        response = client.post("/api/posts/cancel", json={"postId": post.id}, headers=auth_headers())

        assert response.status_code == 409
        assert response.json()["details"]["current_status"] == "published"

    def test_cancel_other_users_post_is_404(self, client, auth_headers, users, posts):
        users.add(open_id="user-1")
        other = users.add(SubscriptionTier.PRO, open_id="someone-else")
        post = posts.add(self._scheduled(other.id))

        response = client.post("/api/posts/cancel", json={"postId": post.id}, headers=auth_headers())

        assert response.status_code == 404
        assert posts.rows[post.id].status == PostStatus.SCHEDULED


class TestDailyUsage:

    def test_trial_usage(self, client, auth_headers, users, posts):
        user = users.add(open_id="user-1")
        posts.add(_published(user.id))

        response = client.get("/api/posts/daily-usage", headers=auth_headers())

        assert response.status_code == 200
        assert response.json() == {
            "used": 1,
            "limit": 2,
            "unlimited": False,
            "remaining": 1,
            "tier": "trial",
        }

    def test_ultra_pro_unlimited(self, client, auth_headers, users):
        users.add(SubscriptionTier.ULTRA_PRO, open_id="user-1")

        data = client.get("/api/posts/daily-usage", headers=auth_headers()).json()

        assert data["unlimited"] is True
        assert data["limit"] is None
        assert data["remaining"] is None


def test_platform_content_types_are_public(client):
    response = client.get("/api/posts/platform-content-types")

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {p.value for p in Platform}
    assert data["tiktok"] == ["video", "reel"]
