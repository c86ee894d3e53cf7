"""
FittedIn Backend — Goals, Posts and Activities API Tests
=========================================================

What:  The content routers end to end, plus the public profile view and
       account edits.
How:   httpx AsyncClient over ASGITransport, as in test_connections_api.
"""

from uuid import uuid4

import pytest


class TestGoalRoutes:

    @pytest.mark.asyncio
    async def test_goal_lifecycle(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        headers = auth_headers(alice)

        created = await test_client.post(
            "/api/goals",
            json={"title": "Plank 5 minutes", "category": "flexibility", "target_value": 300, "unit": "s"},
            headers=headers,
        )
        assert created.status_code == 201
        goal_id = created.json()["id"]

        progress = await test_client.patch(
            f"/api/goals/{goal_id}/progress", json={"current_value": 300}, headers=headers
        )
        assert progress.status_code == 200
        assert progress.json()["status"] == "completed"
        assert progress.json()["progress_percentage"] == 100

        completed = await test_client.get(
            "/api/goals", params={"status": "completed"}, headers=headers
        )
        assert completed.json()["total"] == 1

        deleted = await test_client.delete(f"/api/goals/{goal_id}", headers=headers)
        assert deleted.status_code == 204
        missing = await test_client.get(f"/api/goals/{goal_id}", headers=headers)
        assert missing.status_code == 404
        assert missing.json()["message"] == "Goal not found"

    @pytest.mark.asyncio
    async def test_other_users_goal_is_404(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        bob = await make_user("bob@fittedin.dev")
        created = await test_client.post(
            "/api/goals", json={"title": "Sleep", "target_value": 8}, headers=auth_headers(alice)
        )

        response = await test_client.put(
            f"/api/goals/{created.json()['id']}", json={"title": "Mine now"}, headers=auth_headers(bob)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_bodies(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        headers = auth_headers(alice)

        negative = await test_client.post(
            "/api/goals", json={"title": "Lift", "target_value": -1}, headers=headers
        )
        bad_dates = await test_client.post(
            "/api/goals",
            json={
                "title": "Lift",
                "target_value": 10,
                "start_date": "2026-06-01",
                "target_date": "2026-05-01",
            },
            headers=headers,
        )
        bad_limit = await test_client.get("/api/goals", params={"limit": 0}, headers=headers)

        assert negative.status_code == 422
        assert bad_dates.status_code == 422
        assert bad_limit.status_code == 422

    @pytest.mark.asyncio
    async def test_update_target_before_start_is_400(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        headers = auth_headers(alice)
        created = await test_client.post(
            "/api/goals",
            json={"title": "Row", "target_value": 10, "start_date": "2026-06-01"},
            headers=headers,
        )

        response = await test_client.put(
            f"/api/goals/{created.json()['id']}", json={"target_date": "2026-05-01"}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "target_date"}


class TestPostRoutes:

    @pytest.mark.asyncio
    async def test_post_like_comment_flow(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev", "Alice")
        bob = await make_user("bob@fittedin.dev", "Bob")

        created = await test_client.post(
            "/api/posts", json={"content": "  New 10k PR  "}, headers=auth_headers(alice)
        )
        assert created.status_code == 201
        assert created.json()["content"] == "New 10k PR"
        post_id = created.json()["id"]

        liked = await test_client.post(f"/api/posts/{post_id}/like", headers=auth_headers(bob))
        assert liked.json()["like_count"] == 1
        again = await test_client.post(f"/api/posts/{post_id}/like", headers=auth_headers(bob))
        assert again.status_code == 409

        comment = await test_client.post(
            f"/api/posts/{post_id}/comment", json={"content": "Fast!"}, headers=auth_headers(bob)
        )
        assert comment.status_code == 201
        assert comment.json()["author"]["display_name"] == "Bob"

        detail = await test_client.get(f"/api/posts/{post_id}", headers=auth_headers(alice))
        body = detail.json()
        assert body["comment_count"] == 1
        assert [c["content"] for c in body["comments"]] == ["Fast!"]

        removed = await test_client.delete(
            f"/api/posts/comments/{comment.json()['id']}", headers=auth_headers(alice)
        )
        assert removed.status_code == 204

        unliked = await test_client.delete(f"/api/posts/{post_id}/like", headers=auth_headers(bob))
        assert unliked.json()["like_count"] == 0

    @pytest.mark.asyncio
    async def test_only_author_edits(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        bob = await make_user("bob@fittedin.dev")
        created = await test_client.post(
            "/api/posts", json={"content": "Yoga"}, headers=auth_headers(alice)
        )
        post_id = created.json()["id"]

        edit = await test_client.put(
            f"/api/posts/{post_id}", json={"content": "Pilates"}, headers=auth_headers(bob)
        )
        delete = await test_client.delete(f"/api/posts/{post_id}", headers=auth_headers(bob))

        assert edit.status_code == 403
        assert edit.json()["error"] == "forbidden"
        assert delete.status_code == 403

    @pytest.mark.asyncio
    async def test_blank_content_and_missing_post(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        headers = auth_headers(alice)

        blank = await test_client.post("/api/posts", json={"content": "   "}, headers=headers)
        missing = await test_client.get(f"/api/posts/{uuid4()}", headers=headers)

        assert blank.status_code == 422
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_feed_after_auto_accept(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        coach = await make_user("coach@fittedin-seeded.com")
        await test_client.post(
            "/api/connections",
            json={"receiver_id": str(coach.id)},
            headers=auth_headers(alice),
        )
        await test_client.post("/api/posts", json={"content": "Drills"}, headers=auth_headers(coach))

        feed = await test_client.get("/api/posts/feed", headers=auth_headers(alice))
        by_coach = await test_client.get(f"/api/posts/user/{coach.id}", headers=auth_headers(alice))

        assert [p["content"] for p in feed.json()["posts"]] == ["Drills"]
        assert [p["content"] for p in by_coach.json()["posts"]] == ["Drills"]


class TestActivityRoutes:

    @pytest.mark.asyncio
    async def test_timeline_and_stats(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        headers = auth_headers(alice)
        created = await test_client.post(
            "/api/goals", json={"title": "Walk", "target_value": 10000, "unit": "steps"}, headers=headers
        )
        await test_client.patch(
            f"/api/goals/{created.json()['id']}/progress", json={"current_value": 5000}, headers=headers
        )

        timeline = await test_client.get("/api/activities", headers=headers)
        only_progress = await test_client.get(
            "/api/activities", params={"activity_type": "goal_progress"}, headers=headers
        )
        stats = await test_client.get("/api/activities/stats", params={"days": 7}, headers=headers)

        assert {a["activity_type"] for a in timeline.json()["activities"]} == {
            "goal_created",
            "goal_progress",
        }
        assert len(only_progress.json()["activities"]) == 1
        assert stats.json() == {
            "total": 2,
            "by_type": {"goal_created": 1, "goal_progress": 1},
            "period_days": 7,
        }

    @pytest.mark.asyncio
    async def test_query_bounds(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        headers = auth_headers(alice)

        too_many_days = await test_client.get(
            "/api/activities/stats", params={"days": 366}, headers=headers
        )
        unknown_type = await test_client.get(
            "/api/activities", params={"activity_type": "went_jogging"}, headers=headers
        )
        feed = await test_client.get("/api/activities/feed", headers=headers)

        assert too_many_days.status_code == 422
        assert unknown_type.status_code == 422
        assert feed.status_code == 200
        assert feed.json() == {"activities": []}


class TestPublicProfileAndAccount:

    @pytest.mark.asyncio
    async def test_public_profile(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev", "Alice")
        viewer = await make_user("viewer@fittedin.dev")
        await test_client.put(
            "/api/profiles/me", json={"bio": "Climber"}, headers=auth_headers(alice)
        )

        response = await test_client.get(f"/api/profiles/{alice.id}", headers=auth_headers(viewer))
        missing = await test_client.get(f"/api/profiles/{uuid4()}", headers=auth_headers(viewer))

        assert response.status_code == 200
        assert response.json()["bio"] == "Climber"
        assert response.json()["user"]["display_name"] == "Alice"
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_update_own_account(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev", "Alice")

        response = await test_client.put(
            f"/api/users/{alice.id}",
            json={"display_name": "  Alice K  ", "avatar_url": "https://cdn.fittedin.dev/a.png"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 200
        assert response.json()["display_name"] == "Alice K"
        assert response.json()["avatar_url"] == "https://cdn.fittedin.dev/a.png"

    @pytest.mark.asyncio
    async def test_account_update_errors(self, test_client, make_user, auth_headers):
        alice = await make_user("alice@fittedin.dev")
        bob = await make_user("bob@fittedin.dev")

        someone_else = await test_client.put(
            f"/api/users/{bob.id}", json={"display_name": "Hacked"}, headers=auth_headers(alice)
        )
        empty = await test_client.put(f"/api/users/{alice.id}", json={}, headers=auth_headers(alice))
        bad_url = await test_client.put(
            f"/api/users/{alice.id}", json={"avatar_url": "not a url"}, headers=auth_headers(alice)
        )

        assert someone_else.status_code == 403
        assert someone_else.json()["message"] == "Access denied"
        assert empty.status_code == 400
        assert empty.json()["message"] == "No valid fields to update"
        assert bad_url.status_code == 422
