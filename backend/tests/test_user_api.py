"""Tests for the /api/user endpoints."""

import pytest
from httpx import AsyncClient

from app.services import user_service

PASSWORD = "Passw0rd"


def _auth(body: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {body['tokens']['accessToken']}"}


def _roadmap(title: str = "Learn Go", **extra) -> dict:
    return {
        "title": title,
        "topic": "go",
        "steps": [{"title": "Syntax"}, {"title": "Concurrency"}],
        **extra,
    }


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.get("/api/user/profile", headers=_auth(body))
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["username"] == "alice"
        assert user["preferences"] == {
            "theme": "system",
            "notifications": {"email": True, "roadmapUpdates": True},
        }

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.put(
            "/api/user/profile",
            headers=_auth(body),
            json={"firstName": "Alice", "avatar": "https://example.com/a.png"},
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["firstName"] == "Alice"
        assert user["avatar"] == "https://example.com/a.png"

    @pytest.mark.asyncio
    async def test_email_change_resets_verification(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.put(
            "/api/user/profile", headers=_auth(body), json={"email": "NEW@example.com"}
        )
        user = response.json()["user"]
        assert user["email"] == "new@example.com"
        assert user["isEmailVerified"] is False

    @pytest.mark.asyncio
    async def test_username_taken(self, client: AsyncClient, register):
        await register("bob")
        body = await register("alice")
        response = await client.put(
            "/api/user/profile", headers=_auth(body), json={"username": "bob"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "USERNAME_EXISTS"

    @pytest.mark.asyncio
    async def test_email_taken(self, client: AsyncClient, register):
        await register("bob")
        body = await register("alice")
        response = await client.put(
            "/api/user/profile", headers=_auth(body), json={"email": "bob@example.com"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_EXISTS"

    @pytest.mark.asyncio
    async def test_profile_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/user/profile")
        assert response.status_code == 401


class TestPreferences:
    @pytest.mark.asyncio
    async def test_partial_update_merges(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.put(
            "/api/user/preferences",
            headers=_auth(body),
            json={"theme": "dark", "notifications": {"email": False}},
        )
        assert response.status_code == 200
        assert response.json()["preferences"] == {
            "theme": "dark",
            "notifications": {"email": False, "roadmapUpdates": True},
        }

    @pytest.mark.asyncio
    async def test_invalid_theme(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.put(
            "/api/user/preferences", headers=_auth(body), json={"theme": "neon"}
        )
        assert response.status_code == 400


class TestChangePassword:
    @pytest.mark.asyncio
    async def test_change_password_logs_out_everywhere(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.post(
            "/api/user/change-password",
            headers=_auth(body),
            json={"currentPassword": PASSWORD, "newPassword": "NewPassw0rd"},
        )
        assert response.status_code == 200

        refresh = await client.post(
            "/api/auth/refresh", json={"refreshToken": body["tokens"]["refreshToken"]}
        )
        assert refresh.status_code == 401

        old_login = await client.post(
            "/api/auth/login", json={"identifier": "alice", "password": PASSWORD}
        )
        new_login = await client.post(
            "/api/auth/login", json={"identifier": "alice", "password": "NewPassw0rd"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.post(
            "/api/user/change-password",
            headers=_auth(body),
            json={"currentPassword": "Wrong123", "newPassword": "NewPassw0rd"},
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CURRENT_PASSWORD"

    @pytest.mark.asyncio
    async def test_weak_new_password(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.post(
            "/api/user/change-password",
            headers=_auth(body),
            json={"currentPassword": PASSWORD, "newPassword": "weak"},
        )
        assert response.status_code == 400


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_delete_removes_user_and_roadmaps(self, client: AsyncClient, register):
        body = await register("alice")
        created = await client.post("/api/roadmaps", headers=_auth(body), json=_roadmap())
        roadmap_id = created.json()["roadmap"]["id"]

        response = await client.request(
            "DELETE", "/api/user/account", headers=_auth(body), json={"password": PASSWORD}
        )
        assert response.status_code == 200

        login = await client.post(
            "/api/auth/login", json={"identifier": "alice", "password": PASSWORD}
        )
        assert login.status_code == 401

        other = await register("bob")
        fetched = await client.get(f"/api/roadmaps/{roadmap_id}", headers=_auth(other))
        assert fetched.status_code == 404

    @pytest.mark.asyncio
    async def test_wrong_password_changes_nothing(self, client: AsyncClient, register):
        body = await register("alice")
        response = await client.request(
            "DELETE", "/api/user/account", headers=_auth(body), json={"password": "Wrong123"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_PASSWORD"

        me = await client.get("/api/auth/me", headers=_auth(body))
        assert me.status_code == 200


class TestStats:
    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, register):
        body = await register("alice")
        headers = _auth(body)
        await client.post("/api/roadmaps", headers=headers, json=_roadmap(isPublic=True))
        second = await client.post("/api/roadmaps", headers=headers, json=_roadmap("Learn Rust"))
        roadmap_id = second.json()["roadmap"]["id"]
        await client.post(
            f"/api/roadmaps/{roadmap_id}/steps/step-1/complete",
            headers=headers,
            json={"isCompleted": True},
        )

        response = await client.get("/api/user/stats", headers=headers)
        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["totalRoadmaps"] == 2
        assert stats["publicRoadmaps"] == 1
        assert stats["completedRoadmaps"] == 0
        assert stats["inProgressRoadmaps"] == 1
        assert stats["recentRoadmaps"] == 2
        assert stats["memberSince"]


class TestConcurrentProfileUpdate:
    @pytest.fixture
    def skip_duplicate_check(self, monkeypatch):
        async def no_conflict(*args, **kwargs):
            return None

        monkeypatch.setattr(user_service, "find_conflicting_field", no_conflict)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "change, code",
        [
            ({"username": "bob"}, "USERNAME_EXISTS"),
            ({"email": "bob@example.com"}, "EMAIL_EXISTS"),
        ],
    )
    async def test_unique_index_violation_is_409(
        self, client: AsyncClient, register, skip_duplicate_check, change, code
    ):
        await register("bob")
        body = await register("alice")
        response = await client.put("/api/user/profile", headers=_auth(body), json=change)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == code

        profile = await client.get("/api/user/profile", headers=_auth(body))
        assert profile.json()["user"]["username"] == "alice"
