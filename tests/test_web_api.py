"""Tests for the web API (cookie sessions under /api)."""

from typing import Any

import pytest
from httpx import AsyncClient

from tests.conftest import TEST_EMAIL, TEST_PASSWORD, TEST_USERNAME

pytestmark = pytest.mark.asyncio


async def _login(client: AsyncClient, username: str = TEST_USERNAME, password: str = TEST_PASSWORD):
    return await client.post("/api/login", json={"username": username, "password": password})


class TestRegister:
    async def test_register_success(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/register",
            json={"username": "bob", "email": "bob@example.com", "password": "builder1"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "bob"
        assert data["email"] == "bob@example.com"
        assert data["role"] == "user"
        assert "password_hash" not in data
        assert "password" not in data

    async def test_register_conflict_is_generic(self, async_client: AsyncClient, registered_user):
        """Test that username and email conflicts return the same 400 body."""
        by_username = await async_client.post(
            "/api/register",
            json={"username": TEST_USERNAME, "email": "new@example.com", "password": "secret1"},
        )
        by_email = await async_client.post(
            "/api/register",
            json={"username": "newname", "email": TEST_EMAIL, "password": "secret1"},
        )

        assert by_username.status_code == 400
        assert by_email.status_code == 400
        assert by_username.json() == by_email.json()

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "ab", "email": "ab@example.com", "password": "secret1"},
            {"username": "x" * 51, "email": "x@example.com", "password": "secret1"},
            {"username": "bob", "email": "not-an-email", "password": "secret1"},
            {"username": "bob", "email": "bob@example.com", "password": "short"},
            {"username": "bob", "email": "bob@example.com", "password": "p" * 101},
            {"username": "bob", "email": "bob@example.com"},
        ],
        ids=["short-username", "long-username", "bad-email", "short-password", "long-password", "missing"],
    )
    async def test_register_validation(self, async_client: AsyncClient, payload: dict[str, Any]):
        response = await async_client.post("/api/register", json=payload)

        assert response.status_code == 422


class TestLogin:
    async def test_login_sets_session_cookie(self, async_client: AsyncClient, registered_user):
        response = await _login(async_client)

        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered_user["id"]

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session_id=")
        assert "HttpOnly" in cookie
        assert "SameSite=strict" in cookie
        assert "Max-Age=86400" in cookie
        # Secure is only set in production
        assert "Secure" not in cookie

    async def test_login_failures_are_identical(self, async_client: AsyncClient, registered_user):
        """Test that unknown user and wrong password give the same 401."""
        unknown = await _login(async_client, username="mallory")
        wrong = await _login(async_client, password="not-the-password")

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"detail": "invalid credentials"}
        assert "set-cookie" not in unknown.headers


class TestSessionFlow:
    async def test_me_requires_auth(self, async_client: AsyncClient):
        response = await async_client.get("/api/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_me_with_session(self, async_client: AsyncClient, registered_user):
        await _login(async_client)

        response = await async_client.get("/api/me")

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == TEST_USERNAME
        assert data["auth_type"] == "session"

    async def test_logout_ends_session(self, async_client: AsyncClient, registered_user):
        await _login(async_client)
        session_id = async_client.cookies.get("session_id")

        response = await async_client.post("/api/logout")
        assert response.status_code == 200

        # Replaying the old cookie no longer authenticates
        async_client.cookies.set("session_id", session_id)
        assert (await async_client.get("/api/me")).status_code == 401

    async def test_logout_without_session(self, async_client: AsyncClient):
        """Test that logout is harmless for anonymous callers."""
        first = await async_client.post("/api/logout")
        second = await async_client.post("/api/logout")

        assert first.status_code == second.status_code == 200

    async def test_invalid_cookie_is_anonymous(self, async_client: AsyncClient):
        async_client.cookies.set("session_id", "forged")

        assert (await async_client.get("/api/me")).status_code == 401

    async def test_bearer_fallback(self, async_client: AsyncClient, mobile_tokens):
        """Test that the web family also accepts a bearer token when no cookie is sent."""
        response = await async_client.get(
            "/api/me",
            headers={"Authorization": f"Bearer {mobile_tokens['access_token']}"},
        )

        assert response.status_code == 200
        assert response.json()["auth_type"] == "jwt"


class TestProfile:
    async def test_update_own_profile(self, async_client: AsyncClient, registered_user):
        await _login(async_client)

        response = await async_client.patch(
            "/api/me",
            json={
                "display_name": "Alice",
                "bio": "Down the rabbit hole",
                "avatar_url": "https://example.com/alice.png",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["display_name"] == "Alice"
        assert data["bio"] == "Down the rabbit hole"
        assert data["avatar_url"] == "https://example.com/alice.png"

    async def test_update_profile_requires_auth(self, async_client: AsyncClient):
        response = await async_client.patch("/api/me", json={"bio": "anonymous"})

        assert response.status_code == 401

    @pytest.mark.parametrize(
        "payload",
        [{"bio": "b" * 501}, {"display_name": ""}, {"avatar_url": "not a url"}],
        ids=["long-bio", "empty-display-name", "bad-avatar-url"],
    )
    async def test_profile_validation(self, async_client: AsyncClient, registered_user, payload):
        await _login(async_client)

        response = await async_client.patch("/api/me", json=payload)

        assert response.status_code == 422


class TestSources:
    async def test_sources_require_auth(self, async_client: AsyncClient):
        assert (await async_client.get("/api/sources")).status_code == 401

    async def test_list_sources(self, async_client: AsyncClient, registered_user):
        from chat_aggregator.main import app

        class FakeSource:
            name = "ChatGPT"
            platform = "chatgpt"

            async def close(self) -> None:
                pass

        app.state.sources.register("chatgpt-work", FakeSource(), account_id=1)
        try:
            await _login(async_client)
            response = await async_client.get("/api/sources")
        finally:
            app.state.sources.unregister("chatgpt-work")

        assert response.status_code == 200
        assert response.json() == [{"key": "chatgpt-work", "name": "ChatGPT", "platform": "chatgpt"}]
