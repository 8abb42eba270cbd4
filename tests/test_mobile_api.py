"""Tests for the mobile API (JWT bearer tokens under /api/mobile)."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from httpx import AsyncClient

from tests.conftest import TEST_ACCESS_SECRET, TEST_PASSWORD, TEST_USERNAME

pytestmark = pytest.mark.asyncio


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestLogin:
    async def test_login_returns_token_pair(self, async_client: AsyncClient, registered_user):
        response = await async_client.post(
            "/api/mobile/login",
            json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 15 * 60
        assert data["user"]["id"] == registered_user["id"]
        assert "password_hash" not in data["user"]
        assert "set-cookie" not in response.headers

        claims = jwt.decode(data["access_token"], TEST_ACCESS_SECRET, algorithms=["HS256"])
        assert claims["sub"] == str(registered_user["id"])

    async def test_login_failures_are_identical(self, async_client: AsyncClient, registered_user):
        unknown = await async_client.post(
            "/api/mobile/login", json={"username": "mallory", "password": TEST_PASSWORD}
        )
        wrong = await async_client.post(
            "/api/mobile/login", json={"username": TEST_USERNAME, "password": "not-it"}
        )

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"detail": "invalid credentials"}

    async def test_register(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/mobile/register",
            json={"username": "bob", "email": "bob@example.com", "password": "builder1"},
        )

        assert response.status_code == 201
        assert response.json()["username"] == "bob"


class TestMandatoryBearer:
    async def test_me_with_token(self, async_client: AsyncClient, mobile_tokens):
        response = await async_client.get(
            "/api/mobile/me", headers=_bearer(mobile_tokens["access_token"])
        )

        assert response.status_code == 200
        assert response.json()["username"] == TEST_USERNAME

    async def test_me_without_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/mobile/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_session_cookie_not_accepted(self, async_client: AsyncClient, registered_user):
        """Test that the mobile family ignores session cookies."""
        await async_client.post(
            "/api/login", json={"username": TEST_USERNAME, "password": TEST_PASSWORD}
        )
        assert async_client.cookies.get("session_id")

        assert (await async_client.get("/api/mobile/me")).status_code == 401

    async def test_refresh_token_not_accepted_as_bearer(self, async_client: AsyncClient, mobile_tokens):
        response = await async_client.get(
            "/api/mobile/me", headers=_bearer(mobile_tokens["refresh_token"])
        )

        assert response.status_code == 401

    async def test_expired_token_rejected(self, async_client: AsyncClient, registered_user):
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": str(registered_user["id"]),
                "role": "user",
                "type": "access",
                "jti": "expired-jti",
                "iat": now - timedelta(minutes=20),
                "exp": now - timedelta(minutes=5),
            },
            TEST_ACCESS_SECRET,
            algorithm="HS256",
        )

        response = await async_client.get("/api/mobile/me", headers=_bearer(token))

        assert response.status_code == 401
        assert response.json() == {"detail": "invalid token"}


class TestLogout:
    async def test_logout_revokes_access_token(self, async_client: AsyncClient, mobile_tokens):
        headers = _bearer(mobile_tokens["access_token"])

        response = await async_client.post("/api/mobile/logout", headers=headers)
        assert response.status_code == 200

        assert (await async_client.get("/api/mobile/me", headers=headers)).status_code == 401
        assert (await async_client.post("/api/mobile/logout", headers=headers)).status_code == 401

    async def test_logout_keeps_refresh_token(self, async_client: AsyncClient, mobile_tokens):
        await async_client.post("/api/mobile/logout", headers=_bearer(mobile_tokens["access_token"]))

        response = await async_client.post(
            "/api/mobile/refresh", json={"refresh_token": mobile_tokens["refresh_token"]}
        )

        assert response.status_code == 200

    async def test_logout_requires_token(self, async_client: AsyncClient):
        assert (await async_client.post("/api/mobile/logout")).status_code == 401


class TestRefresh:
    async def test_refresh_rotates(self, async_client: AsyncClient, mobile_tokens):
        old_refresh = mobile_tokens["refresh_token"]

        response = await async_client.post("/api/mobile/refresh", json={"refresh_token": old_refresh})

        assert response.status_code == 200
        data = response.json()
        assert data["refresh_token"] != old_refresh
        assert data["expires_in"] == 15 * 60
        me = await async_client.get("/api/mobile/me", headers=_bearer(data["access_token"]))
        assert me.status_code == 200

        replay = await async_client.post("/api/mobile/refresh", json={"refresh_token": old_refresh})
        assert replay.status_code == 401
        assert replay.json() == {"detail": "invalid refresh token"}

    async def test_refresh_accepts_camel_case(self, async_client: AsyncClient, mobile_tokens):
        response = await async_client.post(
            "/api/mobile/refresh", json={"refreshToken": mobile_tokens["refresh_token"]}
        )

        assert response.status_code == 200

    async def test_refresh_with_access_token_fails(self, async_client: AsyncClient, mobile_tokens):
        response = await async_client.post(
            "/api/mobile/refresh", json={"refresh_token": mobile_tokens["access_token"]}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "invalid refresh token"}

    async def test_refresh_requires_body(self, async_client: AsyncClient):
        assert (await async_client.post("/api/mobile/refresh", json={})).status_code == 422
