"""Integration tests for authentication endpoints."""

import pytest
from httpx import AsyncClient

from infrastructure.database.models.user import User

pytestmark = pytest.mark.asyncio


class TestRegistration:
    """Tests for user registration."""

    async def test_register_success(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/register",
            json={"username": "NewAstronaut", "email": "New@Example.com", "password": "rocket123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "newastronaut"
        assert data["email"] == "new@example.com"
        assert data["role"] == "user"
        assert data["membership_tier"] == "free"
        assert "password" not in data
        assert "password_hash" not in data

        # The new account is signed in
        me = await async_client.get("/api/me")
        assert me.status_code == 200
        assert me.json()["id"] == data["id"]

    async def test_register_duplicate_username(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/register",
            json={"username": "READER", "email": "other@example.com", "password": "rocket123"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "USERNAME_EXISTS"

    async def test_register_duplicate_email(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/register",
            json={"username": "someone", "email": test_user.email, "password": "rocket123"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "EMAIL_EXISTS"

    async def test_register_weak_password(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/register",
            json={"username": "weakling", "email": "weak@example.com", "password": "short"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Validation error"
        assert body["errors"][0]["field"] == "password"

    async def test_register_invalid_email(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/register",
            json={"username": "bademail", "email": "not-an-email", "password": "rocket123"},
        )
        assert response.status_code == 400
        assert any(err["field"] == "email" for err in response.json()["errors"])

    async def test_register_disabled(self, async_client: AsyncClient, set_site_flags):
        await set_site_flags(allow_registration=False)

        response = await async_client.post(
            "/api/register",
            json={"username": "latecomer", "email": "late@example.com", "password": "rocket123"},
        )
        assert response.status_code == 403


class TestLogin:
    """Tests for session login."""

    async def test_login_with_username(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/login", json={"username": "Reader", "password": "testpassword123"}
        )
        assert response.status_code == 200
        assert response.json()["username"] == "reader"
        assert "proxima.sid" in response.cookies

    async def test_login_with_email(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/login", json={"email": test_user.email, "password": "testpassword123"}
        )
        assert response.status_code == 200
        assert response.json()["last_login_at"] is not None

    async def test_login_wrong_password(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/login", json={"username": "reader", "password": "wrongpassword1"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid credentials"

    async def test_login_unknown_user(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/login", json={"username": "nobody", "password": "whatever1"}
        )
        assert response.status_code == 400

    async def test_login_missing_identifier(self, async_client: AsyncClient):
        response = await async_client.post("/api/login", json={"password": "whatever1"})
        assert response.status_code == 400


class TestSession:
    """Tests for /me and logout."""

    async def test_me_anonymous(self, async_client: AsyncClient):
        response = await async_client.get("/api/me")
        assert response.status_code == 401

    async def test_logout(self, user_client: AsyncClient):
        assert (await user_client.get("/api/me")).status_code == 200

        response = await user_client.post("/api/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert (await user_client.get("/api/me")).status_code == 401

    async def test_update_profile(self, user_client: AsyncClient):
        response = await user_client.put(
            "/api/me",
            json={"bio": "Amateur astronomer", "theme_preference": "light", "role": "admin"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Amateur astronomer"
        assert data["theme_preference"] == "light"
        assert data["role"] == "user"

    async def test_update_profile_username_taken(
        self, user_client: AsyncClient, author_user: User
    ):
        response = await user_client.put("/api/me", json={"username": "author"})
        assert response.status_code == 400
        assert response.json()["code"] == "USERNAME_EXISTS"
