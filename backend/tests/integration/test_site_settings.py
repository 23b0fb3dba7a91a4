"""Integration tests for site settings and maintenance mode."""

import pytest
from httpx import AsyncClient

from api.middleware.maintenance import DEFAULT_MESSAGE
from infrastructure.database.models.user import User

pytestmark = pytest.mark.asyncio


class TestSiteSettings:
    async def test_defaults(self, async_client: AsyncClient):
        response = await async_client.get("/api/site-settings")

        assert response.status_code == 200
        data = response.json()
        assert data["maintenance_mode"] is False
        assert data["allow_registration"] is True
        assert data["allow_comments"] is True
        assert data["enable_ads"] is True

    async def test_admin_updates(self, admin_client: AsyncClient):
        response = await admin_client.patch(
            "/api/site-settings",
            json={"site_name": "Proxima Daily", "allow_comments": False, "contact_email": None},
        )

        assert response.status_code == 200
        assert response.json()["site_name"] == "Proxima Daily"
        assert response.json()["allow_comments"] is False
        assert response.json()["contact_email"] is None

    async def test_null_does_not_clear_required_fields(self, admin_client: AsyncClient):
        before = (await admin_client.get("/api/site-settings")).json()
        response = await admin_client.patch(
            "/api/site-settings", json={"site_name": None, "enable_ads": None}
        )
        assert response.json()["site_name"] == before["site_name"]
        assert response.json()["enable_ads"] is True

    async def test_non_admin_rejected(self, editor_client: AsyncClient):
        response = await editor_client.patch("/api/site-settings", json={"site_name": "Mine"})
        assert response.status_code == 403


class TestMaintenanceMode:
    async def test_blocks_regular_requests(self, user_client: AsyncClient, set_site_flags):
        await set_site_flags(maintenance_mode=True)

        response = await user_client.get("/api/articles")

        assert response.status_code == 503
        assert response.json() == {"maintenanceMode": True, "message": DEFAULT_MESSAGE}

    async def test_custom_message(self, async_client: AsyncClient, set_site_flags):
        await set_site_flags(maintenance_mode=True, maintenance_message="Back after the launch")

        response = await async_client.get("/api/search/popular")
        assert response.json()["message"] == "Back after the launch"

    async def test_exempt_paths_stay_reachable(
        self, client_factory, test_user, set_site_flags
    ):
        await set_site_flags(maintenance_mode=True)
        client = await client_factory()

        assert (await client.get("/api/site-settings")).status_code == 200
        assert (await client.get("/api/health")).status_code == 200
        login = await client.post(
            "/api/login", json={"username": test_user.username, "password": "testpassword123"}
        )
        assert login.status_code == 200
        assert (await client.get("/api/me")).status_code == 200
        assert (await client.get("/api/articles")).status_code == 503

    async def test_admin_bypass(self, admin_client: AsyncClient, set_site_flags):
        await set_site_flags(maintenance_mode=True)

        assert (await admin_client.get("/api/articles")).status_code == 200

        response = await admin_client.patch("/api/site-settings", json={"maintenance_mode": False})
        assert response.json()["maintenance_mode"] is False

    async def test_demoted_admin_loses_bypass(
        self, admin_client: AsyncClient, admin_user: User, db_session, set_site_flags
    ):
        await set_site_flags(maintenance_mode=True)
        assert (await admin_client.get("/api/articles")).status_code == 200

        admin_user.role = "user"
        await db_session.commit()

        assert (await admin_client.get("/api/articles")).status_code == 503
