import pytest
from httpx import AsyncClient
from fastapi import status

from app.services.seed import seed_sample_data
from tests.conftest import ADMIN_ID, LAWYER_ID, SECRETARY_ID

pytestmark = pytest.mark.asyncio


class TestPublic:
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == status.HTTP_200_OK

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/v1/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["store"] == "connected"


class TestNavigation:
    async def test_secretary_navigation(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/navigation", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        sections = [item["section"] for item in data["items"]]
        assert "invoices" in sections
        assert "reports" not in sections
        assert data["actions"]["scheduleAppointment"] is True


class TestDashboardAndReports:
    async def test_dashboard(self, client: AsyncClient, auth_headers, seeded_store):
        await seed_sample_data(seeded_store, lawyer_id=LAWYER_ID)
        response = await client.get("/api/v1/dashboard", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["totalRevenue"] == 5000
        assert data["fileCount"] == 5

    async def test_reports_admin_only(self, client: AsyncClient, auth_headers, seeded_store):
        await seed_sample_data(seeded_store, lawyer_id=LAWYER_ID)
        response = await client.get("/api/v1/reports", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.get("/api/v1/reports", headers=auth_headers(ADMIN_ID))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["totalClients"] == 5

    async def test_search(self, client: AsyncClient, auth_headers, seeded_store):
        await seed_sample_data(seeded_store)
        response = await client.get("/api/v1/search", params={"q": "smith"}, headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_200_OK
        assert [r["id"] for r in response.json()["results"]] == ["CLI-002", "INV-002"]


class TestNotifications:
    async def test_read_flow(self, client: AsyncClient, auth_headers, seeded_store):
        path = f"users/{LAWYER_ID}/notifications"
        await seeded_store.set_document(f"{path}/N1", {"message": "One", "read": False, "createdAt": "2024-05-01T09:00:00Z"})
        await seeded_store.set_document(f"{path}/N2", {"message": "Two", "read": False, "createdAt": "2024-05-02T09:00:00Z"})

        response = await client.get("/api/v1/notifications/", headers=auth_headers(LAWYER_ID))
        assert response.json()["unreadCount"] == 2

        response = await client.post("/api/v1/notifications/N1/read", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = await client.post("/api/v1/notifications/read-all", headers=auth_headers(LAWYER_ID))
        assert response.json() == {"updated": 1}

        response = await client.post("/api/v1/notifications/NOPE/read", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_404_NOT_FOUND
