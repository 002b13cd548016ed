import pytest
from httpx import AsyncClient
from fastapi import status

from tests.conftest import ADMIN_ID, LAWYER_ID, SECRETARY_ID

pytestmark = pytest.mark.asyncio

CLIENT_DATA = {
    "firstName": "Jane",
    "lastName": "Roe",
    "email": "jane.roe@example.com",
    "phoneNumber": "555-0100",
}

class TestClients:
    async def test_create_and_read_client(self, client: AsyncClient, auth_headers, seeded_store):
        response = await client.post("/api/v1/clients/", json=CLIENT_DATA, headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_201_CREATED
        created = response.json()
        assert created["name"] == "Jane Roe"

        response = await client.get(f"/api/v1/clients/{created['id']}", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["email"] == CLIENT_DATA["email"]

        activities = await seeded_store.get_collection("activities")
        assert [a.data["type"] for a in activities] == ["client:create"]

    async def test_duplicate_email(self, client: AsyncClient, auth_headers):
        await client.post("/api/v1/clients/", json=CLIENT_DATA, headers=auth_headers(SECRETARY_ID))
        response = await client.post("/api/v1/clients/", json=CLIENT_DATA, headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_invalid_email(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/clients/",
            json={**CLIENT_DATA, "email": "not-an-email"},
            headers=auth_headers(SECRETARY_ID)
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_only_admin_deletes(self, client: AsyncClient, auth_headers):
        created = (await client.post("/api/v1/clients/", json=CLIENT_DATA, headers=auth_headers(SECRETARY_ID))).json()

        response = await client.delete(f"/api/v1/clients/{created['id']}", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.delete(f"/api/v1/clients/{created['id']}", headers=auth_headers(ADMIN_ID))
        assert response.status_code == status.HTTP_200_OK
        response = await client.get(f"/api/v1/clients/{created['id']}", headers=auth_headers(ADMIN_ID))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_client_detail(self, client: AsyncClient, auth_headers, seeded_store):
        await seeded_store.set_document("clients/C1", {"firstName": "John", "lastName": "Doe"})
        await seeded_store.set_document("cases/K1", {"caseName": "Estate", "clientId": "C1"})
        await seeded_store.set_document("cases/K2", {"caseName": "Other", "clientId": "C2"})
        await seeded_store.set_document("invoices/INV1", {"clientId": "C1", "amount": 100, "paymentStatus": "Unpaid"})

        response = await client.get("/api/v1/clients/C1/detail", headers=auth_headers(LAWYER_ID))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["displayName"] == "John Doe"
        assert [c["id"] for c in data["cases"]] == ["K1"]
        assert [i["id"] for i in data["invoices"]] == ["INV1"]
