import pytest
from httpx import AsyncClient
from fastapi import status

from tests.conftest import SECRETARY_ID

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def invoice_store(seeded_store):
    await seeded_store.set_document("clients/C1", {"firstName": "John", "lastName": "Doe"})
    await seeded_store.set_document(
        "invoices/INV1",
        {"clientId": "C1", "items": [{"description": "Fee", "amount": 5000}], "paymentStatus": "Unpaid"},
    )
    await seeded_store.set_document("settings/firm", {"name": "Doe & Partners", "footerText": "Thank you"})
    return seeded_store


class TestInvoices:
    async def test_list_with_balances(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.get("/api/v1/invoices/", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_200_OK
        rows = response.json()
        assert rows[0]["clientName"] == "John Doe"
        assert rows[0]["total"] == 5000
        assert rows[0]["balanceDue"] == 5000

    async def test_detail_includes_firm(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.get("/api/v1/invoices/INV1", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["firm"]["name"] == "Doe & Partners"
        assert data["client"]["id"] == "C1"

    async def test_missing_invoice(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.get("/api/v1/invoices/NOPE", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_create_invoice(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.post(
            "/api/v1/invoices/",
            json={"clientId": "C1", "items": [{"description": "Drafting", "amount": 750}]},
            headers=auth_headers(SECRETARY_ID)
        )
        assert response.status_code == status.HTTP_201_CREATED
        invoice = response.json()["invoice"]
        assert invoice["clientName"] == "John Doe"
        assert invoice["total"] == 750
        assert invoice["paymentStatus"] == "Unpaid"

    async def test_create_rejects_unparseable_amount(self, client: AsyncClient, auth_headers, invoice_store):
        writes = invoice_store.write_count
        response = await client.post(
            "/api/v1/invoices/",
            json={"clientId": "C1", "items": [{"description": "Fee", "amount": "5,000"}]},
            headers=auth_headers(SECRETARY_ID)
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert invoice_store.write_count == writes

    async def test_mark_paid_once(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.post("/api/v1/invoices/INV1/mark-paid", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_200_OK
        receipt_id = response.json()["receiptId"]

        response = await client.get(f"/api/v1/receipts/{receipt_id}", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_200_OK
        receipt = response.json()
        assert receipt["receipt"]["amountPaid"] == 5000
        assert receipt["invoice"]["paymentStatus"] == "Paid"

        response = await client.post("/api/v1/invoices/INV1/mark-paid", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already been marked as paid" in response.json()["detail"]

        receipts = await client.get("/api/v1/invoices/INV1/receipts", headers=auth_headers(SECRETARY_ID))
        assert len(receipts.json()) == 1

    async def test_mark_paid_permission_denied(self, client: AsyncClient, auth_headers, invoice_store):
        invoice_store.rules = lambda operation, path, data: not path.startswith("receipts/")
        response = await client.post("/api/v1/invoices/INV1/mark-paid", headers=auth_headers(SECRETARY_ID))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "permissions" in response.json()["detail"]

    async def test_record_partial_payment(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.post(
            "/api/v1/invoices/INV1/payments",
            json={"amount": 1000, "paymentMethod": "M-Pesa"},
            headers=auth_headers(SECRETARY_ID)
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["paymentStatus"] == "Partially Paid"

        response = await client.post(
            "/api/v1/invoices/INV1/payments",
            json={"amount": -5, "paymentMethod": "Cash"},
            headers=auth_headers(SECRETARY_ID)
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["field"] == "amount"

    async def test_overpayment_rejected(self, client: AsyncClient, auth_headers, invoice_store):
        response = await client.post(
            "/api/v1/invoices/INV1/payments",
            json={"amount": 6000, "paymentMethod": "Cash"},
            headers=auth_headers(SECRETARY_ID)
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["field"] == "amount"

        invoice = (await invoice_store.get_document("invoices/INV1")).data
        assert invoice["paymentStatus"] == "Unpaid"
