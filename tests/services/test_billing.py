import asyncio
import pytest

from app.core.exceptions import (
    AlreadyPaidError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
)
from app.schemas.invoice import InvoiceCreate
from app.services.billing import create_invoice, mark_invoice_paid, record_payment
from app.store.memory import MemoryDocumentStore

INVOICE_PATH = "invoices/INV1"


@pytest.fixture
async def billing_store(store: MemoryDocumentStore) -> MemoryDocumentStore:
    await store.set_document("clients/C1", {"firstName": "John", "lastName": "Doe", "email": "john@example.com"})
    await store.set_document(
        INVOICE_PATH,
        {
            "clientId": "C1",
            "clientName": "John Doe",
            "items": [{"description": "Fee", "amount": 5000}],
            "paymentStatus": "Unpaid",
        },
    )
    return store


async def receipts_for(store, invoice_id):
    return [s for s in await store.get_collection("receipts") if s.data["invoiceId"] == invoice_id]


class TestMarkInvoicePaid:
    async def test_unpaid_invoice_gets_one_receipt(self, billing_store):
        receipt_id = await mark_invoice_paid(billing_store, "INV1")

        invoice = (await billing_store.get_document(INVOICE_PATH)).data
        assert invoice["paymentStatus"] == "Paid"
        assert invoice["paidAt"] is not None
        receipts = await receipts_for(billing_store, "INV1")
        assert [r.id for r in receipts] == [receipt_id]
        assert receipts[0].data["amountPaid"] == 5000
        assert receipts[0].data["clientName"] == "John Doe"
        assert receipts[0].data["paymentMethod"] == "Bank Transfer"

    async def test_concurrent_calls_create_one_receipt(self, billing_store):
        results = await asyncio.gather(
            mark_invoice_paid(billing_store, "INV1"),
            mark_invoice_paid(billing_store, "INV1"),
            return_exceptions=True,
        )
        succeeded = [r for r in results if isinstance(r, str)]
        rejected = [r for r in results if isinstance(r, AlreadyPaidError)]
        assert len(succeeded) == 1
        assert len(rejected) == 1
        assert len(await receipts_for(billing_store, "INV1")) == 1

    async def test_second_call_is_rejected_without_writes(self, billing_store):
        await mark_invoice_paid(billing_store, "INV1")
        writes = billing_store.write_count
        with pytest.raises(AlreadyPaidError):
            await mark_invoice_paid(billing_store, "INV1")
        assert billing_store.write_count == writes
        assert len(await receipts_for(billing_store, "INV1")) == 1

    async def test_missing_invoice(self, billing_store):
        with pytest.raises(NotFoundError):
            await mark_invoice_paid(billing_store, "NOPE")
        assert await billing_store.get_collection("receipts") == []

    async def test_denied_receipt_write_leaves_invoice_unpaid(self, billing_store):
        billing_store.rules = lambda operation, path, data: not path.startswith("receipts/")
        with pytest.raises(PermissionDeniedError) as exc_info:
            await mark_invoice_paid(billing_store, "INV1")
        assert "permissions" in exc_info.value.message
        assert (await billing_store.get_document(INVOICE_PATH)).data["paymentStatus"] == "Unpaid"

    async def test_partially_paid_receipt_covers_outstanding(self, billing_store):
        await billing_store.update_document(INVOICE_PATH, {"paymentStatus": "Partially Paid", "amountPaid": 2000})
        await mark_invoice_paid(billing_store, "INV1")
        receipts = await receipts_for(billing_store, "INV1")
        assert receipts[0].data["amountPaid"] == 3000
        invoice = (await billing_store.get_document(INVOICE_PATH)).data
        assert invoice["amountPaid"] == 5000
        assert invoice["balance"] == 0

    async def test_failing_subscriber_does_not_fail_the_payment(self, billing_store):
        def closed_socket(snapshots):
            raise RuntimeError("websocket closed")

        billing_store.listen("receipts", closed_socket)
        receipt_id = await mark_invoice_paid(billing_store, "INV1")

        assert (await billing_store.get_document(f"receipts/{receipt_id}")).exists
        assert (await billing_store.get_document(INVOICE_PATH)).data["paymentStatus"] == "Paid"


class TestRecordPayment:
    async def test_partial_then_full(self, billing_store):
        first = await record_payment(billing_store, "INV1", 2000, payment_method="Cash")
        assert first.paymentStatus == "Partially Paid"
        second = await record_payment(billing_store, "INV1", 3000, payment_method="Cheque")
        assert second.paymentStatus == "Paid"

        invoice = (await billing_store.get_document(INVOICE_PATH)).data
        assert invoice["amountPaid"] == 5000
        assert invoice["balance"] == 0
        amounts = sorted(r.data["amountPaid"] for r in await receipts_for(billing_store, "INV1"))
        assert amounts == [2000, 3000]

    async def test_rejects_non_positive_amount(self, billing_store):
        with pytest.raises(InputValidationError) as exc_info:
            await record_payment(billing_store, "INV1", 0)
        assert exc_info.value.field == "amount"

    async def test_rejects_overpayment_without_writes(self, billing_store):
        await record_payment(billing_store, "INV1", 4000, payment_method="Cash")
        writes = billing_store.write_count
        with pytest.raises(InputValidationError) as exc_info:
            await record_payment(billing_store, "INV1", 1500, payment_method="Cash")
        assert exc_info.value.field == "amount"
        assert billing_store.write_count == writes
        invoice = (await billing_store.get_document(INVOICE_PATH)).data
        assert invoice["balance"] == 1000

    async def test_rejects_paid_invoice(self, billing_store):
        await mark_invoice_paid(billing_store, "INV1")
        with pytest.raises(AlreadyPaidError):
            await record_payment(billing_store, "INV1", 100)


class TestCreateInvoice:
    def test_rejects_unparseable_amount(self):
        with pytest.raises(ValueError):
            InvoiceCreate(clientId="C1", items=[{"description": "Fee", "amount": "5,000"}])

    async def test_copies_client_name_and_totals(self, billing_store):
        invoice_in = InvoiceCreate(
            clientId="C1",
            items=[{"description": "Drafting", "amount": "1200"}, {"description": "Filing", "amount": 300}],
            clientAddress="1 High St",
            saveAddressToClient=True,
        )
        invoice_id = await create_invoice(billing_store, invoice_in)

        invoice = (await billing_store.get_document(f"invoices/{invoice_id}")).data
        assert invoice["clientName"] == "John Doe"
        assert invoice["amount"] == 1500
        assert invoice["balance"] == 1500
        assert invoice["paymentStatus"] == "Unpaid"
        assert (await billing_store.get_document("clients/C1")).data["address"] == "1 High St"
        activities = await billing_store.get_collection("activities")
        assert [a.data["type"] for a in activities] == ["invoice:create"]
