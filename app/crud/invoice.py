from typing import List, Optional, Dict, Any
import logging
from app.core import collections
from app.core.exceptions import NotFoundError
from app.schemas.client import normalize_client
from app.schemas.invoice import normalize_invoice
from app.schemas.views import FirmSettings, InvoiceDetail, ReceiptDetail
from app.services import joiner
from app.store.base import DESCENDING, DocumentStore, where

logger = logging.getLogger(__name__)

FIRM_SETTINGS_PATH = collections.doc_path(collections.SETTINGS, "firm")


async def get_invoice(store: DocumentStore, invoice_id: str) -> Optional[Dict[str, Any]]:
    snapshot = await store.get_document(collections.doc_path(collections.INVOICES, invoice_id))
    return snapshot.to_dict() if snapshot.exists else None


async def get_invoices(
    store: DocumentStore, client_id: Optional[str] = None, payment_status: Optional[str] = None
) -> List[Dict[str, Any]]:
    filters = []
    if client_id:
        filters.append(where("clientId", "==", client_id))
    if payment_status:
        filters.append(where("paymentStatus", "==", payment_status))
    snapshots = await store.get_collection(
        collections.INVOICES, filters=filters, order_by=("invoiceDate", DESCENDING)
    )
    return [s.to_dict() for s in snapshots]


async def get_receipts(store: DocumentStore, invoice_id: Optional[str] = None) -> List[Dict[str, Any]]:
    filters = [where("invoiceId", "==", invoice_id)] if invoice_id else []
    snapshots = await store.get_collection(
        collections.RECEIPTS, filters=filters, order_by=("createdAt", DESCENDING)
    )
    return [s.to_dict() for s in snapshots]


async def get_receipt(store: DocumentStore, receipt_id: str) -> Optional[Dict[str, Any]]:
    snapshot = await store.get_document(collections.doc_path(collections.RECEIPTS, receipt_id))
    return snapshot.to_dict() if snapshot.exists else None


async def get_firm_settings(store: DocumentStore) -> Optional[FirmSettings]:
    snapshot = await store.get_document(FIRM_SETTINGS_PATH)
    return FirmSettings(**snapshot.data) if snapshot.exists else None


async def _clients_for(store: DocumentStore, client_id: Optional[str]) -> List[Dict[str, Any]]:
    if not client_id:
        return []
    snapshot = await store.get_document(collections.doc_path(collections.CLIENTS, client_id))
    return [snapshot.to_dict()] if snapshot.exists else []


async def get_invoice_detail(store: DocumentStore, invoice_id: str) -> InvoiceDetail:
    invoice = await get_invoice(store, invoice_id)
    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found.")
    clients = await _clients_for(store, invoice.get("clientId"))
    return InvoiceDetail(
        invoice=joiner.join_invoices([invoice], clients)[0],
        client=normalize_client(clients[0]) if clients else None,
        firm=await get_firm_settings(store),
    )


async def get_receipt_detail(store: DocumentStore, receipt_id: str) -> ReceiptDetail:
    receipt = await get_receipt(store, receipt_id)
    if receipt is None:
        raise NotFoundError(f"Receipt {receipt_id} not found.")
    clients = await _clients_for(store, receipt.get("clientId"))
    invoice = await get_invoice(store, receipt["invoiceId"]) if receipt.get("invoiceId") else None
    return ReceiptDetail(
        receipt=joiner.join_receipts([receipt], clients)[0],
        invoice=normalize_invoice(invoice) if invoice else None,
    )
