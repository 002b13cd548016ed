"""
Invoices, payments and receipts.

``mark_invoice_paid`` is the one operation with a hard correctness rule: an
invoice moves to Paid at most once and exactly one receipt is created for
that move. Both checks and both writes happen inside one store transaction,
so two concurrent requests cannot both observe the invoice as unpaid.
"""

import logging
from datetime import datetime
from typing import Optional

from app.core import collections
from app.core.exceptions import (
    AlreadyPaidError,
    ContentionError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
    TransactionFailedError,
)
from app.schemas.activity import ActivityType
from app.schemas.client import client_display_name, normalize_client
from app.schemas.invoice import InvoiceCreate, PaymentResult, PaymentStatus, invoice_total
from app.schemas.user import User
from app.services.activity import log_activity
from app.store.base import SERVER_TIMESTAMP, DocumentStore
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

# Failures the caller can act on are passed through; anything else is wrapped.
_SURFACED = (NotFoundError, PreconditionFailedError, PermissionDeniedError, InputValidationError)


def _invoice_path(invoice_id: str) -> str:
    return collections.doc_path(collections.INVOICES, invoice_id)


async def _in_transaction(store: DocumentStore, fn, action: str, invoice_id: str):
    try:
        return await store.run_transaction(fn)
    except _SURFACED as e:
        logger.warning(f"{action} for invoice {invoice_id} rejected: {e.message}")
        raise
    except (ContentionError, TransactionFailedError) as e:
        logger.error(f"{action} for invoice {invoice_id} failed: {e.message}")
        raise
    except Exception as e:
        logger.error(f"{action} for invoice {invoice_id} failed: {e}")
        raise TransactionFailedError(f"{action} failed: {e}")


async def mark_invoice_paid(
    store: DocumentStore,
    invoice_id: str,
    payment_method: str = "Bank Transfer",
    payment_date: Optional[datetime] = None,
    actor: Optional[User] = None,
) -> str:
    """
    Transition an invoice to Paid and create its receipt; returns the receipt id.

    Raises NotFoundError when the invoice does not exist and AlreadyPaidError
    when it is already Paid at transaction time. In both cases nothing is
    written.
    """
    path = _invoice_path(invoice_id)
    paid_on = payment_date or utcnow()

    async def pay(tx) -> str:
        snapshot = await tx.get(path)
        if not snapshot.exists:
            raise NotFoundError(f"Invoice {invoice_id} not found.")
        invoice = snapshot.data
        if invoice.get("paymentStatus") == PaymentStatus.paid.value:
            raise AlreadyPaidError(invoice_id)

        total = invoice_total(invoice.get("items"), invoice.get("amount"))
        # A partially paid invoice is settled by its outstanding balance
        outstanding = max(total - float(invoice.get("amountPaid") or 0), 0.0)
        tx.update(
            path,
            {
                "paymentStatus": PaymentStatus.paid.value,
                "paidAt": SERVER_TIMESTAMP,
                "amountPaid": total,
                "balance": 0,
            },
        )
        return tx.create(
            collections.RECEIPTS,
            {
                "invoiceId": invoice_id,
                "clientId": invoice.get("clientId"),
                "clientName": invoice.get("clientName"),
                "amountPaid": outstanding,
                "paymentDate": paid_on,
                "paymentMethod": payment_method,
                "reference": invoice.get("reference"),
                "createdAt": SERVER_TIMESTAMP,
            },
        )

    receipt_id = await _in_transaction(store, pay, "Marking paid", invoice_id)
    logger.info(f"Invoice {invoice_id} marked paid, receipt {receipt_id}")
    await log_activity(
        store,
        ActivityType.invoice_paid,
        f"Invoice {invoice_id} marked as paid",
        actor=actor,
        meta={"invoiceId": invoice_id, "receiptId": receipt_id},
    )
    return receipt_id


async def record_payment(
    store: DocumentStore,
    invoice_id: str,
    amount: float,
    payment_date: Optional[datetime] = None,
    payment_method: str = "Bank Transfer",
    actor: Optional[User] = None,
) -> PaymentResult:
    """Record a full or partial payment and its receipt."""
    if amount is None or amount <= 0:
        raise InputValidationError("Amount must be a positive number.", field="amount")
    if not payment_method or len(payment_method.strip()) < 3:
        raise InputValidationError("Payment method is required.", field="paymentMethod")

    path = _invoice_path(invoice_id)
    paid_on = payment_date or utcnow()

    async def pay(tx) -> PaymentResult:
        snapshot = await tx.get(path)
        if not snapshot.exists:
            raise NotFoundError(f"Invoice {invoice_id} not found.")
        invoice = snapshot.data
        if invoice.get("paymentStatus") == PaymentStatus.paid.value:
            raise AlreadyPaidError(invoice_id)

        total = invoice_total(invoice.get("items"), invoice.get("amount"))
        outstanding = max(total - float(invoice.get("amountPaid") or 0), 0.0)
        if amount > outstanding:
            raise InputValidationError(
                f"Amount exceeds the outstanding balance of {outstanding:,.2f}.", field="amount"
            )
        amount_paid = float(invoice.get("amountPaid") or 0) + amount
        balance = total - amount_paid
        status = PaymentStatus.paid.value if balance <= 0 else PaymentStatus.partially_paid.value

        update = {
            "paymentStatus": status,
            "amountPaid": amount_paid,
            "balance": balance,
            "lastPaymentAt": SERVER_TIMESTAMP,
        }
        if status == PaymentStatus.paid.value:
            update["paidAt"] = SERVER_TIMESTAMP
        tx.update(path, update)

        receipt_id = tx.create(
            collections.RECEIPTS,
            {
                "invoiceId": invoice_id,
                "clientId": invoice.get("clientId"),
                "clientName": invoice.get("clientName"),
                "amountPaid": amount,
                "paymentDate": paid_on,
                "paymentMethod": payment_method,
                "reference": invoice.get("reference"),
                "createdAt": SERVER_TIMESTAMP,
            },
        )
        return PaymentResult(receiptId=receipt_id, invoiceId=invoice_id, paymentStatus=status)

    result = await _in_transaction(store, pay, "Recording payment", invoice_id)
    logger.info(f"Payment of {amount} recorded on invoice {invoice_id}: {result.paymentStatus}")
    await log_activity(
        store,
        ActivityType.payment_record,
        f"Payment of {amount:,.2f} recorded on invoice {invoice_id}",
        actor=actor,
        meta={"invoiceId": invoice_id, "receiptId": result.receiptId, "amount": amount},
    )
    return result


async def create_invoice(store: DocumentStore, invoice_in: InvoiceCreate, actor: Optional[User] = None) -> str:
    """Create an invoice, copying the client and file names onto it."""
    client_snapshot = await store.get_document(collections.doc_path(collections.CLIENTS, invoice_in.clientId))
    client_name = None
    if client_snapshot.exists:
        client_name = client_display_name(normalize_client(client_snapshot.to_dict()))

    file_name = None
    if invoice_in.fileId:
        file_snapshot = await store.get_document(collections.doc_path(collections.FILES, invoice_in.fileId))
        if file_snapshot.exists:
            file_name = file_snapshot.data.get("fileName")

    items = [item.model_dump() for item in invoice_in.items]
    total = invoice_total(items, invoice_in.amount)
    invoice = {
        "clientId": invoice_in.clientId,
        "clientName": client_name,
        "clientAddress": invoice_in.clientAddress,
        "fileId": invoice_in.fileId,
        "fileName": file_name,
        "amount": total,
        "items": items,
        "description": invoice_in.description,
        "note": invoice_in.note,
        "reference": invoice_in.reference,
        "invoiceDate": invoice_in.invoiceDate or utcnow(),
        "dueDate": invoice_in.dueDate,
        "paymentStatus": invoice_in.paymentStatus.value,
        "amountPaid": 0,
        "balance": total,
        "createdAt": SERVER_TIMESTAMP,
    }
    invoice_id = await store.add_document(collections.INVOICES, invoice)
    logger.info(f"Created invoice {invoice_id} for client {invoice_in.clientId}: {total}")

    if invoice_in.saveAddressToClient and invoice_in.clientAddress and client_snapshot.exists:
        try:
            await store.update_document(client_snapshot.path, {"address": invoice_in.clientAddress})
        except (NotFoundError, PermissionDeniedError) as e:
            logger.warning(f"Could not save address to client {invoice_in.clientId}: {e.message}")

    await log_activity(
        store,
        ActivityType.invoice_create,
        f"Invoice created for {client_name or 'client'}",
        actor=actor,
        meta={"invoiceId": invoice_id, "clientId": invoice_in.clientId, "amount": total},
    )
    return invoice_id
