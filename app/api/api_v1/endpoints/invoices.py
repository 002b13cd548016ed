from typing import List, Any, Optional
from fastapi import APIRouter, Depends, Query, status
import logging
from app.core.auth import get_current_user
from app.core.database import get_store
from app.crud import client as client_crud
from app.crud import invoice as invoice_crud
from app.schemas.invoice import InvoiceCreate, MarkPaidRequest, PaymentCreate, PaymentResult, PaymentStatus
from app.schemas.user import User
from app.schemas.views import InvoiceDetail, InvoiceRow, ReceiptRow
from app.services import billing, joiner
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/", response_model=List[InvoiceRow])
async def read_invoices(
    *,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    client_id: Optional[str] = Query(None, description="Filter by client ID"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filter by payment status")
) -> Any:
    """
    Retrieve invoices, newest first, with client names and balances.
    """
    invoices = await invoice_crud.get_invoices(
        store, client_id=client_id, payment_status=payment_status.value if payment_status else None
    )
    return joiner.join_invoices(invoices, await client_crud.get_clients(store))

@router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    *,
    invoice_in: InvoiceCreate,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Create new invoice.
    """
    logger.info(f"Invoice creation requested by user: {current_user.id} for client {invoice_in.clientId}")
    invoice_id = await billing.create_invoice(store, invoice_in, actor=current_user)
    return await invoice_crud.get_invoice_detail(store, invoice_id)

@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def read_invoice(
    *,
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Invoice with its client and the firm details printed on it.
    """
    return await invoice_crud.get_invoice_detail(store, invoice_id)

@router.get("/{invoice_id}/receipts", response_model=List[ReceiptRow])
async def read_invoice_receipts(
    *,
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    receipts = await invoice_crud.get_receipts(store, invoice_id=invoice_id)
    return joiner.join_receipts(receipts, await client_crud.get_clients(store))

@router.post("/{invoice_id}/mark-paid", response_model=PaymentResult)
async def mark_invoice_paid(
    *,
    invoice_id: str,
    payment_in: Optional[MarkPaidRequest] = None,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Mark an invoice Paid and issue its receipt in one transaction.

    Fails with 409 when the invoice is already paid.
    """
    payment_in = payment_in or MarkPaidRequest()
    logger.info(f"Mark-paid requested for invoice {invoice_id} by user: {current_user.id}")
    receipt_id = await billing.mark_invoice_paid(
        store,
        invoice_id,
        payment_method=payment_in.paymentMethod,
        payment_date=payment_in.paymentDate,
        actor=current_user,
    )
    return PaymentResult(receiptId=receipt_id, invoiceId=invoice_id, paymentStatus=PaymentStatus.paid.value)

@router.post("/{invoice_id}/payments", response_model=PaymentResult, status_code=status.HTTP_201_CREATED)
async def record_payment(
    *,
    invoice_id: str,
    payment_in: PaymentCreate,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Record a full or partial payment against an invoice.
    """
    logger.info(f"Payment of {payment_in.amount} for invoice {invoice_id} by user: {current_user.id}")
    return await billing.record_payment(
        store,
        invoice_id,
        payment_in.amount,
        payment_date=payment_in.paymentDate,
        payment_method=payment_in.paymentMethod,
        actor=current_user,
    )
