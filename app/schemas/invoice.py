from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, validator

from app.schemas.base import BaseSchema, timestamp_validator


class PaymentStatus(str, Enum):
    paid = "Paid"
    unpaid = "Unpaid"
    overdue = "Overdue"
    partially_paid = "Partially Paid"


class InvoiceItem(BaseModel):
    description: str
    amount: float
    ref: Optional[str] = None


class InvoiceBase(BaseModel):
    clientId: str
    fileId: Optional[str] = None
    items: List[InvoiceItem] = []
    amount: Optional[float] = None
    description: Optional[str] = None
    note: Optional[str] = None
    reference: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    invoiceDate: Optional[datetime] = None
    dueDate: Optional[datetime] = None
    paymentStatus: PaymentStatus = PaymentStatus.unpaid
    clientAddress: Optional[str] = None
    saveAddressToClient: bool = False

    @validator("items")
    def positive_items(cls, v: List[InvoiceItem]) -> List[InvoiceItem]:
        for item in v:
            if item.amount < 0:
                raise ValueError("Item amounts must not be negative.")
        return v


class Invoice(InvoiceBase, BaseSchema):
    clientId: str = ""
    clientName: Optional[str] = None
    fileName: Optional[str] = None
    invoiceDate: Optional[datetime] = None
    dueDate: Optional[datetime] = None
    paymentStatus: str = PaymentStatus.unpaid.value
    amountPaid: float = 0.0
    balance: Optional[float] = None
    paidAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    parse_timestamps = timestamp_validator("invoiceDate", "dueDate", "paidAt", "createdAt")


class MarkPaidRequest(BaseModel):
    paymentMethod: str = "Bank Transfer"
    paymentDate: Optional[datetime] = None


class PaymentCreate(BaseModel):
    amount: float = Field(..., description="Amount received")
    paymentDate: Optional[datetime] = None
    paymentMethod: str = "Bank Transfer"


class PaymentResult(BaseModel):
    receiptId: str
    invoiceId: str
    paymentStatus: str


def _stored_amount(value: Any) -> float:
    # Stored line items may hold strings typed into forms
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def invoice_total(items: Optional[List[Any]], amount: Optional[float] = None) -> float:
    """Sum of line items, or the flat amount when there are none."""
    if items:
        total = 0.0
        for item in items:
            value = item.get("amount") if isinstance(item, dict) else item.amount
            try:
                total += float(value or 0)
            except (TypeError, ValueError):
                continue
        return total
    try:
        return float(amount or 0)
    except (TypeError, ValueError):
        return 0.0


def normalize_invoice(raw: Dict[str, Any]) -> Invoice:
    items = [i for i in (raw.get("items") or []) if isinstance(i, dict)]
    return Invoice(
        id=raw["id"],
        clientId=raw.get("clientId") or "",
        clientName=raw.get("clientName"),
        fileId=raw.get("fileId"),
        fileName=raw.get("fileName"),
        items=[
            InvoiceItem(
                description=i.get("description") or "",
                amount=_stored_amount(i.get("amount")),
                ref=i.get("ref"),
            )
            for i in items
        ],
        amount=invoice_total(items, raw.get("amount")),
        description=raw.get("description"),
        note=raw.get("note"),
        reference=raw.get("reference"),
        invoiceDate=raw.get("invoiceDate"),
        dueDate=raw.get("dueDate"),
        paymentStatus=raw.get("paymentStatus") or PaymentStatus.unpaid.value,
        amountPaid=raw.get("amountPaid") or 0.0,
        balance=raw.get("balance"),
        paidAt=raw.get("paidAt"),
        createdAt=raw.get("createdAt"),
    )
