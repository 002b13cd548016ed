from typing import Any, Dict, Optional
from datetime import datetime

from app.schemas.base import BaseSchema, timestamp_validator


class Receipt(BaseSchema):
    invoiceId: str
    clientId: str = ""
    clientName: Optional[str] = None
    amountPaid: float = 0.0
    paymentDate: Optional[datetime] = None
    paymentMethod: Optional[str] = None
    reference: Optional[str] = None
    createdAt: Optional[datetime] = None

    parse_timestamps = timestamp_validator("paymentDate", "createdAt")


def normalize_receipt(raw: Dict[str, Any]) -> Receipt:
    return Receipt(
        id=raw["id"],
        invoiceId=raw.get("invoiceId") or "",
        clientId=raw.get("clientId") or "",
        clientName=raw.get("clientName"),
        amountPaid=raw.get("amountPaid") or 0.0,
        paymentDate=raw.get("paymentDate"),
        paymentMethod=raw.get("paymentMethod"),
        reference=raw.get("reference"),
        createdAt=raw.get("createdAt"),
    )
