from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime

from app.schemas.base import BaseSchema, timestamp_validator


class ActivityType(str, Enum):
    client_create = "client:create"
    client_delete = "client:delete"
    case_create = "case:create"
    case_status = "case:status"
    file_create = "file:create"
    file_status = "file:status"
    document_upload = "document:upload"
    invoice_create = "invoice:create"
    invoice_paid = "invoice:paid"
    payment_record = "payment:record"
    appointment_create = "appointment:create"
    appointment_request = "appointment:request"
    user_role = "user:role"


class Activity(BaseSchema):
    type: str = "activity"
    message: str = "Activity"
    description: str = ""
    actorId: Optional[str] = None
    actorName: str = "System"
    fileId: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None

    parse_timestamps = timestamp_validator("timestamp")


class ActivityRow(Activity):
    user: str
    prettyTime: str


def normalize_activity(raw: Dict[str, Any]) -> Activity:
    message = raw.get("message")
    return Activity(
        id=raw["id"],
        type=raw.get("type") or "activity",
        message=message or raw.get("type") or "Activity",
        description=raw.get("description") or (message if isinstance(message, str) else ""),
        actorId=raw.get("actorId"),
        actorName=raw.get("actorName") or "System",
        fileId=raw.get("fileId"),
        meta=raw.get("meta"),
        timestamp=raw.get("timestamp"),
    )
