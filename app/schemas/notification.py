from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel

from app.schemas.base import BaseSchema, timestamp_validator


class Notification(BaseSchema):
    userId: Optional[str] = None
    message: str
    link: Optional[str] = None
    read: bool = False
    createdAt: Optional[datetime] = None

    parse_timestamps = timestamp_validator("createdAt")


class NotificationList(BaseModel):
    notifications: List[Notification]
    unreadCount: int


def normalize_notification(raw: Dict[str, Any]) -> Notification:
    return Notification(
        id=raw["id"],
        userId=raw.get("userId"),
        message=raw.get("message") or "",
        link=raw.get("link"),
        read=bool(raw.get("read", False)),
        createdAt=raw.get("createdAt"),
    )
