"""Activity log and per-user notifications."""

import logging
from typing import Any, Dict, List, Optional

from app.core import collections
from app.core.config import settings
from app.core.exceptions import AppError
from app.schemas.activity import ActivityType
from app.schemas.notification import NotificationList, normalize_notification
from app.schemas.user import User
from app.store.base import DESCENDING, SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)


async def log_activity(
    store: DocumentStore,
    activity_type: ActivityType,
    message: str,
    actor: Optional[User] = None,
    meta: Optional[Dict[str, Any]] = None,
    file_id: Optional[str] = None,
    actor_name: Optional[str] = None,
) -> Optional[str]:
    """
    Append an entry to the activity log.

    The log is informational: a failed write is logged and does not fail the
    action that produced it.
    """
    entry = {
        "type": activity_type.value,
        "message": message,
        "description": message,
        "actorId": actor.id if actor else None,
        "actorName": actor_name or (actor.name if actor else "System"),
        "meta": meta or {},
        "fileId": file_id,
        "timestamp": SERVER_TIMESTAMP,
    }
    try:
        return await store.add_document(collections.ACTIVITIES, entry)
    except AppError as e:
        logger.warning(f"Could not log activity {activity_type.value}: {e}")
        return None


async def notify_user(store: DocumentStore, user_id: str, message: str, link: Optional[str] = None) -> Optional[str]:
    if not user_id:
        return None
    notification = {
        "userId": user_id,
        "message": message,
        "link": link,
        "read": False,
        "createdAt": SERVER_TIMESTAMP,
    }
    try:
        notification_id = await store.add_document(collections.notifications_path(user_id), notification)
    except AppError as e:
        logger.warning(f"Could not notify user {user_id}: {e}")
        return None
    logger.info(f"Notified user {user_id}: {message}")
    return notification_id


async def list_notifications(store: DocumentStore, user_id: str, limit: Optional[int] = None) -> NotificationList:
    """Latest notifications first, plus the number still unread."""
    path = collections.notifications_path(user_id)
    latest = await store.get_collection(
        path, order_by=("createdAt", DESCENDING), limit=limit or settings.NOTIFICATIONS_LIMIT
    )
    everything = await store.get_collection(path)
    return NotificationList(
        notifications=[normalize_notification(s.to_dict()) for s in latest],
        unreadCount=sum(1 for s in everything if not s.data.get("read", False)),
    )


async def mark_notification_read(store: DocumentStore, user_id: str, notification_id: str) -> None:
    await store.update_document(
        collections.doc_path(collections.notifications_path(user_id), notification_id), {"read": True}
    )


async def mark_all_notifications_read(store: DocumentStore, user_id: str) -> int:
    """Mark every unread notification read in one batch; returns how many changed."""
    path = collections.notifications_path(user_id)
    unread: List[str] = [s.path for s in await store.get_collection(path) if not s.data.get("read", False)]
    if not unread:
        return 0

    async def batch(tx):
        still_unread = []
        for doc_path in unread:
            snapshot = await tx.get(doc_path)
            if snapshot.exists and not snapshot.data.get("read", False):
                still_unread.append(doc_path)
        for doc_path in still_unread:
            tx.update(doc_path, {"read": True})
        return len(still_unread)

    count = await store.run_transaction(batch)
    logger.info(f"Marked {count} notifications read for user {user_id}")
    return count
