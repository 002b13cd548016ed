from typing import Any, Dict
from fastapi import APIRouter, Depends, HTTPException, status
import logging
from app.core import collections
from app.core.auth import get_current_user
from app.core.database import get_store
from app.schemas.notification import NotificationList
from app.schemas.user import User
from app.services.activity import list_notifications, mark_all_notifications_read, mark_notification_read
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/", response_model=NotificationList)
async def read_notifications(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Latest notifications of the signed-in user and the unread count.
    """
    return await list_notifications(store, current_user.id)

@router.post("/read-all")
async def read_all_notifications(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Dict[str, int]:
    """
    Mark every unread notification read.
    """
    return {"updated": await mark_all_notifications_read(store, current_user.id)}

@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def read_notification(
    *,
    notification_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> None:
    path = collections.doc_path(collections.notifications_path(current_user.id), notification_id)
    if not (await store.get_document(path)).exists:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    await mark_notification_read(store, current_user.id, notification_id)
