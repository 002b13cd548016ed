from typing import List, Optional, Dict, Any
import logging
from app.core import collections
from app.store.base import ASCENDING, DocumentStore, where

logger = logging.getLogger(__name__)


async def get_appointment(store: DocumentStore, appointment_id: str) -> Optional[Dict[str, Any]]:
    snapshot = await store.get_document(collections.doc_path(collections.APPOINTMENTS, appointment_id))
    return snapshot.to_dict() if snapshot.exists else None


async def get_appointments(
    store: DocumentStore, user_id: Optional[str] = None, client_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Appointments in start order, optionally for one user or one client."""
    filters = []
    if user_id:
        filters.append(where("userId", "==", user_id))
    if client_id:
        filters.append(where("clientId", "==", client_id))
    snapshots = await store.get_collection(
        collections.APPOINTMENTS, filters=filters, order_by=("startTime", ASCENDING)
    )
    return [s.to_dict() for s in snapshots]
