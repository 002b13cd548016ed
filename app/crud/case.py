"""
Cases and files.

Both live in their own collection with the same shape; ``kind`` is the
collection name (``"cases"`` or ``"files"``) and ``MATTER_FIELDS`` gives the
stored field names for it.
"""

from typing import List, Optional, Dict, Any
from datetime import datetime
import logging
from app.core import collections
from app.core.exceptions import NotFoundError
from app.schemas.activity import ActivityType
from app.schemas.case import MATTER_FIELDS, MatterCreate, MatterUpdate
from app.schemas.document import normalize_attachment
from app.schemas.client import normalize_client
from app.schemas.user import User, normalize_user
from app.schemas.views import MatterDetail
from app.services import joiner
from app.services.activity import log_activity, notify_user
from app.store.base import DESCENDING, DocumentStore, where
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

LABELS = {collections.CASES: "case", collections.FILES: "file"}
CREATE_ACTIVITY = {collections.CASES: ActivityType.case_create, collections.FILES: ActivityType.file_create}


def _path(kind: str, matter_id: str) -> str:
    return collections.doc_path(kind, matter_id)


async def get_matter(store: DocumentStore, kind: str, matter_id: str) -> Optional[Dict[str, Any]]:
    snapshot = await store.get_document(_path(kind, matter_id))
    return snapshot.to_dict() if snapshot.exists else None


async def get_matters(
    store: DocumentStore,
    kind: str,
    client_id: Optional[str] = None,
    assigned_to: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Get cases or files with optional filtering.
    """
    filters = []
    if client_id:
        filters.append(where("clientId", "==", client_id))
    if assigned_to:
        filters.append(where("assignedPersonnelIds", "array-contains", assigned_to))
    if status:
        filters.append(where("status", "==", status))
    return [s.to_dict() for s in await store.get_collection(kind, filters=filters)]


async def create_matter(
    store: DocumentStore, kind: str, matter_in: MatterCreate, actor: Optional[User] = None
) -> Dict[str, Any]:
    fields = MATTER_FIELDS[kind]
    label = LABELS[kind]
    # One responsible lawyer per matter, stored as the single assigned person
    lawyer_id = matter_in.assignedLawyerId or next(iter(matter_in.assignedPersonnelIds), None)

    data = {
        fields["name"]: matter_in.name,
        fields["description"]: matter_in.description,
        fields["opened"]: utcnow().isoformat(),
        "clientId": matter_in.clientId,
        "assignedPersonnelIds": [lawyer_id] if lawyer_id else [],
        "status": matter_in.status.value,
    }
    matter_id = await store.add_document(kind, data)
    logger.info(f"Created {label} {matter_id}: {matter_in.name}")

    if lawyer_id and (actor is None or actor.id != lawyer_id):
        await notify_user(
            store,
            lawyer_id,
            f"You have been assigned to the {label} '{matter_in.name}'.",
            link=f"/dashboard/{kind}/{matter_id}",
        )
    await log_activity(
        store,
        CREATE_ACTIVITY[kind],
        f"New {label} opened: {matter_in.name}",
        actor=actor,
        meta={f"{label}Id": matter_id, "clientId": matter_in.clientId},
        file_id=matter_id if kind == collections.FILES else None,
    )
    return {**data, "id": matter_id}


async def update_matter(
    store: DocumentStore, kind: str, matter_id: str, matter_in: MatterUpdate, actor: Optional[User] = None
) -> Dict[str, Any]:
    current = await get_matter(store, kind, matter_id)
    if current is None:
        raise NotFoundError(f"{LABELS[kind].capitalize()} {matter_id} not found.")

    fields = MATTER_FIELDS[kind]
    changes = matter_in.model_dump(exclude_unset=True)
    update_data: Dict[str, Any] = {}
    if "name" in changes:
        update_data[fields["name"]] = changes["name"]
    if "description" in changes:
        update_data[fields["description"]] = changes["description"]
    if "clientId" in changes:
        update_data["clientId"] = changes["clientId"]

    reassigned_to = None
    if "assignedLawyerId" in changes:
        lawyer_id = changes["assignedLawyerId"]
        update_data["assignedPersonnelIds"] = [lawyer_id] if lawyer_id else []
        previous = (current.get("assignedPersonnelIds") or [None])[0]
        if lawyer_id and lawyer_id != previous:
            reassigned_to = lawyer_id

    if update_data:
        await store.update_document(_path(kind, matter_id), update_data)
        logger.info(f"Updated {LABELS[kind]} {matter_id}: {sorted(update_data)}")
    if reassigned_to and (actor is None or actor.id != reassigned_to):
        name = update_data.get(fields["name"]) or current.get(fields["name"]) or matter_id
        await notify_user(
            store,
            reassigned_to,
            f"You have been assigned to the {LABELS[kind]} '{name}'.",
            link=f"/dashboard/{kind}/{matter_id}",
        )
    return {**current, **update_data}


async def get_attachments(store: DocumentStore, kind: str, matter_id: str) -> List[Dict[str, Any]]:
    snapshots = await store.get_collection(
        collections.documents_path(kind, matter_id), order_by=("scannedAt", DESCENDING)
    )
    return [s.to_dict() for s in snapshots]


async def get_matter_detail(
    store: DocumentStore, kind: str, matter_id: str, now: Optional[datetime] = None
) -> MatterDetail:
    """A case or file with its client, its lawyer and its attachments."""
    matter = await get_matter(store, kind, matter_id)
    if matter is None:
        raise NotFoundError(f"{LABELS[kind].capitalize()} {matter_id} not found.")

    clients: List[Dict[str, Any]] = []
    if matter.get("clientId"):
        snapshot = await store.get_document(collections.doc_path(collections.CLIENTS, matter["clientId"]))
        if snapshot.exists:
            clients.append(snapshot.to_dict())

    users: List[Dict[str, Any]] = []
    lawyer_ids = matter.get("assignedPersonnelIds") or []
    if lawyer_ids:
        snapshot = await store.get_document(collections.doc_path(collections.USERS, lawyer_ids[0]))
        if snapshot.exists:
            users.append(snapshot.to_dict())

    row = joiner.join_matters([matter], clients, users, now or utcnow(), kind=kind)[0]
    return MatterDetail(
        matter=row,
        client=normalize_client(clients[0]) if clients else None,
        lawyer=normalize_user(users[0]) if users else None,
        documents=[normalize_attachment(a) for a in await get_attachments(store, kind, matter_id)],
    )
