from typing import List, Optional, Dict, Any, Union
import logging
from app.core import collections
from app.core.exceptions import NotFoundError
from app.schemas.activity import ActivityType
from app.schemas.client import ClientCreate, ClientUpdate
from app.schemas.user import User
from app.services.activity import log_activity
from app.store.base import DocumentStore, where
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


def _path(client_id: str) -> str:
    return collections.doc_path(collections.CLIENTS, client_id)


async def get_client(store: DocumentStore, client_id: str) -> Optional[Dict[str, Any]]:
    snapshot = await store.get_document(_path(client_id))
    return snapshot.to_dict() if snapshot.exists else None


async def get_client_by_email(store: DocumentStore, email: str) -> Optional[Dict[str, Any]]:
    snapshots = await store.get_collection(collections.CLIENTS, filters=[where("email", "==", email)], limit=1)
    return snapshots[0].to_dict() if snapshots else None


async def get_clients(store: DocumentStore) -> List[Dict[str, Any]]:
    return [s.to_dict() for s in await store.get_collection(collections.CLIENTS)]


async def create_client(store: DocumentStore, client: ClientCreate, actor: Optional[User] = None) -> Dict[str, Any]:
    data = client.model_dump(exclude_none=True)
    data["name"] = client.name or f"{client.firstName} {client.lastName}"
    data["createdAt"] = utcnow().isoformat()
    client_id = await store.add_document(collections.CLIENTS, data)
    logger.info(f"Created client {client_id}: {data['name']}")
    await log_activity(
        store,
        ActivityType.client_create,
        f"New client added: {data['name']}",
        actor=actor,
        meta={"clientId": client_id},
    )
    return {**data, "id": client_id}


async def update_client(
    store: DocumentStore, client_id: str, client_in: Union[ClientUpdate, Dict[str, Any]]
) -> Dict[str, Any]:
    if isinstance(client_in, dict):
        update_data = client_in
    else:
        update_data = client_in.model_dump(exclude_unset=True)

    await store.update_document(_path(client_id), update_data)
    logger.info(f"Updated client {client_id}: {sorted(update_data)}")
    return await get_client(store, client_id)


async def delete_client(store: DocumentStore, client_id: str, actor: Optional[User] = None) -> Dict[str, Any]:
    client = await get_client(store, client_id)
    if client is None:
        raise NotFoundError(f"Client {client_id} not found.")
    await store.delete_document(_path(client_id))
    logger.info(f"Deleted client {client_id}")
    await log_activity(
        store,
        ActivityType.client_delete,
        f"Client deleted: {client.get('name') or client_id}",
        actor=actor,
        meta={"clientId": client_id},
    )
    return client
