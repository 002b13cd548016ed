from typing import List, Any
from fastapi import APIRouter, Depends, HTTPException, status
import logging
from app.core import collections
from app.core.auth import get_current_user
from app.core.database import get_store
from app.core.permissions import can_delete_client
from app.crud import case as case_crud
from app.crud import client as client_crud
from app.crud import invoice as invoice_crud
from app.crud import user as user_crud
from app.schemas.client import Client, ClientCreate, ClientUpdate, normalize_client
from app.schemas.user import User
from app.schemas.views import ClientDetail
from app.services import joiner
from app.store.base import DocumentStore
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
    *,
    client_in: ClientCreate,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Create new client.
    """
    logger.info(f"Client creation requested by user: {current_user.id}")
    if await client_crud.get_client_by_email(store, client_in.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A client with this email already exists"
        )
    created = await client_crud.create_client(store, client_in, actor=current_user)
    return normalize_client(created)

@router.get("/", response_model=List[Client])
async def get_clients(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Retrieve clients.
    """
    return [normalize_client(c) for c in await client_crud.get_clients(store)]

@router.get("/{client_id}", response_model=Client)
async def read_client(
    *,
    client_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Get client by ID.
    """
    client = await client_crud.get_client(store, client_id)
    if not client:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found"
        )
    return normalize_client(client)

@router.get("/{client_id}/detail", response_model=ClientDetail)
async def read_client_detail(
    *,
    client_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Client with its cases, files and invoices.
    """
    client = await client_crud.get_client(store, client_id)
    if not client:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found"
        )
    return joiner.join_documents_for_client(
        client,
        cases=await case_crud.get_matters(store, collections.CASES, client_id=client_id),
        files=await case_crud.get_matters(store, collections.FILES, client_id=client_id),
        invoices=await invoice_crud.get_invoices(store, client_id=client_id),
        users=await user_crud.get_users(store),
        now=utcnow(),
    )

@router.put("/{client_id}", response_model=Client)
async def update_client(
    *,
    client_id: str,
    client_in: ClientUpdate,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Update client.
    """
    logger.info(f"Client update requested for {client_id} by user: {current_user.id}")
    if not await client_crud.get_client(store, client_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found"
        )
    updated = await client_crud.update_client(store, client_id, client_in)
    return normalize_client(updated)

@router.delete("/{client_id}", response_model=Client)
async def delete_client(
    *,
    client_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Delete client. Admins only.
    """
    if not can_delete_client(current_user.role):
        logger.warning(f"Unauthorized client deletion attempt by user: {current_user.id}, role: {current_user.role}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can delete clients"
        )
    deleted = await client_crud.delete_client(store, client_id, actor=current_user)
    return normalize_client(deleted)
