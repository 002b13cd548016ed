from typing import List, Any
from fastapi import APIRouter, Depends
from app.core.auth import get_current_user
from app.core.database import get_store
from app.crud import client as client_crud
from app.crud import invoice as invoice_crud
from app.schemas.user import User
from app.schemas.views import ReceiptDetail, ReceiptRow
from app.services import joiner
from app.store.base import DocumentStore

router = APIRouter()

@router.get("/", response_model=List[ReceiptRow])
async def read_receipts(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Retrieve receipts, newest first.
    """
    receipts = await invoice_crud.get_receipts(store)
    return joiner.join_receipts(receipts, await client_crud.get_clients(store))

@router.get("/{receipt_id}", response_model=ReceiptDetail)
async def read_receipt(
    *,
    receipt_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    return await invoice_crud.get_receipt_detail(store, receipt_id)
