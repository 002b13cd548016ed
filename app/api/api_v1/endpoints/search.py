from typing import Any
from fastapi import APIRouter, Depends, Query
from app.core.auth import get_current_user
from app.core.database import get_store
from app.schemas.user import User
from app.schemas.views import SearchResults
from app.services.search import global_search
from app.store.base import DocumentStore

router = APIRouter()

@router.get("", response_model=SearchResults)
async def search(
    *,
    q: str = Query(..., min_length=1, description="Text to look for"),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Search clients, files and invoices by name, email or reference.
    """
    return await global_search(store, q, limit=limit)
