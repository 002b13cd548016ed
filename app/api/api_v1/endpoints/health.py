from fastapi import APIRouter, Depends
from app.core import collections
from app.core.exceptions import AppError
from app.store.base import DocumentStore
from app.core.database import get_store

router = APIRouter()

@router.get("")
async def health_check(store: DocumentStore = Depends(get_store)):
    try:
        # Try a cheap read
        await store.get_collection(collections.SETTINGS, limit=1)
        store_status = "connected"
    except AppError as e:
        store_status = f"error: {e.message}"

    return {
        "status": "ok",
        "message": "API is running",
        "store": store_status
    }
