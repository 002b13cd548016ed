from typing import Any
from fastapi import APIRouter, Depends
from app.core.auth import get_current_user
from app.core.database import get_store
from app.schemas.user import User
from app.schemas.views import DashboardSummary
from app.services.reports import dashboard_summary
from app.store.base import DocumentStore

router = APIRouter()

@router.get("", response_model=DashboardSummary)
async def read_dashboard(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Counts, revenue, upcoming appointments, recent files and activity.
    """
    return await dashboard_summary(store)
