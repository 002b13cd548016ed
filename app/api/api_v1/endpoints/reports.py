from typing import Any
from fastapi import APIRouter, Depends
from app.core.auth import require_roles
from app.core.database import get_store
from app.core.permissions import ADMIN
from app.schemas.user import User
from app.schemas.views import ReportSummary
from app.services.reports import report_summary
from app.store.base import DocumentStore

router = APIRouter()

@router.get("", response_model=ReportSummary)
async def read_reports(
    current_user: User = Depends(require_roles(ADMIN)),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Firm-wide reports. Admins only.
    """
    return await report_summary(store)
