from typing import Any
from fastapi import APIRouter, Depends
from app.core.auth import get_current_user
from app.core.permissions import compose_navigation
from app.schemas.user import User
from app.schemas.views import Navigation

router = APIRouter()

@router.get("", response_model=Navigation)
async def read_navigation(current_user: User = Depends(get_current_user)) -> Any:
    """
    Sections and actions available to the signed-in user's role.
    """
    return compose_navigation(current_user.role)
