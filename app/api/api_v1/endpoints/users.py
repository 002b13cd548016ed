from typing import List, Any
from fastapi import APIRouter, Depends, HTTPException, status
import logging
from app.core.auth import get_current_user
from app.core.database import get_store
from app.core.permissions import can_change_role
from app.crud import user as user_crud
from app.schemas.user import User, UserResponse, UserRoleUpdate, normalize_user, to_response
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/me", response_model=UserResponse)
async def read_user_me(current_user: User = Depends(get_current_user)) -> Any:
    """
    Get current user.
    """
    return to_response(current_user)

@router.get("/", response_model=List[UserResponse])
async def read_users(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Retrieve users.
    """
    return [to_response(normalize_user(u)) for u in await user_crud.get_users(store)]

@router.get("/advocates", response_model=List[UserResponse])
async def read_advocates(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Users who can be assigned cases and appointments (admins and lawyers).
    """
    users = [normalize_user(u) for u in await user_crud.get_users(store)]
    return [to_response(u) for u in users if u.is_advocate]

@router.get("/{user_id}", response_model=UserResponse)
async def read_user_by_id(
    user_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Get a specific user by id.
    """
    user = await user_crud.get_user(store, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return to_response(user)

@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    *,
    user_id: str,
    role_in: UserRoleUpdate,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Change another user's role. Admins only, and never their own.
    """
    logger.info(f"Role change for {user_id} to {role_in.role.value} requested by {current_user.id}")
    if not can_change_role(current_user.role, current_user.id, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can change roles, and not their own"
        )
    user = await user_crud.update_user_role(store, user_id, role_in.role, actor=current_user)
    return to_response(user)
