from typing import Any, Dict
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
import logging
from app.core.config import settings
from app.core.database import get_store
from app.crud.user import get_or_create_profile
from app.schemas.user import User
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


def verify_jwt(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"JWT error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def user_from_token(store: DocumentStore, token: str) -> User:
    """
    Resolve a bearer token to the signed-in user's profile, creating the
    profile on first sign-in.
    """
    payload = verify_jwt(token)
    metadata = payload.get("user_metadata") or {}
    return await get_or_create_profile(
        store,
        payload["sub"],
        email=payload.get("email"),
        full_name=metadata.get("full_name") or metadata.get("name"),
    )


async def get_current_user(
    store: DocumentStore = Depends(get_store),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await user_from_token(store, credentials.credentials)


def require_roles(*roles: str):
    """
    Dependency allowing only the given roles through.
    """
    allowed = {r.lower() for r in roles}

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.warning(f"User {current_user.id} with role {current_user.role} denied, needs {sorted(allowed)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user

    return checker
