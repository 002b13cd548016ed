from typing import Optional, List, Any, Dict
import logging
from app.core import collections
from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.schemas.activity import ActivityType
from app.schemas.user import User, UserRole, normalize_role, normalize_user
from app.services.activity import log_activity
from app.store.base import DocumentStore
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


def _path(user_id: str) -> str:
    return collections.doc_path(collections.USERS, user_id)


async def get_user(store: DocumentStore, user_id: str) -> Optional[User]:
    snapshot = await store.get_document(_path(user_id))
    return normalize_user(snapshot.to_dict()) if snapshot.exists else None


async def get_users(store: DocumentStore) -> List[Dict[str, Any]]:
    return [s.to_dict() for s in await store.get_collection(collections.USERS)]


def default_role_for(email: Optional[str]) -> str:
    admins = {e.lower() for e in settings.ADMIN_EMAILS}
    if email and email.lower() in admins:
        return UserRole.admin.value
    return normalize_role(settings.DEFAULT_ROLE)


def _split_name(full_name: Optional[str], email: Optional[str]) -> Dict[str, str]:
    if full_name and full_name.strip():
        first, _, last = full_name.strip().partition(" ")
        return {"firstName": first, "lastName": last.strip()}
    local_part = (email or "").split("@")[0]
    return {"firstName": local_part, "lastName": ""}


async def get_or_create_profile(
    store: DocumentStore, user_id: str, email: Optional[str] = None, full_name: Optional[str] = None
) -> User:
    """
    Load the profile linked to an authenticated identity, creating it on
    first sign-in. The role is normalized to lowercase.
    """
    profile = await get_user(store, user_id)
    if profile is not None:
        return profile

    data: Dict[str, Any] = {
        **_split_name(full_name, email),
        "email": email,
        "role": default_role_for(email),
        "createdAt": utcnow().isoformat(),
    }
    await store.set_document(_path(user_id), data, merge=True)
    logger.info(f"Created profile for user {user_id} with role {data['role']}")
    return normalize_user({**data, "id": user_id})


async def update_user_role(store: DocumentStore, user_id: str, role: UserRole, actor: Optional[User] = None) -> User:
    user = await get_user(store, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found.")
    await store.update_document(_path(user_id), {"role": role.value})
    logger.info(f"Changed role of user {user_id} from {user.role} to {role.value}")
    await log_activity(
        store,
        ActivityType.user_role,
        f"{user.name or user_id} is now {role.value}",
        actor=actor,
        meta={"userId": user_id, "role": role.value},
    )
    return user.model_copy(update={"role": role.value})
