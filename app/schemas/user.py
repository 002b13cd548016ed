from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel

from app.schemas.base import BaseSchema

UNASSIGNED = "Unassigned"
UNKNOWN_USER = "Unknown User"


class UserRole(str, Enum):
    admin = "admin"
    lawyer = "lawyer"
    secretary = "secretary"


class UserBase(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    role: str = UserRole.lawyer.value


class User(UserBase, BaseSchema):
    @property
    def name(self) -> str:
        return f"{self.firstName or ''} {self.lastName or ''}".strip() or (self.email or "")

    @property
    def is_advocate(self) -> bool:
        return self.role in (UserRole.admin.value, UserRole.lawyer.value)


class UserResponse(User):
    displayName: str


class UserRoleUpdate(BaseModel):
    role: UserRole


def normalize_role(role: Any, default: str = UserRole.lawyer.value) -> str:
    """Roles are free text in storage and compared lowercased."""
    if role is None or str(role).strip() == "":
        return default
    return str(role).strip().lower()


def normalize_user(raw: Dict[str, Any]) -> User:
    return User(
        id=raw["id"],
        firstName=raw.get("firstName"),
        lastName=raw.get("lastName"),
        email=raw.get("email"),
        role=normalize_role(raw.get("role")),
    )


def user_display_name(user: Optional[User], fallback: str) -> str:
    if user is None:
        return fallback
    return f"{user.firstName or ''} {user.lastName or ''}".strip() or fallback


def to_response(user: User) -> UserResponse:
    return UserResponse(**user.model_dump(), displayName=user.name)
