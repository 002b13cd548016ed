from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, validator

from app.schemas.base import BaseSchema, first_present, timestamp_validator

UNKNOWN_CLIENT = "Unknown Client"


class ClientBase(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phoneNumber: Optional[str] = None
    address: Optional[str] = None


class ClientCreate(ClientBase):
    firstName: str
    lastName: str
    email: EmailStr

    @validator("firstName", "lastName")
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class ClientUpdate(ClientBase):
    email: Optional[EmailStr] = None


class Client(ClientBase, BaseSchema):
    createdAt: Optional[datetime] = None

    parse_created = timestamp_validator("createdAt")


def normalize_client(raw: Dict[str, Any]) -> Client:
    """Single place that copes with the composite and split name spellings."""
    return Client(
        id=raw["id"],
        firstName=raw.get("firstName"),
        lastName=raw.get("lastName"),
        name=raw.get("name"),
        email=raw.get("email"),
        phoneNumber=first_present(raw, "phoneNumber", "phone"),
        address=raw.get("address"),
        createdAt=raw.get("createdAt"),
    )


def client_display_name(client: Optional[Client], fallback: Optional[str] = None) -> Optional[str]:
    if client is None:
        return fallback
    if client.name and client.name.strip():
        return client.name.strip()
    composite = f"{client.firstName or ''} {client.lastName or ''}".strip()
    return composite or fallback
