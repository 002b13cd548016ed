from typing import Any, Dict, Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field, validator

from app.schemas.base import BaseSchema, timestamp_validator

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class AppointmentBase(BaseModel):
    title: str
    description: Optional[str] = None
    clientId: str
    userId: str


class AppointmentCreate(AppointmentBase):
    """Scheduling form: a calendar day plus start and end clock times."""

    appointmentDate: date
    startTime: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")
    endTime: str = Field(..., pattern=TIME_PATTERN, description="HH:MM")

    @validator("title")
    def title_length(cls, v: str) -> str:
        if len(v.strip()) < 3:
            raise ValueError("Title must be at least 3 characters.")
        return v.strip()


class AppointmentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    clientId: Optional[str] = None
    userId: Optional[str] = None
    appointmentDate: Optional[date] = None
    startTime: Optional[str] = Field(None, pattern=TIME_PATTERN)
    endTime: Optional[str] = Field(None, pattern=TIME_PATTERN)


class Appointment(AppointmentBase, BaseSchema):
    clientId: str = ""
    userId: str = ""
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    createdAt: Optional[datetime] = None

    parse_timestamps = timestamp_validator("startTime", "endTime", "createdAt")


class ConsultationRequest(BaseModel):
    firstName: str
    lastName: str
    email: EmailStr
    phone: str
    message: str = ""


def normalize_appointment(raw: Dict[str, Any]) -> Appointment:
    return Appointment(
        id=raw["id"],
        title=raw.get("title") or "Untitled appointment",
        description=raw.get("description"),
        clientId=raw.get("clientId") or "",
        userId=raw.get("userId") or "",
        startTime=raw.get("startTime"),
        endTime=raw.get("endTime"),
        createdAt=raw.get("createdAt"),
    )
