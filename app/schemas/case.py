"""
Cases and files ("matters").

Both collections hold the same kind of record under different field names:
cases use ``caseName``/``caseDescription``/``filingDate`` and files use
``fileName``/``fileDescription``/``openingDate``. ``Matter`` is the canonical
shape; ``MATTER_FIELDS`` maps it back to the stored names.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, validator

from app.core import collections
from app.schemas.base import BaseSchema, first_present, timestamp_validator


class CaseStatus(str, Enum):
    open = "Open"
    in_progress = "In Progress"
    on_hold = "On Hold"
    closed = "Closed"


class CaseOutcome(str, Enum):
    win = "Win"
    loss = "Loss"
    settled = "Settled"
    dismissed = "Dismissed"
    other = "Other"


MATTER_FIELDS: Dict[str, Dict[str, str]] = {
    collections.CASES: {
        "name": "caseName",
        "description": "caseDescription",
        "opened": "filingDate",
    },
    collections.FILES: {
        "name": "fileName",
        "description": "fileDescription",
        "opened": "openingDate",
    },
}


def _validate_status(v: Any) -> CaseStatus:
    if isinstance(v, CaseStatus):
        return v
    if isinstance(v, str):
        for status in CaseStatus:
            if status.value.lower() == v.strip().lower():
                return status
    raise ValueError(f"Invalid status value: {v}. Valid values are: {[e.value for e in CaseStatus]}")


class MatterBase(BaseModel):
    name: str
    description: str = ""
    clientId: str = ""
    assignedPersonnelIds: List[str] = []
    status: CaseStatus = CaseStatus.open

    @validator("status", pre=True)
    def validate_status(cls, v):
        return _validate_status(v)


class MatterCreate(MatterBase):
    clientId: str
    assignedLawyerId: Optional[str] = None

    @validator("name")
    def name_not_blank(cls, v: str) -> str:
        if len(v.strip()) < 3:
            raise ValueError("Name must be at least 3 characters.")
        return v.strip()


class MatterUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    clientId: Optional[str] = None
    assignedLawyerId: Optional[str] = None


class StatusChange(BaseModel):
    status: CaseStatus

    @validator("status", pre=True)
    def validate_status(cls, v):
        return _validate_status(v)


class StatusDetails(BaseModel):
    """Form values of the "Save details" action; which ones matter depends on status."""

    status: Optional[CaseStatus] = None
    closedOutcome: Optional[str] = None
    closedNotes: Optional[str] = None
    holdReason: Optional[str] = None
    progressStage: Optional[str] = None
    progressNotes: Optional[str] = None

    @validator("status", pre=True)
    def validate_status(cls, v):
        return None if v is None else _validate_status(v)


class Matter(MatterBase, BaseSchema):
    kind: str = collections.CASES
    openedAt: Optional[datetime] = None
    caseType: Optional[str] = None
    closedOutcome: Optional[str] = None
    closedNotes: Optional[str] = None
    closedAt: Optional[datetime] = None
    holdReason: Optional[str] = None
    onHoldSince: Optional[datetime] = None
    progressStage: Optional[str] = None
    progressNotes: Optional[str] = None

    parse_timestamps = timestamp_validator("openedAt", "closedAt", "onHoldSince")

    @property
    def assigned_lawyer_id(self) -> Optional[str]:
        # A matter has one responsible lawyer: the first assigned person.
        return self.assignedPersonnelIds[0] if self.assignedPersonnelIds else None


def normalize_matter(raw: Dict[str, Any], kind: str = collections.CASES) -> Matter:
    assigned = raw.get("assignedPersonnelIds") or []
    if not assigned and raw.get("assignedLawyerId"):
        assigned = [raw["assignedLawyerId"]]
    name = first_present(raw, "caseName", "fileName", "title", default="Untitled Case")
    status = raw.get("status") or CaseStatus.open.value
    try:
        status = _validate_status(status)
    except ValueError:
        status = CaseStatus.open

    client = raw.get("client")
    return Matter(
        id=raw["id"],
        kind=kind,
        name=name,
        description=first_present(raw, "caseDescription", "fileDescription", "description", default=""),
        clientId=raw.get("clientId") or (client.get("id") if isinstance(client, dict) else "") or "",
        assignedPersonnelIds=list(assigned),
        status=status,
        openedAt=first_present(raw, "filingDate", "openingDate", "createdAt"),
        caseType=raw.get("caseType") or (name.split(" ")[0] if name else None),
        closedOutcome=raw.get("closedOutcome"),
        closedNotes=raw.get("closedNotes"),
        closedAt=raw.get("closedAt"),
        holdReason=raw.get("holdReason"),
        onHoldSince=raw.get("onHoldSince"),
        progressStage=raw.get("progressStage"),
        progressNotes=raw.get("progressNotes"),
    )
