"""
Case and file status.

A status change happens in two steps. Picking a new status writes only the
``status`` field, immediately and optimistically. Saving the details then
writes the metadata of the current status: each status is a variant that
carries exactly the fields it needs, and the metadata of every other status is
cleared in the same write.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from app.core.exceptions import InputValidationError
from app.schemas.case import CaseOutcome, CaseStatus, StatusDetails
from app.services.optimistic import LocalState, MutationResult, OptimisticMutationController
from app.store.base import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

STATUS_FIELDS = (
    "closedOutcome",
    "closedNotes",
    "closedAt",
    "holdReason",
    "onHoldSince",
    "progressStage",
    "progressNotes",
)


@dataclass(frozen=True)
class Open:
    status = CaseStatus.open


@dataclass(frozen=True)
class InProgress:
    stage: str
    notes: Optional[str] = None
    status = CaseStatus.in_progress


@dataclass(frozen=True)
class OnHold:
    reason: str
    since: Any = SERVER_TIMESTAMP
    status = CaseStatus.on_hold


@dataclass(frozen=True)
class Closed:
    outcome: str
    notes: Optional[str] = None
    at: Any = SERVER_TIMESTAMP
    status = CaseStatus.closed


StatusState = Union[Open, InProgress, OnHold, Closed]


def _blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == ""


def _outcome(value: str) -> str:
    for outcome in CaseOutcome:
        if outcome.value.lower() == value.strip().lower():
            return outcome.value
    raise InputValidationError(
        f"Unknown outcome '{value}'. Choose one of: {', '.join(o.value for o in CaseOutcome)}.",
        field="closedOutcome",
    )


def build_state(status: CaseStatus, details: StatusDetails) -> StatusState:
    """Validate the details form for ``status``; raises before anything is written."""
    if status == CaseStatus.closed:
        if _blank(details.closedOutcome):
            raise InputValidationError("Please choose an outcome when closing a case.", field="closedOutcome")
        return Closed(outcome=_outcome(details.closedOutcome), notes=details.closedNotes)
    if status == CaseStatus.on_hold:
        if _blank(details.holdReason):
            raise InputValidationError(
                "Please provide a reason for placing the case on hold.", field="holdReason"
            )
        return OnHold(reason=details.holdReason.strip())
    if status == CaseStatus.in_progress:
        if _blank(details.progressStage):
            raise InputValidationError(
                "Please select the current stage for 'In Progress'.", field="progressStage"
            )
        return InProgress(stage=details.progressStage.strip(), notes=details.progressNotes)
    return Open()


def transition_payload(state: StatusState) -> Dict[str, Any]:
    """Full write for entering ``state``: its own fields set, all others cleared."""
    payload: Dict[str, Any] = {"status": state.status.value}
    payload.update({name: None for name in STATUS_FIELDS})
    if isinstance(state, Closed):
        payload.update(closedOutcome=state.outcome, closedNotes=state.notes, closedAt=state.at)
    elif isinstance(state, OnHold):
        payload.update(holdReason=state.reason, onHoldSince=state.since)
    elif isinstance(state, InProgress):
        payload.update(progressStage=state.stage, progressNotes=state.notes)
    return payload


async def change_status(
    store: DocumentStore, path: str, status: CaseStatus, local: Optional[LocalState] = None
) -> MutationResult:
    """Immediate status change: writes ``status`` only."""
    local = local or LocalState()
    controller = OptimisticMutationController(store)
    return await controller.mutate(local, path, {"status": status.value})


async def save_status_details(
    store: DocumentStore, path: str, details: StatusDetails, current_status: CaseStatus
) -> Dict[str, Any]:
    status = details.status or current_status
    state = build_state(status, details)
    payload = transition_payload(state)
    await store.update_document(path, payload)
    logger.info(f"Saved {status.value} details for {path}")
    return payload
