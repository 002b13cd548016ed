"""Appointment scheduling and public consultation booking."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from app.core import collections
from app.core.exceptions import InputValidationError, NotFoundError, PermissionDeniedError
from app.core.permissions import can_cancel_appointment, can_reschedule_appointment, can_update_appointment
from app.schemas.activity import ActivityType
from app.schemas.appointment import AppointmentCreate, AppointmentUpdate, ConsultationRequest
from app.schemas.user import User, UserRole, normalize_role
from app.services.activity import log_activity, notify_user
from app.store.base import SERVER_TIMESTAMP, DocumentStore, where
from app.utils.dates import to_datetime, utcnow

logger = logging.getLogger(__name__)

CONSULTATION_LENGTH = timedelta(hours=1)


def at_time(day: date, hhmm: str) -> datetime:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def appointment_window(day: date, start: str, end: str) -> Tuple[datetime, datetime]:
    """Start and end of an appointment; the end must come after the start."""
    start_time = at_time(day, start)
    end_time = at_time(day, end)
    if start_time >= end_time:
        raise InputValidationError("End time must be after start time.", field="endTime")
    return start_time, end_time


def _appointment_path(appointment_id: str) -> str:
    return collections.doc_path(collections.APPOINTMENTS, appointment_id)


async def schedule_appointment(
    store: DocumentStore, appointment_in: AppointmentCreate, actor: Optional[User] = None
) -> str:
    start_time, end_time = appointment_window(
        appointment_in.appointmentDate, appointment_in.startTime, appointment_in.endTime
    )
    appointment = {
        "title": appointment_in.title,
        "description": appointment_in.description,
        "clientId": appointment_in.clientId,
        "userId": appointment_in.userId,
        "startTime": start_time,
        "endTime": end_time,
        "createdAt": SERVER_TIMESTAMP,
    }
    appointment_id = await store.add_document(collections.APPOINTMENTS, appointment)
    logger.info(f"Scheduled appointment {appointment_id} for user {appointment_in.userId} at {start_time}")

    if actor is None or actor.id != appointment_in.userId:
        await notify_user(
            store,
            appointment_in.userId,
            f"New appointment: {appointment_in.title} on {start_time:%d %b %Y %H:%M}.",
            link="/dashboard/calendar",
        )
    await log_activity(
        store,
        ActivityType.appointment_create,
        f"Appointment scheduled: {appointment_in.title}",
        actor=actor,
        meta={"appointmentId": appointment_id, "clientId": appointment_in.clientId},
    )
    return appointment_id


async def update_appointment(
    store: DocumentStore, appointment_id: str, update_in: AppointmentUpdate, actor: User
) -> Dict[str, Any]:
    """Update or reschedule an appointment; admins and the owning lawyer only."""
    path = _appointment_path(appointment_id)
    snapshot = await store.get_document(path)
    if not snapshot.exists:
        raise NotFoundError(f"Appointment {appointment_id} not found.")
    current = snapshot.data
    if not can_update_appointment(actor.role, actor.id, current):
        raise PermissionDeniedError("You can only update your own appointments.")

    changes = update_in.model_dump(exclude_unset=True)
    if "title" in changes and (changes["title"] is None or len(changes["title"].strip()) < 3):
        raise InputValidationError("Title must be at least 3 characters.", field="title")

    payload: Dict[str, Any] = {
        key: changes[key] for key in ("title", "description", "clientId", "userId") if key in changes
    }
    if any(key in changes for key in ("appointmentDate", "startTime", "endTime")):
        if not can_reschedule_appointment(actor.role, actor.id, current):
            raise PermissionDeniedError("You can only reschedule your own appointments.")
        old_start = to_datetime(current.get("startTime"))
        old_end = to_datetime(current.get("endTime"))
        day = changes.get("appointmentDate") or (old_start.date() if old_start else None)
        start = changes.get("startTime") or (f"{old_start:%H:%M}" if old_start else None)
        end = changes.get("endTime") or (f"{old_end:%H:%M}" if old_end else None)
        if day is None or start is None:
            raise InputValidationError("Please select a date and a start time.", field="startTime")
        if end is None:
            raise InputValidationError("Please select an end time.", field="endTime")
        payload["startTime"], payload["endTime"] = appointment_window(day, start, end)

    if payload:
        await store.set_document(path, payload, merge=True)
        logger.info(f"Updated appointment {appointment_id}: {sorted(payload)}")
    return {**current, **payload, "id": appointment_id}


async def cancel_appointment(store: DocumentStore, appointment_id: str, actor: User) -> None:
    if not can_cancel_appointment(actor.role):
        raise PermissionDeniedError("Only administrators can cancel appointments.")
    path = _appointment_path(appointment_id)
    snapshot = await store.get_document(path)
    if not snapshot.exists:
        raise NotFoundError(f"Appointment {appointment_id} not found.")
    await store.delete_document(path)
    logger.info(f"Cancelled appointment {appointment_id}")


async def _find_or_create_client(store: DocumentStore, request: ConsultationRequest, now: datetime) -> str:
    existing = await store.get_collection(collections.CLIENTS, filters=[where("email", "==", request.email)])
    if existing:
        return existing[0].id
    return await store.add_document(
        collections.CLIENTS,
        {
            "firstName": request.firstName,
            "lastName": request.lastName,
            "name": f"{request.firstName} {request.lastName}",
            "email": request.email,
            "phoneNumber": request.phone,
            "createdAt": now.isoformat(),
        },
    )


async def _first_advocate(store: DocumentStore) -> Optional[str]:
    for snapshot in await store.get_collection(collections.USERS):
        if normalize_role(snapshot.data.get("role")) in (UserRole.admin.value, UserRole.lawyer.value):
            return snapshot.id
    return None


async def book_consultation(
    store: DocumentStore, request: ConsultationRequest, now: Optional[datetime] = None
) -> str:
    """
    Turn a website consultation request into an appointment.

    The client is matched by email or created, the appointment goes to the
    first admin or lawyer and starts now for one hour so staff can reschedule
    it. Returns the appointment id.
    """
    now = now or utcnow()
    advocate_id = await _first_advocate(store)
    if advocate_id is None:
        raise NotFoundError("No available advocates to assign the consultation.")

    client_id = await _find_or_create_client(store, request, now)
    full_name = f"{request.firstName} {request.lastName}"
    appointment_id = await store.add_document(
        collections.APPOINTMENTS,
        {
            "title": f"Consultation: {full_name}",
            "description": f"New consultation request from landing page.\n\nClient Message:\n{request.message}",
            "clientId": client_id,
            "userId": advocate_id,
            "startTime": now,
            "endTime": now + CONSULTATION_LENGTH,
            "createdAt": SERVER_TIMESTAMP,
        },
    )
    logger.info(f"Consultation {appointment_id} booked for client {client_id}, assigned to {advocate_id}")

    await notify_user(
        store, advocate_id, f"New consultation request from {full_name}.", link="/dashboard/calendar"
    )
    await log_activity(
        store,
        ActivityType.appointment_request,
        f"New consultation request from {full_name}.",
        meta={"appointmentId": appointment_id, "clientId": client_id, "assignedUserId": advocate_id},
        actor_name="Website Visitor",
    )
    return appointment_id
