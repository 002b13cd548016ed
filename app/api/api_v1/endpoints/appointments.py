from typing import List, Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
import logging
from app.core.auth import get_current_user, require_roles
from app.core.database import get_store
from app.core.permissions import ADMIN, SECRETARY
from app.crud import appointment as appointment_crud
from app.crud import client as client_crud
from app.crud import user as user_crud
from app.schemas.appointment import Appointment, AppointmentCreate, AppointmentUpdate, normalize_appointment
from app.schemas.user import User
from app.schemas.views import AppointmentRow
from app.services import joiner
from app.services.scheduling import cancel_appointment, schedule_appointment, update_appointment
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/", response_model=List[AppointmentRow])
async def read_appointments(
    *,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    user_id: Optional[str] = Query(None, description="Filter by assigned user"),
    client_id: Optional[str] = Query(None, description="Filter by client ID")
) -> Any:
    """
    Retrieve appointments in start order, joined with client and user names.
    """
    appointments = await appointment_crud.get_appointments(store, user_id=user_id, client_id=client_id)
    return joiner.join_appointments(
        appointments, await client_crud.get_clients(store), await user_crud.get_users(store)
    )

@router.post("/", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    *,
    appointment_in: AppointmentCreate,
    current_user: User = Depends(require_roles(ADMIN, SECRETARY)),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Schedule an appointment. Admins and secretaries only.
    """
    logger.info(f"Appointment scheduling requested by user: {current_user.id}")
    appointment_id = await schedule_appointment(store, appointment_in, actor=current_user)
    return normalize_appointment(await appointment_crud.get_appointment(store, appointment_id))

@router.get("/{appointment_id}", response_model=Appointment)
async def read_appointment(
    *,
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    appointment = await appointment_crud.get_appointment(store, appointment_id)
    if not appointment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found"
        )
    return normalize_appointment(appointment)

@router.put("/{appointment_id}", response_model=Appointment)
async def reschedule_appointment(
    *,
    appointment_id: str,
    appointment_in: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> Any:
    """
    Update or reschedule an appointment.

    Admins can change any appointment, lawyers only their own.
    """
    logger.info(f"Appointment update requested for {appointment_id} by user: {current_user.id}")
    await update_appointment(store, appointment_id, appointment_in, actor=current_user)
    return normalize_appointment(await appointment_crud.get_appointment(store, appointment_id))

@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    *,
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
) -> None:
    """
    Cancel an appointment. Admins only.
    """
    logger.info(f"Appointment cancellation requested for {appointment_id} by user: {current_user.id}")
    await cancel_appointment(store, appointment_id, actor=current_user)
