from typing import Any, Dict
from fastapi import APIRouter, Depends, status
import logging
from app.core.database import get_store
from app.schemas.appointment import ConsultationRequest
from app.services.scheduling import book_consultation
from app.store.base import DocumentStore

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/", status_code=status.HTTP_201_CREATED)
async def request_consultation(
    *,
    request_in: ConsultationRequest,
    store: DocumentStore = Depends(get_store)
) -> Dict[str, Any]:
    """
    Book a consultation from the public website. No sign-in required.
    """
    logger.info(f"Consultation requested by {request_in.email}")
    appointment_id = await book_consultation(store, request_in)
    return {
        "appointmentId": appointment_id,
        "message": "Consultation request received. We will contact you shortly."
    }
