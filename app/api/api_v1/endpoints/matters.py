"""
Routes shared by cases and files.

Both collections have the same shape and behaviour, so ``build_router``
produces one router per collection.
"""

from typing import List, Any, Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
import logging
from app.core import collections
from app.core.auth import get_current_user
from app.core.database import get_store
from app.core.permissions import can_reassign_case
from app.crud import case as case_crud
from app.crud import client as client_crud
from app.crud import document as document_crud
from app.crud import user as user_crud
from app.schemas.case import (
    CaseStatus,
    Matter,
    MatterCreate,
    MatterUpdate,
    StatusChange,
    StatusDetails,
    normalize_matter,
)
from app.schemas.document import Attachment, normalize_attachment
from app.schemas.user import User
from app.schemas.views import MatterDetail, MatterRow
from app.services import joiner
from app.services.case_status import change_status, save_status_details
from app.services.optimistic import LocalState
from app.store.base import DocumentStore
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


def build_router(kind: str) -> APIRouter:
    router = APIRouter()
    label = case_crud.LABELS[kind]

    async def _existing(store: DocumentStore, matter_id: str):
        matter = await case_crud.get_matter(store, kind, matter_id)
        if not matter:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{label.capitalize()} not found"
            )
        return matter

    @router.get("/", response_model=List[MatterRow])
    async def read_matters(
        *,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store),
        client_id: Optional[str] = Query(None, description="Filter by client ID"),
        assigned_to: Optional[str] = Query(None, description="Filter by assigned lawyer"),
        status_filter: Optional[CaseStatus] = Query(None, alias="status", description="Filter by status")
    ) -> Any:
        """
        Retrieve records joined with their client and lawyer names.
        """
        matters = await case_crud.get_matters(
            store,
            kind,
            client_id=client_id,
            assigned_to=assigned_to,
            status=status_filter.value if status_filter else None,
        )
        return joiner.join_matters(
            matters,
            await client_crud.get_clients(store),
            await user_crud.get_users(store),
            utcnow(),
            kind=kind,
        )

    @router.post("/", response_model=Matter, status_code=status.HTTP_201_CREATED)
    async def create_matter(
        *,
        matter_in: MatterCreate,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        logger.info(f"{label.capitalize()} creation requested by user: {current_user.id}")
        if not await client_crud.get_client(store, matter_in.clientId):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Client does not exist"
            )
        created = await case_crud.create_matter(store, kind, matter_in, actor=current_user)
        return normalize_matter(created, kind)

    @router.get("/{matter_id}", response_model=MatterDetail)
    async def read_matter(
        *,
        matter_id: str,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        """
        Get one record with its client, lawyer and attached documents.
        """
        return await case_crud.get_matter_detail(store, kind, matter_id, utcnow())

    @router.put("/{matter_id}", response_model=Matter)
    async def update_matter(
        *,
        matter_id: str,
        matter_in: MatterUpdate,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        logger.info(f"{label.capitalize()} update requested for {matter_id} by user: {current_user.id}")
        current = await _existing(store, matter_id)
        if "assignedLawyerId" in matter_in.model_fields_set:
            previous = (current.get("assignedPersonnelIds") or [None])[0]
            if matter_in.assignedLawyerId != previous and not can_reassign_case(current_user.role):
                logger.warning(f"Unauthorized reassignment of {kind}/{matter_id} by user: {current_user.id}")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Only administrators can reassign a {label}"
                )
        updated = await case_crud.update_matter(store, kind, matter_id, matter_in, actor=current_user)
        return normalize_matter(updated, kind)

    @router.patch("/{matter_id}/status", response_model=Matter)
    async def update_status(
        *,
        matter_id: str,
        status_in: StatusChange,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        """
        Change the status immediately. Only ``status`` is written.
        """
        current = await _existing(store, matter_id)
        local = LocalState(values=dict(current))
        result = await change_status(store, collections.doc_path(kind, matter_id), status_in.status, local)
        if not result.ok:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "message": f"Failed to update status: {result.error}",
                    "status": result.values.get("status"),
                }
            )
        return normalize_matter(result.values, kind)

    @router.put("/{matter_id}/status-details", response_model=Matter)
    async def update_status_details(
        *,
        matter_id: str,
        details_in: StatusDetails,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        """
        Save the metadata of the current (or given) status.

        Fields belonging to other statuses are cleared in the same write.
        """
        current = normalize_matter(await _existing(store, matter_id), kind)
        await save_status_details(store, collections.doc_path(kind, matter_id), details_in, current.status)
        return normalize_matter(await case_crud.get_matter(store, kind, matter_id), kind)

    @router.get("/{matter_id}/documents", response_model=List[Attachment])
    async def read_documents(
        *,
        matter_id: str,
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        await _existing(store, matter_id)
        return [normalize_attachment(a) for a in await case_crud.get_attachments(store, kind, matter_id)]

    @router.post("/{matter_id}/documents", response_model=Attachment, status_code=status.HTTP_201_CREATED)
    async def upload_document(
        *,
        matter_id: str,
        file: UploadFile = File(...),
        current_user: User = Depends(get_current_user),
        store: DocumentStore = Depends(get_store)
    ) -> Any:
        """
        Upload a PDF, DOCX or TXT file and keep its extracted text.
        """
        logger.info(f"Document upload to {kind}/{matter_id} by user: {current_user.id}, file: {file.filename}")
        content = await file.read()
        created = await document_crud.create_attachment(
            store,
            kind,
            matter_id,
            file.filename or "upload",
            content,
            content_type=file.content_type,
            actor=current_user,
        )
        return normalize_attachment(created)

    return router
