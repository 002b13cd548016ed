"""Attachments stored in the ``documents`` subcollection of a case or file."""

from typing import Any, Dict, Optional
import logging
from app.core import collections
from app.core.exceptions import InputValidationError, NotFoundError
from app.schemas.activity import ActivityType
from app.schemas.document import EXTRACTED_TEXT_LIMIT
from app.schemas.user import User
from app.services.activity import log_activity
from app.store.base import SERVER_TIMESTAMP, DocumentStore
from app.utils.text_extraction import SUPPORTED_MIME_TYPES, TextExtractionError, extract_text, guess_mime_type

logger = logging.getLogger(__name__)


async def create_attachment(
    store: DocumentStore,
    kind: str,
    matter_id: str,
    file_name: str,
    content: bytes,
    content_type: Optional[str] = None,
    actor: Optional[User] = None,
) -> Dict[str, Any]:
    """
    Attach an uploaded file to a case or file and keep its extracted text.

    Unsupported types are rejected before anything is written. A readable
    type whose text cannot be extracted is still stored, without text.
    """
    matter = await store.get_document(collections.doc_path(kind, matter_id))
    if not matter.exists:
        raise NotFoundError(f"{kind[:-1].capitalize()} {matter_id} not found.")

    mime_type = guess_mime_type(file_name, content_type)
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise InputValidationError(
            f"Unsupported file type: {content_type or file_name}. Upload a PDF, DOCX or TXT file.",
            field="file",
        )

    try:
        extracted = extract_text(content, mime_type)
    except TextExtractionError as e:
        logger.warning(f"Storing {file_name} without text: {e}")
        extracted = None

    data = {
        "fileName": file_name,
        "fileType": mime_type,
        "fileSize": len(content),
        "extractedText": extracted[:EXTRACTED_TEXT_LIMIT] if extracted else None,
        "thumbnailUrl": None,
        "scannedAt": SERVER_TIMESTAMP,
    }
    document_id = await store.add_document(collections.documents_path(kind, matter_id), data)
    logger.info(f"Attached {file_name} ({len(content)} bytes) to {kind}/{matter_id} as {document_id}")

    await log_activity(
        store,
        ActivityType.document_upload,
        f"Document uploaded: {file_name}",
        actor=actor,
        meta={"documentId": document_id, "matterId": matter_id, "collection": kind},
        file_id=matter_id if kind == collections.FILES else None,
    )
    snapshot = await store.get_document(collections.doc_path(collections.documents_path(kind, matter_id), document_id))
    return snapshot.to_dict()
