from typing import Any, Dict, Optional
from datetime import datetime

from app.schemas.base import BaseSchema, first_present, timestamp_validator

# Longest extracted text kept on the document record
EXTRACTED_TEXT_LIMIT = 100_000


class Attachment(BaseSchema):
    """A file attached to a case or file (``documents`` subcollection)."""

    fileName: str
    fileType: Optional[str] = None
    fileSize: Optional[int] = None
    extractedText: Optional[str] = None
    thumbnailUrl: Optional[str] = None
    scannedAt: Optional[datetime] = None

    parse_timestamps = timestamp_validator("scannedAt")


def normalize_attachment(raw: Dict[str, Any]) -> Attachment:
    return Attachment(
        id=raw["id"],
        fileName=raw.get("fileName") or "Untitled document",
        fileType=raw.get("fileType"),
        fileSize=raw.get("fileSize"),
        extractedText=raw.get("extractedText"),
        thumbnailUrl=raw.get("thumbnailUrl"),
        # Older uploads only carry uploadDate or createdAt
        scannedAt=first_present(raw, "scannedAt", "uploadDate", "createdAt"),
    )
