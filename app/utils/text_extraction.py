"""
Text extraction for case and file attachments.

Handles the formats the attachment upload accepts:
- PDF files using PyPDF2
- DOCX files using python-docx
- Text files with encoding detection
"""
import io
import logging
from typing import BinaryIO, Dict, Optional

import PyPDF2
import chardet
from docx import Document

logger = logging.getLogger(__name__)

# Supported MIME types and their handlers
SUPPORTED_MIME_TYPES: Dict[str, str] = {
    'application/pdf': 'pdf',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'docx',
    'text/plain': 'txt'
}

EXTENSIONS: Dict[str, str] = {
    '.pdf': 'application/pdf',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.txt': 'text/plain',
}


class TextExtractionError(Exception):
    pass


def guess_mime_type(file_name: str, declared: Optional[str] = None) -> Optional[str]:
    """Trust a supported declared type, otherwise go by the extension."""
    if declared in SUPPORTED_MIME_TYPES:
        return declared
    for extension, mime_type in EXTENSIONS.items():
        if file_name.lower().endswith(extension):
            return mime_type
    return declared


def extract_text(content: bytes, mime_type: str) -> str:
    """
    Extract text from file content based on its mime type.

    Raises:
        ValueError: If file type is not supported
        TextExtractionError: If the file cannot be read
    """
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ValueError(f"Unsupported file type: {mime_type}")

    handler_type = SUPPORTED_MIME_TYPES[mime_type]
    try:
        if handler_type == 'pdf':
            return extract_from_pdf(io.BytesIO(content))
        elif handler_type == 'docx':
            return extract_from_docx(io.BytesIO(content))
        return extract_from_txt(content)
    except TextExtractionError:
        raise
    except Exception as e:
        logger.error(f"Error extracting text from {handler_type}: {str(e)}")
        raise TextExtractionError(f"Error extracting text from {handler_type}: {str(e)}")


def extract_from_pdf(file: BinaryIO) -> str:
    pdf_reader = PyPDF2.PdfReader(file)
    text = []

    for page in pdf_reader.pages:
        page_text = page.extract_text()
        if page_text:  # Only add non-empty pages
            text.append(page_text)

    return "\n\n".join(text).strip()


def extract_from_docx(file: BinaryIO) -> str:
    doc = Document(file)
    paragraphs = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
    return "\n\n".join(paragraphs)


def extract_from_txt(content: bytes) -> str:
    """Decode plain text, detecting the encoding first."""
    detection = chardet.detect(content)
    encoding = detection['encoding'] if detection and detection['encoding'] else 'utf-8'

    try:
        return content.decode(encoding).strip()
    except (UnicodeDecodeError, LookupError):
        # Fallback to utf-8 if detected encoding fails
        return content.decode('utf-8', errors='replace').strip()
