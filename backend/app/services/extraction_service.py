"""
Quotation extraction pipeline: gatekeep the upload, then route by MIME type.

  text/csv                  → spreadsheet_parser.parse_csv
  application/vnd.ms-excel,
  …spreadsheetml.sheet      → spreadsheet_parser.parse_excel
  application/pdf, image/*  → llm_client.extract_document → extraction_normalizer
"""
import logging
import os
from typing import Optional

from app.config import MAX_UPLOAD_BYTES, MAX_UPLOAD_MB
from app.models.schemas import ExtractedQuotationData
from app.services import llm_client
from app.services.exceptions import (
    FileTooLargeError,
    InvalidUploadError,
    MissingApiKeyError,
    UnsupportedFileError,
)
from app.services.extraction_normalizer import parse_extraction_response
from app.services.spreadsheet_parser import parse_csv, parse_excel

logger = logging.getLogger("buildtrack-extraction")

CSV_MIME = "text/csv"
XLS_MIME = "application/vnd.ms-excel"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME = "application/pdf"

SPREADSHEET_MIME_TYPES = {XLS_MIME, XLSX_MIME}

SUPPORTED_MIME_TYPES = {
    PDF_MIME,
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
    CSV_MIME,
    XLS_MIME,
    XLSX_MIME,
}

_EXTENSION_MIME = {
    ".pdf": PDF_MIME,
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".csv": CSV_MIME,
    ".xls": XLS_MIME,
    ".xlsx": XLSX_MIME,
}

# Browsers and HTTP clients send these when they don't know the real type
_GENERIC_MIME_TYPES = {"", "application/octet-stream"}


def guess_mime_type(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return _EXTENSION_MIME.get(ext, "application/octet-stream")


def resolve_mime_type(content_type: Optional[str], filename: Optional[str]) -> str:
    """Declared content type, or a guess from the extension when missing or generic."""
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared in _GENERIC_MIME_TYPES:
        return guess_mime_type(filename)
    return declared


def check_declared_size(size: Optional[int]) -> None:
    """Reject an upload on its declared size, before the body is read into memory."""
    if size is not None and size > MAX_UPLOAD_BYTES:
        raise FileTooLargeError(MAX_UPLOAD_MB)


def validate_upload(content: Optional[bytes], filename: Optional[str], content_type: Optional[str]) -> str:
    """Size and type checks. Returns the resolved MIME type."""
    if content is None:
        raise InvalidUploadError("No file provided", code="NO_FILE")
    if len(content) > MAX_UPLOAD_BYTES:
        raise FileTooLargeError(MAX_UPLOAD_MB)
    mime_type = resolve_mime_type(content_type, filename)
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedFileError(mime_type)
    return mime_type


async def extract_quotation(
    content: Optional[bytes],
    filename: Optional[str],
    content_type: Optional[str],
    api_key: Optional[str],
) -> ExtractedQuotationData:
    """
    Run the extraction pipeline for one uploaded quotation document.

    Raises InvalidUploadError subclasses for rejected uploads,
    MissingApiKeyError when a PDF/image arrives without a key, and
    UpstreamAIError for provider failures. Parse problems never raise.
    """
    mime_type = validate_upload(content, filename, content_type)
    logger.info(f"Extracting quotation from {filename} ({len(content)} bytes)", extra={"mime_type": mime_type})

    if mime_type == CSV_MIME:
        return parse_csv(content.decode("utf-8", errors="replace"))

    if mime_type in SPREADSHEET_MIME_TYPES:
        return parse_excel(content)

    if not api_key:
        raise MissingApiKeyError()

    # image/jpg is a common alias the provider does not accept
    if mime_type == "image/jpg":
        mime_type = "image/jpeg"

    response_text = await llm_client.extract_document(content, mime_type, api_key)
    result = parse_extraction_response(response_text)
    logger.info(
        f"Document AI returned {len(result.line_items)} line items at {result.confidence} confidence",
        extra={"mime_type": mime_type},
    )
    return result
