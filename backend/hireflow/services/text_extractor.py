"""
Resume text extraction.

Dispatches on the declared media type (falling back to the filename extension
when the media type is generic, absent or unknown), pulls the text layer out of
the document and flags sparse results as low confidence (e.g. a scanned PDF
with no text layer).
"""
import enum
import io
import logging
import os
import re
from typing import Optional

import fitz  # PyMuPDF
from docx import Document
from tika import parser as tika_parser

from ..errors import ExtractionError
from ..schemas.resume import ExtractedText, RawResumeFile

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_MIN_CHARS = 200
LOW_CONFIDENCE_MIN_LINES = 5


class DocumentKind(str, enum.Enum):
    PDF = "pdf"
    DOCX = "docx"
    OFFICE = "office"
    TEXT = "text"


MEDIA_TYPE_KINDS = {
    "application/pdf": DocumentKind.PDF,
    "application/x-pdf": DocumentKind.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentKind.DOCX,
    "application/msword": DocumentKind.OFFICE,
    "application/rtf": DocumentKind.OFFICE,
    "text/rtf": DocumentKind.OFFICE,
    "application/vnd.oasis.opendocument.text": DocumentKind.OFFICE,
    "application/vnd.ms-word.document.macroenabled.12": DocumentKind.OFFICE,
    "text/plain": DocumentKind.TEXT,
}

EXTENSION_KINDS = {
    ".pdf": DocumentKind.PDF,
    ".docx": DocumentKind.DOCX,
    ".doc": DocumentKind.OFFICE,
    ".rtf": DocumentKind.OFFICE,
    ".odt": DocumentKind.OFFICE,
    ".txt": DocumentKind.TEXT,
}

GENERIC_MEDIA_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def _normalize_media_type(media_type: Optional[str]) -> str:
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def detect_document_kind(file: RawResumeFile) -> DocumentKind:
    """Pick an extractor for the file, or raise ExtractionError."""
    media_type = _normalize_media_type(file.media_type)
    kind = MEDIA_TYPE_KINDS.get(media_type)
    if kind:
        return kind

    ext = os.path.splitext(file.filename or file.path or "")[1].lower()
    kind = EXTENSION_KINDS.get(ext)
    if kind:
        if media_type not in GENERIC_MEDIA_TYPES:
            logger.info(f"Media type {media_type!r} not recognized, using extension {ext}")
        return kind

    raise ExtractionError(
        ExtractionError.UNSUPPORTED_TYPE,
        "Please upload a PDF, DOCX, DOC or TXT file.",
    )


def read_file_bytes(file: RawResumeFile) -> bytes:
    """Return the uploaded bytes, from memory when available, else from disk."""
    if file.content is not None:
        return file.content
    if file.path:
        try:
            with open(file.path, "rb") as fh:
                return fh.read()
        except OSError as e:
            raise ExtractionError(ExtractionError.UNREADABLE_SOURCE, str(e)) from e
    raise ExtractionError(ExtractionError.UNREADABLE_SOURCE, "Uploaded file is not accessible")


def extract_pdf_text(data: bytes) -> str:
    """Return the embedded text layer of a PDF (no OCR)."""
    chunks = []
    pdf_document = fitz.open(stream=data, filetype="pdf")
    try:
        for page in pdf_document:
            chunks.append(page.get_text("text") or "")
    finally:
        pdf_document.close()
    return "\n".join(chunks)


def extract_docx_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    lines = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def extract_office_text(data: bytes) -> str:
    """Generic document-to-text conversion for .doc/.rtf/.odt via Apache Tika."""
    parsed = tika_parser.from_buffer(data)
    return (parsed or {}).get("content") or ""


def extract_plain_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


EXTRACTORS = {
    DocumentKind.PDF: extract_pdf_text,
    DocumentKind.DOCX: extract_docx_text,
    DocumentKind.OFFICE: extract_office_text,
    DocumentKind.TEXT: extract_plain_text,
}


def count_lines(text: str) -> int:
    return len(re.split(r"\r?\n", text))


def is_low_confidence(text: str) -> bool:
    """Sparse text usually means a scanned image rather than a real resume."""
    cleaned = text.strip()
    return len(cleaned) < LOW_CONFIDENCE_MIN_CHARS or count_lines(cleaned) < LOW_CONFIDENCE_MIN_LINES


def extract_text(file: RawResumeFile) -> ExtractedText:
    """
    Extract raw text from an uploaded resume.

    Args:
        file: The uploaded resume (in-memory bytes or a path on disk)

    Returns:
        ExtractedText with the trimmed text and the low-confidence flag

    Raises:
        ExtractionError: unsupported type, unreadable source or empty content
    """
    kind = detect_document_kind(file)
    data = read_file_bytes(file)

    try:
        text = EXTRACTORS[kind](data)
    except ExtractionError:
        raise
    except Exception as e:
        logger.warning(f"Failed to extract {kind.value} text from {file.filename}: {e}")
        raise ExtractionError(ExtractionError.UNREADABLE_SOURCE, str(e)) from e

    cleaned = (text or "").strip()
    if not cleaned:
        raise ExtractionError(ExtractionError.EMPTY_CONTENT, "Could not extract text from resume")

    return ExtractedText(text=cleaned, is_low_confidence=is_low_confidence(cleaned))
