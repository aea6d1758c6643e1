from __future__ import annotations

import codecs
import logging
import mimetypes
from io import BytesIO

from app.core.errors import ExtractionError, ValidationError

from .models import ExtractedText

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"

SUPPORTED_CONTENT_TYPES = (PDF_MIME, DOCX_MIME, DOC_MIME, TEXT_MIME)

EXTENSION_CONTENT_TYPES = {
    "pdf": PDF_MIME,
    "docx": DOCX_MIME,
    "doc": DOC_MIME,
    "txt": TEXT_MIME,
}

_GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


def resolve_content_type(filename: str, declared: str | None) -> str:
    """Return the MIME type to dispatch on, guessing from the filename when the client sent none."""
    content_type = (declared or "").split(";")[0].strip().lower()
    if content_type not in _GENERIC_CONTENT_TYPES:
        return content_type
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    if ext in EXTENSION_CONTENT_TYPES:
        return EXTENSION_CONTENT_TYPES[ext]
    guessed, _encoding = mimetypes.guess_type(filename or "")
    return (guessed or content_type).lower()


def _decode_text(content: bytes) -> tuple[str, dict, list[str]]:
    try:
        return content.decode("utf-8-sig"), {"encoding": "utf-8"}, []
    except UnicodeDecodeError:
        pass
    # utf-16 decodes almost any even-length input, so only trust it with a BOM.
    if content.startswith(_UTF16_BOMS):
        try:
            return content.decode("utf-16"), {"encoding": "utf-16"}, []
        except UnicodeDecodeError:
            pass
    return (
        content.decode("latin-1"),
        {"encoding": "latin-1"},
        ["Text is not valid UTF-8; decoded as latin-1."],
    )


def _extract_pdf(content: bytes) -> tuple[str, dict, list[str]]:
    from pypdf import PdfReader

    try:
        reader = PdfReader(BytesIO(content))
        page_chunks: list[str] = []
        empty_pages: list[int] = []
        for index, page in enumerate(reader.pages, start=1):
            page_text = page.extract_text() or ""
            if page_text.strip():
                page_chunks.append(page_text)
            else:
                empty_pages.append(index)
        warnings = [f"No extractable text on page {index}." for index in empty_pages]
        return "\n\n".join(page_chunks), {"pages": len(reader.pages)}, warnings
    except Exception as exc:
        raise ExtractionError("Unable to extract text from this PDF file.") from exc


def _extract_word(content: bytes, content_type: str) -> tuple[str, dict, list[str]]:
    from docx import Document

    try:
        document = Document(BytesIO(content))
    except Exception as exc:
        if content_type == DOC_MIME:
            raise ExtractionError(
                "Unable to read this legacy .doc file. Save it as .docx and try again."
            ) from exc
        raise ExtractionError("Unable to extract text from this Word document.") from exc

    lines = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(dict.fromkeys(cells)))
    details = {"paragraphs": len(document.paragraphs), "tables": len(document.tables)}
    return "\n".join(lines), details, []


def extract_text(content: bytes, content_type: str, filename: str = "") -> ExtractedText:
    resolved = resolve_content_type(filename, content_type)

    if resolved == PDF_MIME:
        source_type = "pdf"
        text, details, warnings = _extract_pdf(content)
    elif resolved in {DOCX_MIME, DOC_MIME}:
        source_type = "word"
        text, details, warnings = _extract_word(content, resolved)
    elif resolved == TEXT_MIME:
        source_type = "text"
        text, details, warnings = _decode_text(content)
    else:
        raise ValidationError("Unsupported file type")

    if not text.strip():
        raise ExtractionError("No extractable text was found in this file.")

    details["content_type"] = resolved
    logger.info(
        "text_extracted source_type=%s chars=%s warnings=%s", source_type, len(text), len(warnings)
    )
    return ExtractedText(source_type=source_type, text=text, details=details, warnings=warnings)
