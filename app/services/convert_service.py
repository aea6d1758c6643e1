from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from app.ai.structuring import structure_resume
from app.core.errors import ValidationError
from app.parsing.parse import SUPPORTED_CONTENT_TYPES, extract_text, resolve_content_type
from app.render.docx_writer import DOCX_MEDIA_TYPE, serialize
from app.render.renderer import render

logger = logging.getLogger(__name__)

CONVERTED_SUFFIX = "_converted"
CONVERTED_EXTENSION = "docx"

_HEADER_UNSAFE_RE = re.compile(r'[\x00-\x1f\x7f"\\]')


@dataclass(frozen=True)
class ConvertedDocument:
    content: bytes
    filename: str
    media_type: str = DOCX_MEDIA_TYPE


def converted_filename(original: str | None) -> str:
    name = (original or "").replace("\\", "/").rsplit("/", 1)[-1].strip()
    stem = re.sub(r"\.[^/.]+$", "", name).strip()
    if not stem:
        stem = "resume"
    return f"{stem}{CONVERTED_SUFFIX}.{CONVERTED_EXTENSION}"


def content_disposition(filename: str) -> str:
    safe = _HEADER_UNSAFE_RE.sub("", filename)
    ascii_name = safe.encode("ascii", "ignore").decode("ascii").strip()
    if ascii_name == safe:
        return f'attachment; filename="{safe}"'
    fallback = ascii_name or f"resume{CONVERTED_SUFFIX}.{CONVERTED_EXTENSION}"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(safe, safe='')}"


def validate_upload(*, filename: str, content_type: str | None, api_key: str | None) -> str:
    """Check the request before any work is done; returns the resolved MIME type."""
    if not api_key or not api_key.strip():
        raise ValidationError("API key is required")
    resolved = resolve_content_type(filename, content_type)
    if resolved not in SUPPORTED_CONTENT_TYPES:
        raise ValidationError("Unsupported file type")
    return resolved


def convert_resume(
    *,
    filename: str,
    content_type: str | None,
    content: bytes,
    api_key: str,
    http_client: Optional[httpx.Client] = None,
) -> ConvertedDocument:
    resolved = validate_upload(filename=filename, content_type=content_type, api_key=api_key)
    logger.info("convert_started filename=%s content_type=%s size=%s", filename, resolved, len(content))

    extracted = extract_text(content, resolved, filename)
    record = structure_resume(api_key.strip(), extracted.text, http_client=http_client)
    document = render(record)
    logger.info("resume_rendered blocks=%s", len(document.blocks))
    payload = serialize(document)

    return ConvertedDocument(content=payload, filename=converted_filename(filename))
