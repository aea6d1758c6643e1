import logging

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.errors import ConversionError, PayloadTooLargeError, ValidationError
from app.core.rate_limit import rate_limit
from app.services.convert_service import content_disposition, convert_resume

logger = logging.getLogger(__name__)

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 64


async def _read_upload(file: UploadFile, limit: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise PayloadTooLargeError(
                f"File too large. Maximum allowed size is {limit // (1024 * 1024)} MB."
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/convert", summary="Convert a resume", description="Convert an uploaded resume into the fixed Word template.")
@rate_limit()
async def convert(
    request: Request,
    resume: UploadFile | None = File(default=None),
    api_key: str | None = Form(default=None, alias="apiKey"),
):
    _ = request
    if resume is None or not resume.filename:
        raise ValidationError("No file uploaded")
    if not api_key or not api_key.strip():
        raise ValidationError("API key is required")

    filename = resume.filename
    logger.info("convert_received filename=%s content_type=%s", filename, resume.content_type)
    content = await _read_upload(resume, settings.max_upload_bytes)

    try:
        result = await run_in_threadpool(
            convert_resume,
            filename=filename,
            content_type=resume.content_type,
            content=content,
            api_key=api_key,
        )
    except ConversionError:
        raise
    except Exception as exc:
        logger.exception("convert_unexpected_error filename=%s", filename)
        raise ConversionError(str(exc) or "Conversion failed.") from exc

    logger.info("convert_completed filename=%s bytes=%s", result.filename, len(result.content))
    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": content_disposition(result.filename)},
    )
