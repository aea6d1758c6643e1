from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import ConversionError

logger = logging.getLogger(__name__)


async def conversion_error_handler(request: Request, exc: ConversionError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "conversion_failed path=%s status=%s error=%s",
            request.url.path,
            exc.status_code,
            exc.message,
            exc_info=exc,
        )
    else:
        logger.warning(
            "conversion_rejected path=%s status=%s error=%s",
            request.url.path,
            exc.status_code,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
