from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.exceptions.errors import ApiError, CodeExchangeFailed, FrameIOError

logger = logging.getLogger(__name__)


async def frameio_exception_handler(request: Request, exc: FrameIOError) -> JSONResponse:
    """Translate integration failures into JSON responses for the admin API."""
    if isinstance(exc, ApiError):
        logger.error(f"Frame.io API error on {request.url.path}: {exc.status_code}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "error": exc.message,
                "upstream_status": exc.status_code,
                "upstream_body": exc.body,
            },
        )

    if isinstance(exc, CodeExchangeFailed):
        logger.warning(f"Frame.io code exchange failed: {exc.status_code}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": exc.message, "upstream_status": exc.status_code},
        )

    logger.warning(f"Frame.io authentication error: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": exc.message, "requires_reauth": exc.requires_reauth},
    )
