from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.services.frameio_service import FrameIOService, get_frameio_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
@router.get("")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "message": "Service is running"}


@router.get("/frameio")
async def frameio_health(service: FrameIOService = Depends(get_frameio_service)):
    """Report whether the Frame.io credential is usable."""
    status = await service.tokens.get_status()
    return JSONResponse(
        content=status.model_dump(mode="json"),
        status_code=200 if status.authenticated else 503,
    )
