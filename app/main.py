from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.db import Base, engine

# Load environment variables early
load_dotenv()

from app.api import frameio, health  # noqa: E402
from app.config import FrameIOSettings  # noqa: E402
from app.exceptions.errors import FrameIOError  # noqa: E402
from app.exceptions.handlers import frameio_exception_handler  # noqa: E402
from app.services.frameio_service import FrameIOService  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Frame.io Integration API")

# CORS setup
origins = [os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(FrameIOError, frameio_exception_handler)

# ---------------------------------------------------------------------------
# Startup / shutdown hooks
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def startup_event():
    """Ensure the credential table exists and build the shared Frame.io client."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = FrameIOSettings.from_env()
    app.state.frameio = FrameIOService(settings)
    logger.info(f"[Startup] Frame.io client ready for account {settings.account_id or '<unset>'}")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event handler."""
    service = getattr(app.state, "frameio", None)
    if service is not None:
        await service.close()
    await engine.dispose()
    logger.info("[Shutdown] Frame.io client closed")


# Include API routers
app.include_router(health.router)
app.include_router(frameio.router)
