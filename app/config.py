from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

# Adobe IMS (OAuth2 provider for Frame.io V4)
ADOBE_TOKEN_URL = "https://ims-na1.adobelogin.com/ims/token/v3"
ADOBE_AUTH_URL = "https://ims-na1.adobelogin.com/ims/authorize/v2"
ADOBE_SCOPES = "openid profile email offline_access additional_info.roles"

# Frame.io V4
FRAMEIO_API_HOST = "https://api.frame.io"
FRAMEIO_BASE_URL = f"{FRAMEIO_API_HOST}/v4"


class FrameIOSettings(BaseModel):
    """Credentials and account scoping for the Frame.io integration."""

    client_id: str
    client_secret: str = ""
    redirect_uri: str = "https://localhost:9999/callback"
    account_id: str
    workspace_id: str
    default_state: str = "frameio-oauth"
    http_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "FrameIOSettings":
        """Build settings from FRAMEIO_* environment variables."""
        timeout: Optional[str] = os.getenv("FRAMEIO_HTTP_TIMEOUT")
        return cls(
            client_id=os.getenv("FRAMEIO_ADOBE_CLIENT_ID", ""),
            client_secret=os.getenv("FRAMEIO_ADOBE_CLIENT_SECRET", ""),
            redirect_uri=os.getenv(
                "FRAMEIO_REDIRECT_URI", "https://localhost:9999/callback"
            ),
            account_id=os.getenv("FRAMEIO_ACCOUNT_ID", ""),
            workspace_id=os.getenv("FRAMEIO_WORKSPACE_ID", ""),
            default_state=os.getenv("FRAMEIO_OAUTH_STATE", "frameio-oauth"),
            http_timeout=float(timeout) if timeout else 30.0,
        )
