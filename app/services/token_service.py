from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx
from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from app.config import ADOBE_AUTH_URL, ADOBE_SCOPES, ADOBE_TOKEN_URL, FrameIOSettings
from app.db import AsyncSessionLocal
from app.exceptions.errors import (
    CodeExchangeFailed,
    FrameIOError,
    NotAuthenticated,
    RefreshFailed,
    RefreshTokenExpired,
    ReauthRequired,
)
from app.models.frameio_token import TOKEN_ROW_ID, FrameIOToken
from app.schemas.frameio import FrameIOStatus

logger = logging.getLogger(__name__)

# Access tokens are refreshed this long before they actually expire
REFRESH_BUFFER = dt.timedelta(minutes=5)
# Adobe does not report a refresh-token TTL in this flow
REFRESH_TOKEN_TTL = dt.timedelta(days=14)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Credential row persistence
# ---------------------------------------------------------------------------


class FrameIOTokenRepository:
    """Single-row store for the Frame.io OAuth credential (id 'default')."""

    def __init__(self, session_factory: sessionmaker = AsyncSessionLocal) -> None:
        self._session_factory = session_factory

    async def get(self) -> Optional[FrameIOToken]:
        async with self._session_factory() as session:
            return await session.get(FrameIOToken, TOKEN_ROW_ID)

    async def upsert(
        self,
        *,
        access_token: str,
        refresh_token: str,
        access_token_expires_at: dt.datetime,
        refresh_token_expires_at: dt.datetime,
        requires_reauth: bool = False,
        updated_at: Optional[dt.datetime] = None,
    ) -> FrameIOToken:
        """Insert or overwrite the credential row in a single commit."""
        token = FrameIOToken(
            id=TOKEN_ROW_ID,
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expires_at=access_token_expires_at,
            refresh_token_expires_at=refresh_token_expires_at,
            requires_reauth=requires_reauth,
            updated_at=updated_at or utcnow(),
        )
        async with self._session_factory() as session:
            merged = await session.merge(token)
            await session.commit()
            return merged

    async def mark_requires_reauth(self, when: Optional[dt.datetime] = None) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(FrameIOToken)
                .where(FrameIOToken.id == TOKEN_ROW_ID)
                .values(requires_reauth=True, updated_at=when or utcnow())
            )
            await session.commit()


# ---------------------------------------------------------------------------
# Token lifecycle
# ---------------------------------------------------------------------------


class FrameIOTokenService:
    """Hands out valid Adobe IMS access tokens, refreshing them when needed.

    Once the refresh token is dead or rejected the row is flagged, and every
    later call fails fast with ``ReauthRequired`` until a new authorization
    code is exchanged.
    """

    def __init__(
        self,
        settings: FrameIOSettings,
        repository: Optional[FrameIOTokenRepository] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self.settings = settings
        self.repository = repository or FrameIOTokenRepository()
        self._http = http_client
        self._clock = clock

    async def _post_token(self, data: Dict[str, str]) -> httpx.Response:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if self._http is not None:
            return await self._http.post(ADOBE_TOKEN_URL, data=data, headers=headers)
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            return await client.post(ADOBE_TOKEN_URL, data=data, headers=headers)

    async def get_valid_access_token(self) -> str:
        """Return a non-expired access token; refresh automatically if needed."""
        token = await self.repository.get()
        if token is None:
            raise NotAuthenticated()

        if token.requires_reauth:
            raise ReauthRequired()

        now = self._clock()
        if now < as_utc(token.access_token_expires_at) - REFRESH_BUFFER:
            return token.access_token

        refresh_expires_at = as_utc(token.refresh_token_expires_at)
        if now >= refresh_expires_at:
            logger.warning(f"Frame.io refresh token expired at {refresh_expires_at.isoformat()}, flagging for reauth")
            await self.repository.mark_requires_reauth(now)
            raise RefreshTokenExpired(refresh_expires_at)

        return await self._refresh_access_token(token)

    async def _refresh_access_token(self, token: FrameIOToken) -> str:
        response = await self._post_token(
            {
                "grant_type": "refresh_token",
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "refresh_token": token.refresh_token,
            }
        )

        if not response.is_success:
            logger.error(f"Adobe IMS token refresh failed ({response.status_code}): {response.text}")
            await self.repository.mark_requires_reauth(self._clock())
            raise RefreshFailed(response.status_code, response.text)

        payload: Dict[str, Any] = response.json()
        now = self._clock()

        # Adobe may or may not rotate the refresh token
        new_refresh_token = payload.get("refresh_token")
        if new_refresh_token:
            refresh_token = new_refresh_token
            refresh_token_expires_at = now + REFRESH_TOKEN_TTL
        else:
            refresh_token = token.refresh_token
            refresh_token_expires_at = as_utc(token.refresh_token_expires_at)

        await self.repository.upsert(
            access_token=payload["access_token"],
            access_token_expires_at=now + dt.timedelta(seconds=int(payload["expires_in"])),
            refresh_token=refresh_token,
            refresh_token_expires_at=refresh_token_expires_at,
            requires_reauth=False,
            updated_at=now,
        )
        logger.info(f"Refreshed Frame.io access token (rotated refresh token: {bool(new_refresh_token)})")
        return payload["access_token"]

    async def exchange_code_for_tokens(self, code: str) -> None:
        """Trade an authorization code for a fresh token pair and overwrite the row."""
        response = await self._post_token(
            {
                "grant_type": "authorization_code",
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
            }
        )

        if not response.is_success:
            logger.error(f"Adobe IMS code exchange failed ({response.status_code}): {response.text}")
            raise CodeExchangeFailed(response.status_code, response.text)

        payload: Dict[str, Any] = response.json()
        now = self._clock()
        await self.repository.upsert(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
            access_token_expires_at=now + dt.timedelta(seconds=int(payload["expires_in"])),
            refresh_token_expires_at=now + REFRESH_TOKEN_TTL,
            requires_reauth=False,
            updated_at=now,
        )
        logger.info("Stored new Frame.io credentials from authorization code")

    def get_auth_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": self.settings.redirect_uri,
            "scope": ADOBE_SCOPES,
            "response_type": "code",
            "state": state or self.settings.default_state,
        }
        return f"{ADOBE_AUTH_URL}?{urlencode(params)}"

    async def get_status(self) -> FrameIOStatus:
        """Report credential health without raising; for status displays only."""
        token = await self.repository.get()
        if token is None:
            return FrameIOStatus(authenticated=False, requires_reauth=True, error="No token found")

        if token.requires_reauth:
            return FrameIOStatus(authenticated=False, requires_reauth=True, error="Re-authentication required")

        try:
            await self.get_valid_access_token()
        except FrameIOError as e:
            return FrameIOStatus(authenticated=False, requires_reauth=e.requires_reauth, error=str(e))
        except httpx.HTTPError as e:
            return FrameIOStatus(authenticated=False, requires_reauth=False, error=str(e))
        except Exception as e:
            logger.error(f"Unexpected error while checking Frame.io credentials: {e!r}")
            return FrameIOStatus(authenticated=False, requires_reauth=False, error=str(e) or type(e).__name__)

        current = await self.repository.get() or token
        return FrameIOStatus(
            authenticated=True,
            requires_reauth=False,
            expires_at=as_utc(current.refresh_token_expires_at),
        )
