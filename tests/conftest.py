from __future__ import annotations

import datetime as dt
import json
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Union
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import ADOBE_TOKEN_URL, FrameIOSettings
from app.db import Base
from app.services.token_service import FrameIOTokenRepository, FrameIOTokenService

TEST_DATABASE_URL = "sqlite+aiosqlite://"

# Fixed "current time" for token lifecycle tests
NOW = dt.datetime(2026, 3, 2, 12, 0, 0, tzinfo=dt.timezone.utc)


class MockProvider:
    """Stands in for Adobe IMS and the Frame.io API behind an httpx.MockTransport.

    Token endpoint calls are answered from ``token_responses`` in order; every
    other request goes to ``api_handler``. All requests are recorded.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.token_responses: List[Union[httpx.Response, Exception]] = []
        self.api_handler: Optional[Callable[[httpx.Request], httpx.Response]] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == ADOBE_TOKEN_URL:
            if not self.token_responses:
                raise AssertionError("Unexpected call to the token endpoint")
            response = self.token_responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        if self.api_handler is None:
            raise AssertionError(f"Unexpected API call: {request.method} {request.url}")
        return self.api_handler(request)

    @property
    def token_calls(self) -> List[Dict[str, str]]:
        """Form bodies of every token endpoint call."""
        return [
            {key: values[0] for key, values in parse_qs(r.content.decode()).items()}
            for r in self.requests
            if str(r.url) == ADOBE_TOKEN_URL
        ]

    @property
    def api_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) != ADOBE_TOKEN_URL]

    def queue_token(self, status_code: int = 200, **payload: Any) -> None:
        if status_code >= 400:
            self.token_responses.append(
                httpx.Response(status_code, text=json.dumps(payload) if payload else "invalid_grant")
            )
        else:
            self.token_responses.append(httpx.Response(status_code, json=payload))


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[sessionmaker, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
def token_repository(session_factory: sessionmaker) -> FrameIOTokenRepository:
    return FrameIOTokenRepository(session_factory)


@pytest.fixture
def frameio_settings() -> FrameIOSettings:
    return FrameIOSettings(
        client_id="test-client-id",
        client_secret="test-client-secret",
        redirect_uri="https://example.com/frameio/callback",
        account_id="acc-123",
        workspace_id="ws-456",
        default_state="test-state",
    )


@pytest.fixture
def provider() -> MockProvider:
    return MockProvider()


@pytest_asyncio.fixture
async def http_client(provider: MockProvider) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(provider)) as client:
        yield client


@pytest.fixture
def token_service(
    frameio_settings: FrameIOSettings,
    token_repository: FrameIOTokenRepository,
    http_client: httpx.AsyncClient,
) -> FrameIOTokenService:
    return FrameIOTokenService(
        frameio_settings,
        repository=token_repository,
        http_client=http_client,
        clock=lambda: NOW,
    )


@pytest.fixture
def seed_token(token_repository: FrameIOTokenRepository):
    """Store a credential row with expiries relative to NOW."""

    async def _seed(
        access_expires_in: dt.timedelta = dt.timedelta(hours=1),
        refresh_expires_in: dt.timedelta = dt.timedelta(days=10),
        requires_reauth: bool = False,
        access_token: str = "stored-access",
        refresh_token: str = "stored-refresh",
    ):
        return await token_repository.upsert(
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expires_at=NOW + access_expires_in,
            refresh_token_expires_at=NOW + refresh_expires_in,
            requires_reauth=requires_reauth,
            updated_at=NOW - dt.timedelta(hours=1),
        )

    return _seed
