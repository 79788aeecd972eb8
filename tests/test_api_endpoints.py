from __future__ import annotations

import datetime as dt
import json
from typing import Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from app.exceptions.errors import CodeExchangeFailed, NotAuthenticated, ReauthRequired
from app.main import app
from app.schemas.frameio import FrameIOStatus
from app.services.frameio_service import FrameIOService, get_frameio_service

from tests.conftest import MockProvider

ADMIN = "/api/admin/frameio"
AUTH_URL = "https://ims-na1.adobelogin.com/ims/authorize/v2?client_id=test-client-id&state=s"


class FakeTokenService:
    """Token service double driven by the test through plain attributes."""

    def __init__(self) -> None:
        self.error: Optional[Exception] = None
        self.status = FrameIOStatus(
            authenticated=True,
            requires_reauth=False,
            expires_at=dt.datetime(2026, 3, 16, tzinfo=dt.timezone.utc),
        )
        self.exchanged = []
        self.exchange_error: Optional[Exception] = None

    async def get_valid_access_token(self) -> str:
        if self.error is not None:
            raise self.error
        return "api-token"

    def get_auth_url(self, state: Optional[str] = None) -> str:
        return AUTH_URL if state is None else AUTH_URL.replace("state=s", f"state={state}")

    async def exchange_code_for_tokens(self, code: str) -> None:
        if self.exchange_error is not None:
            raise self.exchange_error
        self.exchanged.append(code)

    async def get_status(self) -> FrameIOStatus:
        return self.status


@pytest.fixture
def fake_tokens() -> FakeTokenService:
    return FakeTokenService()


@pytest.fixture
def api_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def client(frameio_settings, fake_tokens, api_provider):
    """Test client wired to a Frame.io service on a mocked transport."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api_provider))
    service = FrameIOService(frameio_settings, token_service=fake_tokens, http_client=http_client)
    app.dependency_overrides[get_frameio_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_check(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_frameio_health_when_connected(self, client: TestClient):
        response = client.get("/health/frameio")
        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is True
        assert data["expires_at"].startswith("2026-03-16")

    def test_frameio_health_when_reauth_needed(self, client: TestClient, fake_tokens):
        fake_tokens.status = FrameIOStatus(
            authenticated=False, requires_reauth=True, error="Re-authentication required"
        )

        response = client.get("/health/frameio")

        assert response.status_code == 503
        assert response.json()["requires_reauth"] is True


class TestOAuthEndpoints:
    """Consent URL, callback and status."""

    def test_auth_url_as_json(self, client: TestClient):
        response = client.get(f"{ADMIN}/auth-url")
        assert response.status_code == 200
        assert response.json() == {"authorization_url": AUTH_URL}

    def test_auth_url_redirects_when_requested(self, client: TestClient):
        response = client.get(f"{ADMIN}/auth-url", params={"redirect": "true"}, follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == AUTH_URL

    def test_auth_url_redirects_browsers(self, client: TestClient):
        response = client.get(
            f"{ADMIN}/auth-url", headers={"Accept": "text/html"}, follow_redirects=False
        )
        assert response.status_code == 307

    def test_auth_callback_exchanges_code(self, client: TestClient, fake_tokens):
        response = client.get(f"{ADMIN}/auth-callback", params={"code": "abc", "state": "xyz"})

        assert response.status_code == 200
        assert response.json() == {"status": "connected", "state": "xyz"}
        assert fake_tokens.exchanged == ["abc"]

    def test_auth_callback_requires_code(self, client: TestClient):
        response = client.get(f"{ADMIN}/auth-callback")
        assert response.status_code == 422

    def test_failed_exchange_is_bad_request(self, client: TestClient, fake_tokens):
        fake_tokens.exchange_error = CodeExchangeFailed(400, '{"error":"invalid_grant"}')

        response = client.get(f"{ADMIN}/auth-callback", params={"code": "stale"})

        assert response.status_code == 400
        assert response.json()["upstream_status"] == 400

    def test_status(self, client: TestClient):
        response = client.get(f"{ADMIN}/status")
        assert response.status_code == 200
        data = response.json()
        assert data["authenticated"] is True
        assert data["requires_reauth"] is False
        assert data["error"] is None


class TestResourceEndpoints:
    """Frame.io resources proxied through the admin API."""

    def test_list_projects(self, client: TestClient, api_provider):
        api_provider.api_handler = lambda request: httpx.Response(
            200, json={"data": [{"id": "p1", "name": "Launch"}], "links": {"next": None}}
        )

        response = client.get(f"{ADMIN}/projects")

        assert response.status_code == 200
        assert response.json()[0]["id"] == "p1"
        assert response.json()[0]["name"] == "Launch"
        sent = api_provider.api_requests[0]
        assert sent.url.path == "/v4/accounts/acc-123/workspaces/ws-456/projects"
        assert sent.headers["Authorization"] == "Bearer api-token"

    def test_folder_children_keep_their_type(self, client: TestClient, api_provider):
        api_provider.api_handler = lambda request: httpx.Response(
            200,
            json={
                "data": [
                    {"id": "f1", "name": "Dailies", "type": "folder"},
                    {"id": "v1", "name": "cut.mp4", "type": "file", "file_size": 1024},
                ]
            },
        )

        response = client.get(f"{ADMIN}/folders/root/children")

        assert response.status_code == 200
        assert [item["type"] for item in response.json()] == ["folder", "file"]

    def test_create_comment(self, client: TestClient, api_provider):
        api_provider.api_handler = lambda request: httpx.Response(
            200, json={"data": {"id": "c1", "text": "Trim the intro", "timestamp": 12.5}}
        )

        response = client.post(
            f"{ADMIN}/files/v1/comments", json={"text": "Trim the intro", "timestamp": 12.5}
        )

        assert response.status_code == 201
        assert response.json()["id"] == "c1"
        sent = api_provider.api_requests[0]
        assert sent.method == "POST"
        assert json.loads(sent.content) == {"text": "Trim the intro", "timestamp": 12.5}

    def test_create_comment_rejects_empty_text(self, client: TestClient, api_provider):
        response = client.post(f"{ADMIN}/files/v1/comments", json={"text": ""})

        assert response.status_code == 422
        assert api_provider.requests == []

    def test_create_file_for_upload(self, client: TestClient, api_provider):
        api_provider.api_handler = lambda request: httpx.Response(
            200,
            json={"data": {"id": "v2", "name": "take2.mov", "upload_url": "https://upload.example/v2"}},
        )

        response = client.post(
            f"{ADMIN}/folders/root/files",
            json={"name": "take2.mov", "file_size": 2048, "media_type": "video/quicktime"},
        )

        assert response.status_code == 201
        assert response.json()["upload_url"] == "https://upload.example/v2"
        assert json.loads(api_provider.api_requests[0].content) == {
            "name": "take2.mov",
            "filesize": 2048,
            "filetype": "video/quicktime",
        }

    def test_delete_file(self, client: TestClient, api_provider):
        api_provider.api_handler = lambda request: httpx.Response(204)

        response = client.delete(f"{ADMIN}/files/v1")

        assert response.status_code == 204
        assert api_provider.api_requests[0].method == "DELETE"

    def test_upstream_error_is_bad_gateway(self, client: TestClient, api_provider):
        api_provider.api_handler = lambda request: httpx.Response(404, text='{"errors":["not found"]}')

        response = client.get(f"{ADMIN}/files/missing")

        assert response.status_code == 502
        data = response.json()
        assert data["upstream_status"] == 404
        assert data["upstream_body"] == '{"errors":["not found"]}'

    @pytest.mark.parametrize("error", [NotAuthenticated(), ReauthRequired()])
    def test_auth_errors_are_unauthorized(self, client: TestClient, fake_tokens, api_provider, error):
        fake_tokens.error = error

        response = client.get(f"{ADMIN}/projects")

        assert response.status_code == 401
        assert response.json()["requires_reauth"] is True
        assert api_provider.requests == []
