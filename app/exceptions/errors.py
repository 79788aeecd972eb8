from __future__ import annotations

from typing import Optional


class FrameIOError(Exception):
    """Base class for every failure raised by the Frame.io integration."""

    requires_reauth = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(FrameIOError):
    """No credential row exists yet; the OAuth flow has never been completed."""

    requires_reauth = True

    def __init__(self, message: str = "Frame.io is not authenticated. Complete the OAuth flow first via /api/admin/frameio/auth-callback"):
        super().__init__(message)


class ReauthRequired(FrameIOError):
    """The credential row is flagged as dead and must be replaced by a new OAuth flow."""

    requires_reauth = True

    def __init__(self, message: str = "Frame.io requires re-authentication."):
        super().__init__(message)


class RefreshTokenExpired(ReauthRequired):
    """The refresh token passed its expiry; the row has been flagged for reauth."""

    def __init__(self, expired_at: Optional[object] = None):
        message = "Frame.io refresh token expired. Run the OAuth flow again."
        if expired_at is not None:
            message = f"Frame.io refresh token expired at {expired_at}. Run the OAuth flow again."
        super().__init__(message)
        self.expired_at = expired_at


class _ProviderError(FrameIOError):
    """Failure that carries an HTTP status and the provider's raw body."""

    def __init__(self, message: str, status_code: int, body: str):
        super().__init__(f"{message} ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class RefreshFailed(_ProviderError):
    """Adobe IMS rejected the refresh request. Terminal: the row is flagged for reauth."""

    requires_reauth = True

    def __init__(self, status_code: int, body: str):
        super().__init__("Failed to refresh Frame.io token", status_code, body)


class CodeExchangeFailed(_ProviderError):
    """Adobe IMS rejected the authorization code exchange."""

    def __init__(self, status_code: int, body: str):
        super().__init__("Failed to exchange authorization code for tokens", status_code, body)


class ApiError(_ProviderError):
    """Non-2xx response from the Frame.io resource API."""

    def __init__(self, status_code: int, body: str):
        super().__init__("Frame.io API error", status_code, body)
