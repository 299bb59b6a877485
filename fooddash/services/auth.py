"""Authentication provider adapter (hosted OAuth with PKCE)."""

import base64
import hashlib
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, Field

from fooddash.config import Config, get_config
from fooddash.errors import AuthError
from fooddash.models.address import UserContext

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    """Tokens returned by a successful code exchange."""

    access_token: str
    refresh_token: str | None = None
    user: UserContext


class SignInRedirect(BaseModel):
    """Where to send the browser, plus the PKCE verifier to keep until callback."""

    url: str
    code_verifier: str = Field(..., min_length=43)


class AuthProvider(ABC):
    """Interface the HTTP layer uses to resolve and manage users."""

    @abstractmethod
    async def get_current_user(self, access_token: str) -> UserContext | None:
        """Resolve the user behind an access token, or None if it is invalid."""

    @abstractmethod
    async def exchange_code_for_session(
        self, code: str, code_verifier: str
    ) -> AuthSession:
        """Trade an authorization code for a session; raises ``AuthError``."""

    @abstractmethod
    def sign_in_with_provider(self, provider: str, redirect_to: str) -> SignInRedirect:
        """Build the provider redirect that starts an OAuth login."""

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind ``access_token``."""


def _pkce_pair() -> tuple[str, str]:
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode()).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode()
    return verifier, challenge


class HostedAuthProvider(AuthProvider):
    """GoTrue-compatible auth REST API client.

    Endpoints used: ``/authorize``, ``/token?grant_type=pkce``, ``/user``
    and ``/logout``.
    """

    def __init__(
        self,
        config: Config | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        if not self.config.has_auth_config():
            msg = "Auth provider is not configured"
            raise AuthError(msg)
        self.base_url = self.config.auth_url.rstrip("/")
        self.client = client

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.config.auth_api_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}/{path}"
        if self.client is not None:
            return await self.client.request(method, url, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.request(method, url, **kwargs)

    @staticmethod
    def _to_user(payload: dict[str, Any], access_token: str | None) -> UserContext:
        return UserContext(
            id=payload["id"], email=payload.get("email"), access_token=access_token
        )

    async def get_current_user(self, access_token: str) -> UserContext | None:
        try:
            response = await self._send("GET", "user", headers=self._headers(access_token))
        except httpx.HTTPError as e:
            logger.error(f"Auth user lookup failed: {e}")
            return None

        if not response.is_success:
            logger.debug(f"Access token rejected with status {response.status_code}")
            return None
        try:
            return self._to_user(response.json(), access_token)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Unreadable user payload from auth service: {e}")
            return None

    async def exchange_code_for_session(
        self, code: str, code_verifier: str
    ) -> AuthSession:
        try:
            response = await self._send(
                "POST",
                "token",
                params={"grant_type": "pkce"},
                json={"auth_code": code, "code_verifier": code_verifier},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.error(f"Code exchange transport error: {e}")
            raise AuthError("Code exchange failed") from e

        if not response.is_success:
            logger.error(
                f"Code exchange failed with status {response.status_code}: "
                f"{response.text[:500]}"
            )
            msg = "Code exchange failed"
            raise AuthError(msg)

        payload = response.json()
        access_token = payload["access_token"]
        return AuthSession(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            user=self._to_user(payload["user"], access_token),
        )

    def sign_in_with_provider(self, provider: str, redirect_to: str) -> SignInRedirect:
        verifier, challenge = _pkce_pair()
        query = urlencode(
            {
                "provider": provider,
                "redirect_to": redirect_to,
                "code_challenge": challenge,
                "code_challenge_method": "s256",
            }
        )
        return SignInRedirect(url=f"{self.base_url}/authorize?{query}", code_verifier=verifier)

    async def sign_out(self, access_token: str) -> None:
        try:
            response = await self._send(
                "POST", "logout", headers=self._headers(access_token)
            )
        except httpx.HTTPError as e:
            logger.error(f"Sign out transport error: {e}")
            return

        if not response.is_success:
            logger.error(f"Sign out failed with status {response.status_code}")


def safe_next_path(next_path: str | None) -> str:
    """Only allow relative redirect targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return "/"
    return next_path
