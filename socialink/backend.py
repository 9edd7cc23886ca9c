"""Backend API access shared by the auth and account clients.

All protected calls go through one ``httpx.AsyncClient`` so that, under the
cookie scheme, the session cookie set by login is sent back automatically.
"""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import logging

from typing import TYPE_CHECKING, Any

import httpx

from .exceptions import (
    NotConnectedError,
    TransientFetchError,
    UnauthenticatedError,
)


if TYPE_CHECKING:
    from .auth.session import SessionStore
    from .config import SocialinkSettings
    from .types import UserType


logger = logging.getLogger("socialink")


def create_http_client(settings: SocialinkSettings) -> httpx.AsyncClient:
    """Create the HTTP client shared by the session store and backend clients.

    No timeout is applied unless ``backend.request_timeout`` is set.
    """
    return httpx.AsyncClient(
        timeout=settings.backend.request_timeout,
        follow_redirects=False,
    )


def error_message(resp: httpx.Response, default: str) -> str:
    """Extract the backend's ``message`` field from an error response."""
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return default


class BackendClient:
    """Base class for clients of the backend API.

    Parameters
    ----------
    client : httpx.AsyncClient
        Shared HTTP client.
    api_url : str
        Backend API base URL.
    session : SessionStore
        Active session store; supplies credentials and is expired on 401.
    """

    def __init__(self, client: httpx.AsyncClient, api_url: str, session: SessionStore) -> None:
        self.client = client
        self.api_url = api_url.rstrip("/")
        self.session = session

    async def _send(
        self,
        method: str,
        path: str,
        *,
        platform: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request with session credentials attached.

        Transport failures are raised as :class:`TransientFetchError`.
        """
        headers = await self.session.auth_headers()
        url = f"{self.api_url}{path}"
        try:
            return await self.client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as exc:
            msg = f"Request to {path} failed: {exc}"
            raise TransientFetchError(msg, platform=platform) from exc

    async def _raise_for_status(
        self,
        resp: httpx.Response,
        default: str,
        platform: str | None = None,
    ) -> None:
        """Classify a non-2xx response.

        Raises
        ------
        UnauthenticatedError
            On 401; the local session is expired first.
        NotConnectedError
            On 404.
        TransientFetchError
            On any other non-success status.
        """
        if resp.is_success:
            return
        message = error_message(resp, default)
        status = resp.status_code
        if status == httpx.codes.UNAUTHORIZED:
            logger.info("Backend rejected the session (401); expiring local session")
            await self.session.expire()
            raise UnauthenticatedError(message, platform=platform, status_code=status)
        if status == httpx.codes.NOT_FOUND:
            raise NotConnectedError(message, platform=platform, status_code=status)
        raise TransientFetchError(message, platform=platform, status_code=status)

    @staticmethod
    def _json_object(resp: httpx.Response) -> dict[str, Any]:
        """Response body as a dict, or empty when absent or not an object."""
        if not resp.content:
            return {}
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}


class AuthClient(BackendClient):
    """Login, registration and logout against the backend."""

    async def login(self, email: str, password: str) -> None:
        """Log in. The session store records the outcome.

        Raises
        ------
        UnauthenticatedError
            Bad credentials (401).
        TransientFetchError
            Any other failure, with the backend message.
        """
        resp = await self._send("POST", "/auth/login", json={"email": email, "password": password})
        await self._raise_auth_failure(resp, "Login failed.")
        await self.session.accept_login(self._json_object(resp))
        logger.info("Logged in as %s", email)

    async def register(self, email: str, password: str, user_type: UserType) -> None:
        """Register a new account and start its session."""
        resp = await self._send(
            "POST",
            "/auth/register",
            json={"email": email, "password": password, "userType": user_type},
        )
        await self._raise_auth_failure(resp, "Registration failed.")
        await self.session.accept_login(self._json_object(resp))
        logger.info("Registered %s as %s", email, user_type)

    async def logout(self) -> None:
        """End the session; ``is_authenticated()`` is False afterwards."""
        await self.session.invalidate()

    async def _raise_auth_failure(self, resp: httpx.Response, default: str) -> None:
        # 404 on login is a generic failure, not a missing account link.
        if resp.status_code == httpx.codes.NOT_FOUND:
            raise TransientFetchError(
                error_message(resp, default), status_code=resp.status_code
            )
        await self._raise_for_status(resp, default)
