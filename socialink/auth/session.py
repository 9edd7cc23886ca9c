"""Session stores: one answer to "is the user logged in".

Two mutually exclusive schemes exist, selected once per deployment:

- **cookie** (default): the backend sets an http-only session cookie that
  the HTTP client carries automatically. Only its presence is observable.
- **bearer** (legacy): the client holds a token and attaches it to every
  request.

Call sites use the :class:`SessionStore` interface and never branch on the
active scheme.
"""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import logging

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx

from ..types import BearerToken, CookiePresence, Session, SessionScheme


if TYPE_CHECKING:
    from ..config import SocialinkSettings
    from .storage import ClientStorage


logger = logging.getLogger("socialink.auth")


class SessionStore(ABC):
    """Abstract session store."""

    scheme: SessionScheme

    @abstractmethod
    async def current(self) -> Session:
        """Return the tagged session value for the active scheme."""

    async def is_authenticated(self) -> bool:
        """True iff the active scheme observes a live session."""
        session = await self.current()
        if isinstance(session, BearerToken):
            return bool(session.value)
        return session.present

    @abstractmethod
    async def auth_headers(self) -> dict[str, str]:
        """Headers to attach to protected backend requests."""

    @abstractmethod
    async def accept_login(self, payload: dict) -> None:
        """Record a successful login or registration response body."""

    @abstractmethod
    async def expire(self) -> None:
        """Drop local session state without contacting the backend.

        Used when the backend reports the session as invalid.
        """

    async def invalidate(self) -> None:
        """Log out. ``is_authenticated()`` is False afterwards."""
        await self.expire()


class BearerSessionStore(SessionStore):
    """Legacy scheme: a bearer token read from client storage.

    Parameters
    ----------
    storage : ClientStorage
        Where the token lives.
    token_key : str
        Storage key of the token.
    """

    scheme = SessionScheme.BEARER

    def __init__(self, storage: ClientStorage, token_key: str = "token") -> None:
        self.storage = storage
        self.token_key = token_key

    async def current(self) -> BearerToken:
        """Return the stored bearer token (value None when absent)."""
        return BearerToken(await self.storage.get(self.token_key))

    async def token(self) -> str | None:
        """The raw bearer token, if any."""
        return (await self.current()).value

    async def save_token(self, token: str) -> None:
        """Persist a bearer token."""
        await self.storage.set(self.token_key, token)

    async def auth_headers(self) -> dict[str, str]:
        """Return an Authorization header when a token is stored."""
        token = await self.token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def accept_login(self, payload: dict) -> None:
        """Store the ``token`` field of a login response."""
        token = payload.get("token")
        if token:
            await self.save_token(str(token))
        else:
            logger.warning("Login response carried no token for the bearer scheme")

    async def expire(self) -> None:
        """Delete the stored token."""
        await self.storage.delete(self.token_key)


class CookieSessionStore(SessionStore):
    """Default scheme: an opaque cookie set by the backend.

    The session counts as present while the indicator cookie sits in the
    HTTP client's cookie jar.

    Parameters
    ----------
    client : httpx.AsyncClient
        The client shared with backend calls; its jar holds the cookie.
    logout_url : str
        Backend endpoint that clears the server-held cookie.
    indicator_cookie : str
        Name of the cookie that marks a live session.
    """

    scheme = SessionScheme.COOKIE

    def __init__(
        self,
        client: httpx.AsyncClient,
        logout_url: str,
        indicator_cookie: str = "token",
    ) -> None:
        self.client = client
        self.logout_url = logout_url
        self.indicator_cookie = indicator_cookie

    async def current(self) -> CookiePresence:
        """Report whether the indicator cookie is present."""
        present = any(c.name == self.indicator_cookie for c in self.client.cookies.jar)
        return CookiePresence(present)

    async def auth_headers(self) -> dict[str, str]:
        """The cookie travels with the client; no headers needed."""
        return {}

    async def accept_login(self, payload: dict) -> None:
        """The Set-Cookie header already landed in the jar; the body is ignored."""
        if not (await self.current()).present:
            logger.warning(
                "Login succeeded but no '%s' cookie was set by the backend",
                self.indicator_cookie,
            )

    async def expire(self) -> None:
        """Clear the local cookie jar."""
        self.client.cookies.clear()

    async def invalidate(self) -> None:
        """Ask the backend to clear its cookie, then clear the local jar.

        A failed logout call is logged and the local clear still happens.
        """
        try:
            resp = await self.client.post(self.logout_url)
            if not resp.is_success:
                logger.error(
                    "Backend logout failed with %s, proceeding with client clear",
                    resp.status_code,
                )
        except httpx.HTTPError as exc:
            logger.error("Backend logout failed: %s, proceeding with client clear", exc)
        await self.expire()


def create_session_store(
    settings: SocialinkSettings,
    storage: ClientStorage,
    client: httpx.AsyncClient,
) -> SessionStore:
    """Create the session store for the configured scheme.

    Parameters
    ----------
    settings : SocialinkSettings
        Application settings; ``session.scheme`` picks the store.
    storage : ClientStorage
        Client storage (bearer scheme).
    client : httpx.AsyncClient
        Shared HTTP client (cookie scheme).

    Returns
    -------
    SessionStore
        The active session store.
    """
    if settings.session.scheme == SessionScheme.BEARER.value:
        return BearerSessionStore(storage, token_key=settings.session.token_key)
    return CookieSessionStore(
        client,
        logout_url=f"{settings.backend.api_url}/auth/logout",
        indicator_cookie=settings.session.indicator_cookie,
    )
