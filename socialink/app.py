"""Composition root wiring storage, session and clients from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .auth.callback import CallbackReconciler, Navigator, Notifier
from .auth.providers import ProviderRegistry
from .auth.session import create_session_store
from .auth.state import StateTokenManager
from .auth.storage import ClientStorage, get_storage
from .backend import AuthClient, create_http_client
from .config import get_settings
from .linker import AccountLinker
from .log import configure
from .sync import AccountSyncClient


if TYPE_CHECKING:
    import httpx

    from .config import SocialinkSettings
    from .types import UserType


class Socialink:
    """All socialink components for one configuration.

    Parameters
    ----------
    settings : SocialinkSettings, optional
        Defaults to :func:`get_settings`.
    storage : ClientStorage, optional
        Defaults to the configured storage backend.
    http_client : httpx.AsyncClient, optional
        Defaults to a client built from ``backend`` settings.
    navigate : callable, optional
        Full-navigation handler shared by connect and callback.
    notify : callable, optional
        User notification handler.

    Use as an async context manager to close the HTTP client on exit.
    """

    def __init__(
        self,
        settings: SocialinkSettings | None = None,
        storage: ClientStorage | None = None,
        http_client: httpx.AsyncClient | None = None,
        navigate: Navigator | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        configure(self.settings.log.level, self.settings.log.format)

        storage_cfg = self.settings.storage
        self.storage = storage or get_storage(
            storage_cfg.backend,
            redis_url=storage_cfg.redis_url,
            prefix=storage_cfg.prefix,
            service_name=storage_cfg.service_name,
        )
        self.http = http_client or create_http_client(self.settings)
        api_url = self.settings.backend.api_url

        self.session = create_session_store(self.settings, self.storage, self.http)
        self.state_tokens = StateTokenManager(self.storage)
        self.registry = ProviderRegistry.from_settings(
            self.settings.providers, self.state_tokens, self.storage
        )
        self.reconciler = CallbackReconciler(
            self.registry,
            self.state_tokens,
            self.storage,
            self.session,
            api_url=api_url,
            home_url=self.settings.backend.home_url,
            navigate=navigate,
            notify=notify,
            forward_bearer_token=self.settings.session.forward_bearer_token,
        )
        self.auth = AuthClient(self.http, api_url, self.session)
        self.accounts = AccountSyncClient(self.http, api_url, self.session)
        self.linker = AccountLinker(self.registry, self.accounts, navigate=navigate, notify=notify)

    async def login(self, email: str, password: str) -> None:
        """Log in and request a fresh batch of probes."""
        await self.auth.login(email, password)
        self.accounts.bump_generation()

    async def register(
        self, email: str, password: str, user_type: UserType = "INFLUENCER"
    ) -> None:
        """Register, start the new session and request a fresh batch of probes."""
        await self.auth.register(email, password, user_type)
        self.accounts.bump_generation()

    async def logout(self) -> None:
        """Log out of the backend and drop the local session."""
        await self.auth.logout()

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.http.aclose()

    async def __aenter__(self) -> Socialink:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
