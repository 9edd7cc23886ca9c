"""OAuth callback reconciliation.

A connect flow spans a full navigation, so it runs in two phases:

1. **Issue**: :meth:`ProviderRegistry.build_authorization_url` persists the
   state token (and PKCE verifier) and returns the dialog URL.
2. **Resume**: :class:`CallbackReconciler` runs when the provider redirects
   back. It may run in a freshly started process and sources everything from
   client storage and the callback URL.

On success the browser is sent to the backend's per-provider callback
endpoint with a full navigation, so any session cookie set there is applied
by the browser itself.
"""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import logging
import secrets
import webbrowser

from collections.abc import Callable
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urlencode, urlparse

from ..exceptions import (
    ConfigurationError,
    CsrfMismatchError,
    LoginRequiredError,
    OAuthFlowError,
    PkceVerifierMissingError,
    ProviderCallbackError,
    SocialinkError,
)
from ..log import redact_sensitive_data
from ..types import BearerToken, CallbackOutcome, CallbackState, SessionScheme
from .pkce import verifier_storage_key


if TYPE_CHECKING:
    from .providers import ProviderRegistry
    from .session import SessionStore
    from .state import StateTokenManager
    from .storage import ClientStorage


logger = logging.getLogger("socialink.auth")

Navigator = Callable[[str], object]
Notifier = Callable[[str], object]


def open_in_browser(url: str) -> None:
    """Default navigator: hand the URL to the system browser."""
    webbrowser.open(url)


def log_notification(message: str) -> None:
    """Default notifier: log the message."""
    logger.warning(message)


def _first(query: dict[str, list[str]], name: str) -> str | None:
    values = query.get(name)
    return values[0] if values else None


class CallbackReconciler:
    """Validates a provider redirect and forwards it to the backend.

    States move START -> VALIDATED -> RESOLVED, or START -> REJECTED.
    There is no retry: a rejected callback is terminal and the user has to
    start a new connect flow.

    Parameters
    ----------
    registry : ProviderRegistry
        Provider lookup (to know whether PKCE applies).
    state_tokens : StateTokenManager
        Verifies and consumes the anti-forgery state.
    storage : ClientStorage
        Holds the pending PKCE verifiers.
    session : SessionStore
        Active session store (read only for legacy token forwarding).
    api_url : str
        Backend API base URL.
    home_url : str
        Where to navigate after a rejection.
    navigate : callable, optional
        Performs a full navigation. Defaults to opening the system browser.
    notify : callable, optional
        Shows a message to the user. Defaults to logging a warning.
    forward_bearer_token : bool
        Legacy mode: also forward the bearer token as ``token``. Only valid
        with the bearer session scheme.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        state_tokens: StateTokenManager,
        storage: ClientStorage,
        session: SessionStore,
        api_url: str,
        home_url: str = "/",
        navigate: Navigator | None = None,
        notify: Notifier | None = None,
        forward_bearer_token: bool = False,
    ) -> None:
        if forward_bearer_token and session.scheme != SessionScheme.BEARER:
            msg = "Forwarding the bearer token requires the bearer session scheme"
            raise ConfigurationError(msg)
        self.registry = registry
        self.state_tokens = state_tokens
        self.storage = storage
        self.session = session
        self.api_url = api_url.rstrip("/")
        self.home_url = home_url
        self.navigate = navigate or open_in_browser
        self.notify = notify or log_notification
        self.forward_bearer_token = forward_bearer_token

        self._state = CallbackState.START
        self._flow_id: str | None = None
        self.outcome: CallbackOutcome | None = None

    @property
    def state(self) -> CallbackState:
        """Current state of the reconciliation."""
        return self._state

    def backend_callback_url(self, provider_id: str, params: dict[str, str]) -> str:
        """URL of the backend's token-exchange endpoint for a provider."""
        return f"{self.api_url}/social/callback/{provider_id}?{urlencode(params)}"

    async def resume(self, callback_url: str) -> CallbackOutcome:
        """Resume a connect flow from the provider's redirect URL.

        Parameters
        ----------
        callback_url : str
            The full redirect target, e.g.
            ``https://app.example.com/social/callback/twitter?code=...&state=...``.

        Returns
        -------
        CallbackOutcome
            The RESOLVED outcome; the navigator has been sent to the backend.

        Raises
        ------
        ProviderCallbackError
            The provider returned ``error`` or no ``code``.
        CsrfMismatchError
            The state does not match the pending one (or was already used).
        ConfigurationError
            The callback path names an unknown provider.
        PkceVerifierMissingError
            The provider needs PKCE and no verifier is stored.
        LoginRequiredError
            Legacy token forwarding is on and no bearer token is stored.
        """
        self._state = CallbackState.START
        self._flow_id = secrets.token_urlsafe(8)
        self.outcome = None

        parsed = urlparse(callback_url)
        query = parse_qs(parsed.query)
        code = _first(query, "code")
        state = _first(query, "state")
        error = _first(query, "error")
        provider_id = parsed.path.rstrip("/").rsplit("/", 1)[-1] or None

        logger.debug("Callback %s received for %s", self._flow_id, provider_id)

        try:
            if error or not code:
                msg = f"OAuth failed: {error or 'authorization code missing'}"
                raise ProviderCallbackError(
                    msg, error=error, provider=provider_id, flow_id=self._flow_id
                )

            if provider_id is None:
                msg = "Callback path does not name a provider"
                raise ConfigurationError(msg)
            config = self.registry.get(provider_id)

            # Both values are consumed before either is judged, so a
            # duplicate callback leaves neither behind.
            verifier = None
            if config.requires_pkce:
                verifier = await self.storage.take(verifier_storage_key(provider_id))
            state_ok = await self.state_tokens.verify(state)

            if config.requires_pkce and not verifier:
                msg = f"No PKCE verifier stored for '{provider_id}'"
                raise PkceVerifierMissingError(msg, provider=provider_id, flow_id=self._flow_id)
            if not state_ok:
                msg = "State mismatch - possible CSRF attack"
                raise CsrfMismatchError(msg, provider=provider_id, flow_id=self._flow_id)

            params: dict[str, str] = {"code": code, "state": state or ""}
            if verifier:
                params["code_verifier"] = verifier

            if self.forward_bearer_token:
                session = await self.session.current()
                token = session.value if isinstance(session, BearerToken) else None
                if not token:
                    msg = "Login required to link social accounts"
                    raise LoginRequiredError(msg, platform=provider_id)
                params["token"] = token
        except (OAuthFlowError, ConfigurationError, LoginRequiredError) as exc:
            self._reject(exc, provider_id)
            raise

        self._state = CallbackState.VALIDATED
        target = self.backend_callback_url(config.provider_id, params)
        logger.info(
            "Callback %s validated, forwarding %s to backend",
            self._flow_id,
            redact_sensitive_data(dict(params)),
        )
        self.navigate(target)
        self._state = CallbackState.RESOLVED
        self.outcome = CallbackOutcome(
            state=self._state,
            provider_id=config.provider_id,
            redirect_url=target,
        )
        return self.outcome

    def _reject(self, exc: SocialinkError, provider_id: str | None) -> None:
        self._state = CallbackState.REJECTED
        logger.warning("Callback %s rejected: %s", self._flow_id, exc)
        self.notify(exc.message)
        self.navigate(self.home_url)
        self.outcome = CallbackOutcome(
            state=self._state,
            provider_id=provider_id,
            redirect_url=self.home_url,
            error=exc.message,
        )
