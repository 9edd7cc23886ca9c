"""socialink - link social media accounts to a backend via OAuth2.

Builds provider authorization URLs, validates the provider redirect
(anti-forgery state and PKCE), forwards it to the backend and reads back
the linked account snapshots.
"""

from __future__ import annotations

from .app import Socialink
from .auth import (
    CallbackReconciler,
    ClientStorage,
    PKCEChallenge,
    ProviderConfig,
    ProviderRegistry,
    SessionStore,
    StateTokenManager,
    get_storage,
)
from .backend import AuthClient
from .config import SocialinkSettings, get_settings
from .exceptions import (
    AccountError,
    ConfigurationError,
    CsrfMismatchError,
    LoginRequiredError,
    NotConnectedError,
    OAuthFlowError,
    PkceVerifierMissingError,
    ProviderCallbackError,
    SocialinkError,
    TransientFetchError,
    UnauthenticatedError,
)
from .linker import AccountLinker
from .log import enable_debug
from .sync import AccountSyncClient
from .types import (
    AccountSnapshot,
    CallbackOutcome,
    CallbackState,
    NotConnected,
    ProbeBatch,
    SessionScheme,
    SyncAcknowledgement,
)


__version__ = "0.1.0"

__all__ = [
    "AccountError",
    "AccountLinker",
    "AccountSnapshot",
    "AccountSyncClient",
    "AuthClient",
    "CallbackOutcome",
    "CallbackReconciler",
    "CallbackState",
    "ClientStorage",
    "ConfigurationError",
    "CsrfMismatchError",
    "LoginRequiredError",
    "NotConnected",
    "NotConnectedError",
    "OAuthFlowError",
    "PKCEChallenge",
    "PkceVerifierMissingError",
    "ProbeBatch",
    "ProviderCallbackError",
    "ProviderConfig",
    "ProviderRegistry",
    "SessionScheme",
    "SessionStore",
    "Socialink",
    "SocialinkError",
    "SocialinkSettings",
    "StateTokenManager",
    "SyncAcknowledgement",
    "TransientFetchError",
    "UnauthenticatedError",
    "__version__",
    "enable_debug",
    "get_settings",
    "get_storage",
]
