"""OAuth2 connect flow for socialink.

Provides client storage, anti-forgery state, PKCE, the provider registry,
session stores and callback reconciliation.
"""

from __future__ import annotations

from .callback import CallbackReconciler
from .pkce import PKCEChallenge, compute_challenge, verifier_storage_key
from .providers import ProviderConfig, ProviderRegistry, default_provider_configs
from .session import (
    BearerSessionStore,
    CookieSessionStore,
    SessionStore,
    create_session_store,
)
from .state import StateTokenManager
from .storage import (
    ClientStorage,
    KeyringStorage,
    MemoryStorage,
    RedisStorage,
    get_storage,
    reset_storage,
)


__all__ = [
    "BearerSessionStore",
    "CallbackReconciler",
    "ClientStorage",
    "CookieSessionStore",
    "KeyringStorage",
    "MemoryStorage",
    "PKCEChallenge",
    "ProviderConfig",
    "ProviderRegistry",
    "RedisStorage",
    "SessionStore",
    "StateTokenManager",
    "compute_challenge",
    "create_session_store",
    "default_provider_configs",
    "get_storage",
    "reset_storage",
    "verifier_storage_key",
]
