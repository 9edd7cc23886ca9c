"""OAuth2 provider configuration and authorization URL construction.

Providers are data, not code: each supported platform is a
:class:`ProviderConfig` entry in a :class:`ProviderRegistry`, and a single
generic builder composes the authorization-dialog URL from it.
"""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import logging

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from ..exceptions import ConfigurationError
from .pkce import PKCEChallenge, verifier_storage_key


if TYPE_CHECKING:
    from ..config import ProviderSettings
    from .state import StateTokenManager
    from .storage import ClientStorage


logger = logging.getLogger("socialink.auth")

# Parameters owned by the builder; ``context`` may not override them.
_RESERVED_PARAMS = frozenset(
    {
        "response_type",
        "client_id",
        "redirect_uri",
        "scope",
        "state",
        "code_challenge",
        "code_challenge_method",
    }
)


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable OAuth client configuration for one provider.

    Attributes
    ----------
    provider_id : str
        Registry key, also the last path segment of the callback URL.
    authorization_endpoint : str
        The provider's authorization dialog URL.
    client_id : str
        OAuth client id (empty when unconfigured).
    redirect_uri : str
        Registered redirect URI (empty when unconfigured).
    scopes : tuple[str, ...]
        Requested scopes, in order.
    requires_pkce : bool
        Whether the provider needs a PKCE challenge.
    scope_separator : str
        How scopes are joined (" " for most providers, "," for Meta).
    extra_params : tuple[tuple[str, str], ...]
        Fixed provider-specific query parameters, as name/value pairs.
    """

    provider_id: str
    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    scopes: tuple[str, ...] = ()
    requires_pkce: bool = False
    scope_separator: str = " "
    extra_params: tuple[tuple[str, str], ...] = ()

    @property
    def is_configured(self) -> bool:
        """True when both client id and redirect URI are set."""
        return bool(self.client_id and self.redirect_uri)

    @property
    def scope(self) -> str:
        """Scopes joined with the provider's separator."""
        return self.scope_separator.join(self.scopes)


INSTAGRAM_SCOPES = (
    "public_profile",
    "email",
    "pages_show_list",
    "instagram_basic",
    "instagram_manage_insights",
    "business_management",
)
FACEBOOK_SCOPES = (
    "public_profile",
    "email",
    "pages_show_list",
    "pages_read_engagement",
    "pages_manage_posts",
)
LINKEDIN_SCOPES = ("openid", "profile", "email")
YOUTUBE_SCOPES = ("https://www.googleapis.com/auth/youtube.readonly",)
SNAPCHAT_SCOPES = (
    "https://auth.snapchat.com/oauth2/api/user.display_name",
    "https://auth.snapchat.com/oauth2/api/user.bitmoji.avatar",
)
TWITTER_SCOPES = ("tweet.read", "users.read", "offline.access")


def _meta_redirect(base: str, platform: str) -> str:
    if not base:
        return ""
    return f"{base.rstrip('/')}/{platform}"


def default_provider_configs(settings: ProviderSettings) -> list[ProviderConfig]:
    """Build the supported provider table from settings."""
    meta_dialog = f"https://www.facebook.com/{settings.meta_graph_version}/dialog/oauth"
    return [
        ProviderConfig(
            provider_id="instagram",
            authorization_endpoint=meta_dialog,
            client_id=settings.meta_app_id,
            redirect_uri=_meta_redirect(settings.meta_redirect_base, "instagram"),
            scopes=INSTAGRAM_SCOPES,
            scope_separator=",",
        ),
        ProviderConfig(
            provider_id="facebook",
            authorization_endpoint=meta_dialog,
            client_id=settings.meta_app_id,
            redirect_uri=_meta_redirect(settings.meta_redirect_base, "facebook"),
            scopes=FACEBOOK_SCOPES,
            scope_separator=",",
        ),
        ProviderConfig(
            provider_id="linkedin",
            authorization_endpoint="https://www.linkedin.com/oauth/v2/authorization",
            client_id=settings.linkedin_client_id,
            redirect_uri=settings.linkedin_redirect_uri,
            scopes=LINKEDIN_SCOPES,
        ),
        ProviderConfig(
            provider_id="youtube",
            authorization_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
            client_id=settings.youtube_client_id,
            redirect_uri=settings.youtube_redirect_uri,
            scopes=YOUTUBE_SCOPES,
            extra_params=(("access_type", "offline"), ("prompt", "consent")),
        ),
        ProviderConfig(
            provider_id="snapchat",
            authorization_endpoint="https://accounts.snapchat.com/accounts/oauth2/auth",
            client_id=settings.snapchat_client_id,
            redirect_uri=settings.snapchat_redirect_uri,
            scopes=SNAPCHAT_SCOPES,
            requires_pkce=True,
        ),
        ProviderConfig(
            provider_id="twitter",
            authorization_endpoint="https://twitter.com/i/oauth2/authorize",
            client_id=settings.twitter_client_id,
            redirect_uri=settings.twitter_redirect_uri,
            scopes=TWITTER_SCOPES,
            requires_pkce=True,
        ),
    ]


class ProviderRegistry:
    """Per-provider configuration plus the authorization URL builder.

    Parameters
    ----------
    state_tokens : StateTokenManager
        Issues the ``state`` parameter for each authorization request.
    storage : ClientStorage
        Where PKCE verifiers are persisted, keyed by provider id.
    configs : iterable of ProviderConfig, optional
        Initial provider entries.
    pkce_factory : callable, optional
        Produces a :class:`PKCEChallenge`; defaults to
        ``PKCEChallenge.generate``.
    """

    def __init__(
        self,
        state_tokens: StateTokenManager,
        storage: ClientStorage,
        configs: list[ProviderConfig] | None = None,
        pkce_factory: Callable[[], PKCEChallenge] = PKCEChallenge.generate,
    ) -> None:
        self.state_tokens = state_tokens
        self.storage = storage
        self.pkce_factory = pkce_factory
        self._configs: dict[str, ProviderConfig] = {}
        for config in configs or []:
            self.register(config)

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings,
        state_tokens: StateTokenManager,
        storage: ClientStorage,
    ) -> ProviderRegistry:
        """Create a registry holding the default provider table."""
        return cls(state_tokens, storage, default_provider_configs(settings))

    def register(self, config: ProviderConfig) -> None:
        """Add or replace a provider entry."""
        self._configs[config.provider_id] = config

    def get(self, provider_id: str) -> ProviderConfig:
        """Look up a provider.

        Raises
        ------
        ConfigurationError
            If the provider is not registered.
        """
        try:
            return self._configs[provider_id]
        except KeyError:
            msg = f"Unknown provider '{provider_id}'"
            raise ConfigurationError(msg, provider_id=provider_id) from None

    def provider_ids(self) -> list[str]:
        """Registered provider ids, in registration order."""
        return list(self._configs)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._configs

    async def build_authorization_url(
        self,
        provider_id: str,
        context: Mapping[str, str] | None = None,
    ) -> str:
        """Build the authorization-dialog URL for a provider.

        Issues a new state token and, for PKCE providers, persists a fresh
        verifier under the provider-scoped key. Navigating to the returned
        URL is the caller's job.

        Parameters
        ----------
        provider_id : str
            The registered provider.
        context : Mapping[str, str], optional
            Extra query parameters (e.g. a login hint). Builder-owned
            parameters cannot be overridden.

        Returns
        -------
        str
            The full authorization URL.

        Raises
        ------
        ConfigurationError
            If the provider is unknown or lacks a client id or redirect URI.
            Nothing is written to storage in that case.
        """
        config = self.get(provider_id)
        if not config.is_configured:
            missing = "Client id" if not config.client_id else "Redirect URI"
            msg = f"{missing} for '{provider_id}' is not configured"
            raise ConfigurationError(msg, provider_id=provider_id)

        params: dict[str, str] = {
            "response_type": "code",
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "scope": config.scope,
        }
        params.update(config.extra_params)
        params["state"] = await self.state_tokens.issue()

        if config.requires_pkce:
            pkce = self.pkce_factory()
            await self.storage.set(verifier_storage_key(provider_id), pkce.verifier)
            params["code_challenge"] = pkce.challenge
            params["code_challenge_method"] = pkce.method

        if context:
            params.update({k: v for k, v in context.items() if k not in _RESERVED_PARAMS})

        logger.debug(
            "Built authorization URL for %s (pkce=%s)", provider_id, config.requires_pkce
        )
        return f"{config.authorization_endpoint}?{urlencode(params)}"
