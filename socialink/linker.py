"""Connect actions and the post-link return."""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import logging

from collections.abc import Mapping
from typing import TYPE_CHECKING
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from .auth.callback import Navigator, Notifier, log_notification, open_in_browser


if TYPE_CHECKING:
    from .auth.providers import ProviderRegistry
    from .sync import AccountSyncClient


logger = logging.getLogger("socialink")

SYNC_STATUS_PARAM = "sync_status"


class AccountLinker:
    """Starts connect flows and recognises the backend's return redirect.

    Parameters
    ----------
    registry : ProviderRegistry
        Builds authorization URLs.
    sync_client : AccountSyncClient
        Its refresh generation is bumped when a link completes.
    navigate : callable, optional
        Performs a full navigation. Defaults to opening the system browser.
    notify : callable, optional
        Shows a message to the user. Defaults to logging a warning.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        sync_client: AccountSyncClient,
        navigate: Navigator | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self.registry = registry
        self.sync_client = sync_client
        self.navigate = navigate or open_in_browser
        self.notify = notify or log_notification

    async def connect(self, provider_id: str, context: Mapping[str, str] | None = None) -> str:
        """Phase 1 of a connect flow: persist continuation state and navigate away.

        Returns the authorization URL that was opened. Configuration errors
        propagate before anything is stored or opened.
        """
        url = await self.registry.build_authorization_url(provider_id, context)
        logger.info("Opening %s authorization dialog", provider_id)
        self.navigate(url)
        return url

    def handle_return(self, url: str) -> tuple[str | None, str]:
        """Inspect the URL the backend redirected to after linking.

        When it carries ``sync_status``, the user is notified, the refresh
        generation is bumped and the parameter is stripped.

        Returns
        -------
        tuple[str or None, str]
            The sync status (or None) and the cleaned URL.
        """
        parsed = urlparse(url)
        query = parse_qsl(parsed.query, keep_blank_values=True)
        status = next((v for k, v in query if k == SYNC_STATUS_PARAM), None)
        if not status:
            return None, url

        self.notify(f"Sync Success: {status}")
        self.sync_client.bump_generation()
        remaining = [(k, v) for k, v in query if k != SYNC_STATUS_PARAM]
        cleaned = urlunparse(parsed._replace(query=urlencode(remaining)))
        return status, cleaned
