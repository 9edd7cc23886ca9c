"""Single-use anti-forgery state tokens."""

from __future__ import annotations

import logging
import secrets

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .storage import ClientStorage


logger = logging.getLogger("socialink.auth")

STATE_KEY = "oauth_state"


class StateTokenManager:
    """Issues and verifies the OAuth ``state`` parameter.

    Only the most recently issued token is kept: issuing again overwrites
    it. Tokens have no expiry; an abandoned token stays valid until it is
    consumed or overwritten.

    Parameters
    ----------
    storage : ClientStorage
        Where the pending token is persisted between redirect-out and
        redirect-back.
    key : str
        Storage key for the pending token.
    """

    def __init__(self, storage: ClientStorage, key: str = STATE_KEY) -> None:
        self.storage = storage
        self.key = key

    async def issue(self) -> str:
        """Generate, persist and return a fresh state token."""
        token = secrets.token_urlsafe(32)
        await self.storage.set(self.key, token)
        return token

    async def verify(self, received: str | None) -> bool:
        """Consume the pending token and compare it with ``received``.

        The pending token is deleted whatever the outcome, so a replayed
        state never matches.
        """
        expected = await self.storage.take(self.key)
        if expected is None:
            logger.warning("No pending OAuth state to verify against")
            return False
        if not received:
            return False
        return secrets.compare_digest(expected, received)
