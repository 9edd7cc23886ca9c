"""Per-platform account probes and manual resync."""

# pylint: disable=logging-too-many-args

from __future__ import annotations

import asyncio
import logging

from collections.abc import Iterable

from pydantic import ValidationError

from .backend import BackendClient
from .exceptions import (
    LoginRequiredError,
    NotConnectedError,
    SocialinkError,
    TransientFetchError,
)
from .types import AccountSnapshot, NotConnected, ProbeBatch, SyncAcknowledgement


logger = logging.getLogger("socialink")


class AccountSyncClient(BackendClient):
    """Triggers resyncs and fetches account snapshots from the backend.

    Probes for different platforms are independent and may run
    concurrently. The only state they share is :attr:`generation`, a counter
    bumped after a sync or login so that callers know to re-probe.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._generation = 0

    @property
    def generation(self) -> int:
        """Current refresh generation."""
        return self._generation

    def bump_generation(self) -> int:
        """Ask for a fresh batch of probes. Returns the new generation."""
        self._generation += 1
        return self._generation

    async def _require_login(self, platform: str) -> None:
        if not await self.session.is_authenticated():
            raise LoginRequiredError("Please login first.", platform=platform)

    async def trigger_sync(self, platform: str) -> SyncAcknowledgement:
        """Ask the backend to resync a platform.

        Parameters
        ----------
        platform : str
            Platform id, e.g. ``"instagram"``.

        Returns
        -------
        SyncAcknowledgement
            Success acknowledgement; the refresh generation is bumped.

        Raises
        ------
        LoginRequiredError
            No session; no request was sent.
        UnauthenticatedError
            The backend rejected the session (401).
        NotConnectedError
            The platform has no linked account (404).
        TransientFetchError
            Any other failure.
        """
        await self._require_login(platform)
        resp = await self._send("POST", f"/social/sync/{platform}", platform=platform)
        await self._raise_for_status(resp, f"Failed to sync {platform}", platform=platform)
        self.bump_generation()
        logger.info("Synced %s", platform)
        return SyncAcknowledgement(platform=platform, payload=self._json_object(resp))

    async def fetch_snapshot(self, platform: str) -> AccountSnapshot | NotConnected:
        """Fetch the normalized account snapshot for a platform.

        A platform without a linked account is not an error: it yields
        :class:`NotConnected`.

        Raises
        ------
        LoginRequiredError
            No session; no request was sent.
        UnauthenticatedError
            The backend rejected the session (401); the local session is
            expired.
        TransientFetchError
            Any other failure, carrying the backend message.
        """
        await self._require_login(platform)
        resp = await self._send("GET", f"/social/account/{platform}", platform=platform)
        try:
            await self._raise_for_status(
                resp, f"Failed to fetch {platform} account details.", platform=platform
            )
        except NotConnectedError as exc:
            return NotConnected(platform=platform, message=exc.message)

        body = self._json_object(resp)
        body.setdefault("platform", platform)
        try:
            return AccountSnapshot.model_validate(body)
        except ValidationError as exc:
            msg = f"Malformed {platform} account details"
            raise TransientFetchError(msg, platform=platform, status_code=resp.status_code) from exc

    async def probe_all(self, platforms: Iterable[str]) -> ProbeBatch:
        """Probe several platforms concurrently.

        Classified errors are captured per platform instead of failing the
        batch.
        """
        platforms = list(platforms)
        batch = ProbeBatch(generation=self._generation)

        async def _probe(platform: str) -> None:
            try:
                batch.results[platform] = await self.fetch_snapshot(platform)
            except SocialinkError as exc:
                logger.warning("Probe for %s failed: %s", platform, exc)
                batch.results[platform] = exc

        await asyncio.gather(*(_probe(p) for p in platforms))
        return batch
