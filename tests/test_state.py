"""Tests for anti-forgery state tokens."""

from __future__ import annotations

import asyncio
import logging

import pytest

from socialink.auth.state import STATE_KEY, StateTokenManager
from socialink.auth.storage import MemoryStorage


def _run(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


class TestIssue:
    """Tests for issuing state tokens."""

    def test_issue_persists_token(
        self, state_tokens: StateTokenManager, storage: MemoryStorage
    ) -> None:
        token = _run(state_tokens.issue())
        assert token
        assert _run(storage.get(STATE_KEY)) == token

    def test_tokens_are_unique(self, state_tokens: StateTokenManager) -> None:
        assert _run(state_tokens.issue()) != _run(state_tokens.issue())

    def test_issue_overwrites_previous(self, state_tokens: StateTokenManager) -> None:
        """Only the most recently issued token is pending."""

        async def scenario() -> tuple[str, str, bool]:
            first = await state_tokens.issue()
            second = await state_tokens.issue()
            return first, second, await state_tokens.verify(first)

        first, second, first_ok = _run(scenario())
        assert first != second
        assert first_ok is False


class TestVerify:
    """Tests for verifying and consuming state tokens."""

    def test_matching_token_verifies_once(self, state_tokens: StateTokenManager) -> None:
        async def scenario() -> tuple[bool, bool]:
            token = await state_tokens.issue()
            return await state_tokens.verify(token), await state_tokens.verify(token)

        first, replay = _run(scenario())
        assert first is True
        assert replay is False

    def test_mismatch_consumes_token(
        self, state_tokens: StateTokenManager, storage: MemoryStorage
    ) -> None:
        async def scenario() -> bool:
            await state_tokens.issue()
            return await state_tokens.verify("forged")

        assert _run(scenario()) is False
        assert _run(storage.get(STATE_KEY)) is None

    @pytest.mark.parametrize("received", [None, ""])
    def test_missing_received_state_fails(
        self, state_tokens: StateTokenManager, storage: MemoryStorage, received: str | None
    ) -> None:
        async def scenario() -> bool:
            await state_tokens.issue()
            return await state_tokens.verify(received)

        assert _run(scenario()) is False
        assert _run(storage.get(STATE_KEY)) is None

    def test_nothing_pending(
        self, state_tokens: StateTokenManager, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="socialink.auth"):
            assert _run(state_tokens.verify("anything")) is False
        assert "No pending OAuth state" in caplog.text

    def test_custom_key(self, storage: MemoryStorage) -> None:
        manager = StateTokenManager(storage, key="flow_state")
        token = _run(manager.issue())
        assert _run(storage.get("flow_state")) == token
        assert _run(storage.get(STATE_KEY)) is None
