"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

from typing import TYPE_CHECKING

import pytest

from socialink.auth.providers import ProviderRegistry
from socialink.auth.state import StateTokenManager
from socialink.auth.storage import MemoryStorage, reset_storage
from socialink.config import ProviderSettings, clear_settings
from socialink.log import get_logger


if TYPE_CHECKING:
    from collections.abc import Generator


# Bind the stream handler to the session-wide stderr before any test
# swaps sys.stderr out.
get_logger()


APP_URL = "https://app.example.com"


@pytest.fixture(autouse=True)
def _isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: os.PathLike
) -> Generator[None, None, None]:
    """Keep config files, env vars and singletons from leaking between tests."""
    for name in list(os.environ):
        if name.startswith("SOCIALINK_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_storage()
    clear_settings()
    yield
    reset_storage()
    clear_settings()


@pytest.fixture()
def provider_settings() -> ProviderSettings:
    """Provider settings with every default provider configured."""
    return ProviderSettings(
        meta_app_id="meta-app-123",
        meta_redirect_base=f"{APP_URL}/social/callback",
        linkedin_client_id="li-client",
        linkedin_redirect_uri=f"{APP_URL}/social/callback/linkedin",
        youtube_client_id="yt-client",
        youtube_redirect_uri=f"{APP_URL}/social/callback/youtube",
        snapchat_client_id="snap-client",
        snapchat_redirect_uri=f"{APP_URL}/social/callback/snapchat",
        twitter_client_id="tw-client",
        twitter_redirect_uri=f"{APP_URL}/social/callback/twitter",
    )


@pytest.fixture()
def storage() -> MemoryStorage:
    """A fresh in-memory client storage."""
    return MemoryStorage()


@pytest.fixture()
def state_tokens(storage: MemoryStorage) -> StateTokenManager:
    """State token manager over the test storage."""
    return StateTokenManager(storage)


@pytest.fixture()
def registry(
    provider_settings: ProviderSettings,
    state_tokens: StateTokenManager,
    storage: MemoryStorage,
) -> ProviderRegistry:
    """Registry holding the default, fully configured provider table."""
    return ProviderRegistry.from_settings(provider_settings, state_tokens, storage)
