"""Tests for layered configuration."""

from __future__ import annotations

import logging

from pathlib import Path

import pytest

from pydantic import ValidationError

from socialink.config import (
    SocialinkSettings,
    clear_settings,
    get_settings,
    reload_settings,
)


class TestDefaults:
    """Built-in defaults."""

    def test_defaults(self) -> None:
        settings = SocialinkSettings()
        assert settings.backend.api_url == "http://localhost:5000/api"
        assert settings.backend.request_timeout is None
        assert settings.session.scheme == "cookie"
        assert settings.session.forward_bearer_token is False
        assert settings.storage.backend == "memory"
        assert settings.providers.meta_graph_version == "v18.0"
        assert settings.providers.twitter_client_id == ""
        assert settings.log.level == "WARNING"

    def test_api_url_trailing_slash_stripped(self) -> None:
        settings = SocialinkSettings(backend={"api_url": "https://api.example.com/api/"})
        assert settings.backend.api_url == "https://api.example.com/api"

    def test_invalid_scheme(self) -> None:
        with pytest.raises(ValidationError):
            SocialinkSettings(session={"scheme": "basic"})


class TestEnvironment:
    """Environment variables override defaults."""

    def test_section_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOCIALINK_BACKEND__API_URL", "https://api.example.com/api/")
        monkeypatch.setenv("SOCIALINK_SESSION__SCHEME", "bearer")
        monkeypatch.setenv("SOCIALINK_PROVIDERS__META_APP_ID", "123")
        monkeypatch.setenv("SOCIALINK_BACKEND__REQUEST_TIMEOUT", "7.5")

        settings = SocialinkSettings()

        assert settings.backend.api_url == "https://api.example.com/api"
        assert settings.backend.request_timeout == 7.5
        assert settings.session.scheme == "bearer"
        assert settings.providers.meta_app_id == "123"


class TestTomlFiles:
    """TOML configuration files."""

    def test_socialink_toml(self) -> None:
        Path("socialink.toml").write_text(
            '[providers]\nlinkedin_client_id = "li-from-toml"\n', encoding="utf-8"
        )
        assert SocialinkSettings().providers.linkedin_client_id == "li-from-toml"

    def test_pyproject_tool_section(self) -> None:
        Path("pyproject.toml").write_text(
            '[project]\nname = "app"\n\n[tool.socialink.storage]\nbackend = "keyring"\n',
            encoding="utf-8",
        )
        assert SocialinkSettings().storage.backend == "keyring"

    def test_socialink_toml_overrides_pyproject(self) -> None:
        Path("pyproject.toml").write_text(
            '[tool.socialink.log]\nlevel = "INFO"\n', encoding="utf-8"
        )
        Path("socialink.toml").write_text('[log]\nlevel = "DEBUG"\n', encoding="utf-8")
        assert SocialinkSettings().log.level == "DEBUG"

    def test_explicit_config_file(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        config = tmp_path / "custom.toml"
        config.write_text('[backend]\nhome_url = "https://app.example.com/"\n', encoding="utf-8")
        monkeypatch.setenv("SOCIALINK_CONFIG_FILE", str(config))
        assert SocialinkSettings().backend.home_url == "https://app.example.com/"

    def test_user_config(self, tmp_path: Path) -> None:
        user_dir = tmp_path / ".config" / "socialink"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('[session]\ntoken_key = "jwt"\n', encoding="utf-8")
        assert SocialinkSettings().session.token_key == "jwt"

    def test_invalid_toml_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        Path("socialink.toml").write_text("[providers\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="socialink"):
            settings = SocialinkSettings()
        assert settings.providers.meta_app_id == ""
        assert "Ignoring unreadable config file" in caplog.text

    def test_env_overrides_toml_section(self, monkeypatch: pytest.MonkeyPatch) -> None:
        Path("socialink.toml").write_text(
            '[backend]\napi_url = "http://toml/api"\nhome_url = "http://toml/"\n',
            encoding="utf-8",
        )
        monkeypatch.setenv("SOCIALINK_BACKEND__API_URL", "http://env/api")

        settings = SocialinkSettings()

        assert settings.backend.api_url == "http://env/api"
        assert settings.backend.home_url == "http://toml/"

    def test_env_overrides_pyproject(self, monkeypatch: pytest.MonkeyPatch) -> None:
        Path("pyproject.toml").write_text(
            '[tool.socialink.session]\nscheme = "bearer"\ntoken_key = "jwt"\n',
            encoding="utf-8",
        )
        monkeypatch.setenv("SOCIALINK_SESSION__SCHEME", "cookie")

        settings = SocialinkSettings()

        assert settings.session.scheme == "cookie"
        assert settings.session.token_key == "jwt"

    def test_init_kwargs_override_toml(self) -> None:
        Path("socialink.toml").write_text('[session]\nscheme = "bearer"\n', encoding="utf-8")
        assert SocialinkSettings(session={"scheme": "cookie"}).session.scheme == "cookie"


class TestExport:
    """TOML, env and table output."""

    def test_to_toml_redacts_redis_url(self) -> None:
        settings = SocialinkSettings(storage={"redis_url": "redis://:hunter2@cache:6379/0"})
        output = settings.to_toml()
        assert "[backend]" in output
        assert "[providers]" in output
        assert 'redis_url = "********"' in output
        assert "hunter2" not in output
        assert "request_timeout" not in output
        assert "forward_bearer_token = false" in output

    def test_to_env(self) -> None:
        output = SocialinkSettings().to_env()
        assert 'export SOCIALINK_BACKEND__API_URL="http://localhost:5000/api"' in output
        assert 'export SOCIALINK_SESSION__SCHEME="cookie"' in output
        assert 'export SOCIALINK_STORAGE__REDIS_URL="********"' in output

    def test_show(self) -> None:
        output = SocialinkSettings().show()
        for section in ("Backend", "Session", "Storage", "Providers", "Logging"):
            assert section in output
        assert "localhost:6379" not in output


class TestCaching:
    """get_settings caching."""

    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_clear_and_reload(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        clear_settings()
        assert get_settings() is not first

        monkeypatch.setenv("SOCIALINK_LOG__LEVEL", "DEBUG")
        assert reload_settings().log.level == "DEBUG"
