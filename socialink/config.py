"""Configuration system for socialink using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.socialink] section (project-level)
3. ./socialink.toml (project-level, explicit)
4. ~/.config/socialink/config.toml (user-level, overrides project)
5. SOCIALINK_CONFIG_FILE (explicit file override)
6. Environment variables (highest priority)

Environment variables use the SOCIALINK_ prefix with nested delimiter __.
Example: SOCIALINK_BACKEND__API_URL, SOCIALINK_PROVIDERS__META_APP_ID
"""

from __future__ import annotations

import logging
import os
import sys
import tomllib

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


logger = logging.getLogger("socialink")


def _user_config_path() -> Path:
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", "~"))
    else:
        base = Path("~/.config")
    return (base / "socialink" / "config.toml").expanduser()


def _find_config_files() -> list[Path]:
    """Existing configuration files, lowest precedence first."""
    candidates = [Path("pyproject.toml"), Path("socialink.toml"), _user_config_path()]
    explicit = os.environ.get("SOCIALINK_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit))
    return [path for path in candidates if path.exists()]


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            data = tomllib.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", config_file, exc)
            continue

        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("socialink", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _TomlFilesSource(PydanticBaseSettingsSource):
    """Settings source over the merged TOML configuration files."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._data = _load_toml_config()

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self._data.items()
            if name in self.settings_cls.model_fields
        }


# Field names that contain sensitive data and must be redacted in output.
_SENSITIVE_FIELDS: set[str] = {
    "redis_url",
}

_REDACTED = "********"


class BackendSettings(BaseSettings):
    """Backend API settings.

    Environment prefix: SOCIALINK_BACKEND__
    Example: SOCIALINK_BACKEND__API_URL=https://api.example.com/api
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALINK_BACKEND__",
        extra="ignore",
    )

    api_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the backend API (auth and social routes live below it)",
    )
    home_url: str = Field(
        default="http://localhost:3000/",
        description="Where to navigate after a rejected callback",
    )
    request_timeout: float | None = Field(
        default=None,
        description="Per-request timeout in seconds (None waits indefinitely)",
    )

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class SessionSettings(BaseSettings):
    """Session scheme settings.

    Environment prefix: SOCIALINK_SESSION__
    Example: SOCIALINK_SESSION__SCHEME=bearer
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALINK_SESSION__",
        extra="ignore",
    )

    scheme: Literal["cookie", "bearer"] = Field(
        default="cookie",
        description="Active session scheme: cookie (default) or bearer (legacy)",
    )
    token_key: str = Field(
        default="token",
        description="Storage key holding the bearer token (bearer scheme)",
    )
    indicator_cookie: str = Field(
        default="token",
        description="Name of the cookie whose presence marks a live session (cookie scheme)",
    )
    forward_bearer_token: bool = Field(
        default=False,
        description=(
            "Legacy: forward the bearer token as a 'token' query parameter to the "
            "backend callback. Exposes the token in URLs and logs."
        ),
    )


class StorageSettings(BaseSettings):
    """Client storage settings for state tokens, PKCE verifiers and bearer tokens.

    Environment prefix: SOCIALINK_STORAGE__
    Example: SOCIALINK_STORAGE__BACKEND=keyring
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALINK_STORAGE__",
        extra="ignore",
    )

    backend: Literal["memory", "keyring", "redis"] = Field(
        default="memory",
        description="Storage backend: memory, keyring, or redis",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (redis backend)",
    )
    prefix: str = Field(
        default="socialink",
        description="Key prefix for namespacing (redis backend)",
    )
    service_name: str = Field(
        default="socialink",
        description="Keyring service name (keyring backend)",
    )


class ProviderSettings(BaseSettings):
    """OAuth client settings per social provider.

    Environment prefix: SOCIALINK_PROVIDERS__
    Example: SOCIALINK_PROVIDERS__META_APP_ID=1234567890
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALINK_PROVIDERS__",
        extra="ignore",
    )

    # Meta (Instagram and Facebook share the app)
    meta_app_id: str = ""
    meta_redirect_base: str = Field(
        default="",
        description="Redirect base; the platform name is appended as the last path segment",
    )
    meta_graph_version: str = "v18.0"

    linkedin_client_id: str = ""
    linkedin_redirect_uri: str = ""

    youtube_client_id: str = ""
    youtube_redirect_uri: str = ""

    snapchat_client_id: str = ""
    snapchat_redirect_uri: str = ""

    twitter_client_id: str = ""
    twitter_redirect_uri: str = ""


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: SOCIALINK_LOG__
    Example: SOCIALINK_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALINK_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


_SECTIONS: list[tuple[str, str, str]] = [
    ("Backend", "backend", "BACKEND"),
    ("Session", "session", "SESSION"),
    ("Storage", "storage", "STORAGE"),
    ("Providers", "providers", "PROVIDERS"),
    ("Logging", "log", "LOG"),
]


class SocialinkSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: SOCIALINK_, sections nested with ``__``
    (SOCIALINK_BACKEND__API_URL sets ``backend.api_url``).

    Sources, highest priority first: init kwargs, environment, TOML files,
    built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALINK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    backend: BackendSettings = Field(default_factory=BackendSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, _TomlFilesSource(settings_cls))

    def _dump_sections(self) -> dict[str, Any]:
        return self.model_dump(
            exclude={attr: _SENSITIVE_FIELDS for _, attr, _ in _SECTIONS},
        )

    def _redacted_fields(self, attr_name: str) -> list[str]:
        section_cls = type(getattr(self, attr_name))
        return sorted(_SENSITIVE_FIELDS & section_cls.model_fields.keys())

    def to_toml(self) -> str:
        """Export settings as TOML string."""
        lines = ["# socialink configuration", "# Generated by: socialink config --toml", ""]
        all_data = self._dump_sections()

        for _, attr_name, _ in _SECTIONS:
            lines.append(f"[{attr_name}]")
            for field_name, field_value in all_data.get(attr_name, {}).items():
                if field_value is None:
                    continue
                if isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                elif isinstance(field_value, str):
                    value_str = f'"{field_value}"'
                else:
                    value_str = str(field_value)
                lines.append(f"{field_name} = {value_str}")
            lines.extend(f'{rn} = "{_REDACTED}"' for rn in self._redacted_fields(attr_name))
            lines.append("")

        return "\n".join(lines)

    def to_env(self) -> str:
        """Export settings as shell environment variables."""
        lines = ["# socialink environment variables", "# Generated by: socialink config --env", ""]
        all_data = self._dump_sections()

        for _, attr_name, env_prefix in _SECTIONS:
            for field_name, field_value in all_data.get(attr_name, {}).items():
                if field_value is None:
                    continue
                env_name = f"SOCIALINK_{env_prefix}__{field_name.upper()}"
                if isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                else:
                    value_str = str(field_value)
                lines.append(f'export {env_name}="{value_str}"')
            for redacted_name in self._redacted_fields(attr_name):
                env_name = f"SOCIALINK_{env_prefix}__{redacted_name.upper()}"
                lines.append(f'export {env_name}="{_REDACTED}"')

        return "\n".join(lines)

    def show(self) -> str:
        """Format settings as a readable table."""
        lines = ["socialink configuration", "=" * 60, ""]
        all_data = self._dump_sections()

        for display_name, attr_name, _ in _SECTIONS:
            lines.append(f"\n{display_name}")
            lines.append("-" * 40)
            for field_name, field_value in all_data.get(attr_name, {}).items():
                value_str = str(field_value)
                if len(value_str) > 50:
                    value_str = value_str[:47] + "..."
                lines.append(f"  {field_name:22} = {value_str}")
            lines.extend(f"  {rn:22} = {_REDACTED}" for rn in self._redacted_fields(attr_name))

        return "\n".join(lines)


@lru_cache(maxsize=1)
def get_settings() -> SocialinkSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return SocialinkSettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> SocialinkSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
