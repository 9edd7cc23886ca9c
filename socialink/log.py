"""Logging utilities for socialink.

Modules log through ``logging.getLogger("socialink")`` or the
``socialink.auth`` child. This module owns the stream handler and the
helpers that keep OAuth secrets out of log records.
"""

from __future__ import annotations

import logging
import sys

from typing import Any


LOGGER_NAME = "socialink"
DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"
REDACTED = "[REDACTED]"


class _LoggerHolder:
    """Holder for the configured socialink logger."""

    instance: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the socialink logger, attaching a stderr handler on first use.

    Returns
    -------
    logging.Logger
        The package logger, level WARNING until configured otherwise.
    """
    if _LoggerHolder.instance is not None:
        return _LoggerHolder.instance

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)

    _LoggerHolder.instance = logger
    return logger


def set_level(level: int | str) -> None:
    """Set the socialink log level.

    Parameters
    ----------
    level : int or str
        A ``logging`` level or its name, case-insensitive.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    get_logger().setLevel(level)


def configure(level: int | str, fmt: str | None = None) -> None:
    """Apply the ``log`` settings section.

    Parameters
    ----------
    level : int or str
        The logging level.
    fmt : str, optional
        A ``logging.Formatter`` format string for socialink's handlers.
    """
    set_level(level)
    if fmt:
        for handler in get_logger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def enable_debug() -> None:
    """Log storage writes, built URLs and callback handling."""
    set_level(logging.DEBUG)


# Substrings of keys whose values never reach a log record
_SENSITIVE_KEYS = frozenset(
    {
        "secret",
        "password",
        "token",
        "code",
        "state",
        "verifier",
        "credential",
    }
)


def _is_sensitive(key: object) -> bool:
    name = str(key).lower()
    return any(part in name for part in _SENSITIVE_KEYS)


def redact_sensitive_data(
    data: dict[str, Any] | list[Any] | str | None, max_depth: int = 5
) -> dict[str, Any] | list[Any] | str | None:
    """Return a copy of ``data`` that is safe to log.

    Values under keys containing a sensitive fragment (``code``, ``state``,
    ``token``, ``verifier``, ...) are replaced with ``"[REDACTED]"``. Dicts
    and lists are walked recursively; anything else is returned unchanged.

    Parameters
    ----------
    data : dict or list or str or None
        Query parameters, request bodies or similar.
    max_depth : int, optional
        Recursion limit; deeper values become ``"[MAX_DEPTH]"`` (default 5).

    Returns
    -------
    dict or list or str or None
        The redacted copy.
    """
    if max_depth <= 0:
        return "[MAX_DEPTH]"
    if isinstance(data, dict):
        return {
            k: REDACTED if _is_sensitive(k) else redact_sensitive_data(v, max_depth - 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, max_depth - 1) for item in data]
    return data
