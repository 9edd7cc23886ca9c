"""Pluggable client storage backends.

Holds the values a connect flow must carry across a full navigation:
the anti-forgery state, per-provider PKCE verifiers and (legacy scheme)
the bearer token. Provides ClientStorage ABC and concrete implementations
for in-memory, OS keyring, and Redis-backed persistence.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from abc import ABC, abstractmethod
from typing import Any


logger = logging.getLogger("socialink.auth")


class ClientStorage(ABC):
    """Abstract base class for client-side key/value storage.

    All methods are async to support both local and network-backed stores.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Read the value stored under ``key``.

        Parameters
        ----------
        key : str
            Storage key.

        Returns
        -------
        str or None
            The stored value, or None if absent.
        """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value.

        Parameters
        ----------
        key : str
            Storage key.
        value : str
            Value to persist.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete the value under ``key``. Missing keys are ignored.

        Parameters
        ----------
        key : str
            Storage key.
        """

    @abstractmethod
    async def take(self, key: str) -> str | None:
        """Read and delete the value under ``key`` as one step.

        A second ``take`` of the same key returns None.

        Parameters
        ----------
        key : str
            Storage key.

        Returns
        -------
        str or None
            The value that was stored, or None if absent.
        """

    async def exists(self, key: str) -> bool:
        """Check whether a value is stored under ``key``."""
        return await self.get(key) is not None


class MemoryStorage(ClientStorage):
    """In-memory storage for tests and single-process use."""

    def __init__(self) -> None:
        """Initialize the memory storage."""
        self._values: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        """Read a value from memory."""
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        """Store a value in memory."""
        async with self._lock:
            self._values[key] = value

    async def delete(self, key: str) -> None:
        """Delete a value from memory."""
        async with self._lock:
            self._values.pop(key, None)

    async def take(self, key: str) -> str | None:
        """Pop a value from memory."""
        async with self._lock:
            return self._values.pop(key, None)

    async def keys(self) -> list[str]:
        """List stored keys."""
        async with self._lock:
            return list(self._values.keys())


class KeyringStorage(ClientStorage):
    """OS keyring-backed storage that survives process restarts.

    Lets the callback of a connect flow be handled by a different process
    than the one that started it. Requires the ``keyring`` package.

    Parameters
    ----------
    service_name : str
        Service name for keyring storage (default "socialink").
    """

    def __init__(self, service_name: str = "socialink") -> None:
        """Initialize the keyring storage."""
        try:
            import keyring as _keyring
        except ImportError:
            msg = "Install keyring for persistent client storage: pip install socialink[keyring]"
            raise ImportError(msg) from None
        self._service_name = service_name
        self._keyring = _keyring
        self._lock = asyncio.Lock()

    async def _call(self, func: Any, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, self._service_name, *args)

    async def get(self, key: str) -> str | None:
        """Read a value from the OS keyring."""
        return await self._call(self._keyring.get_password, key)

    async def set(self, key: str, value: str) -> None:
        """Store a value in the OS keyring."""
        await self._call(self._keyring.set_password, key, value)

    async def delete(self, key: str) -> None:
        """Delete a value from the OS keyring."""
        from keyring.errors import PasswordDeleteError

        try:
            await self._call(self._keyring.delete_password, key)
        except PasswordDeleteError:
            logger.debug("Keyring entry %s already absent", key)

    async def take(self, key: str) -> str | None:
        """Read then delete a value from the OS keyring."""
        async with self._lock:
            value = await self.get(key)
            if value is not None:
                await self.delete(key)
            return value


class RedisStorage(ClientStorage):
    """Redis-backed storage for multi-process deployments.

    ``take`` uses ``GETDEL`` so read and delete are a single atomic command.

    Parameters
    ----------
    redis_url : str
        Redis connection URL.
    prefix : str
        Key prefix for namespacing (default "socialink").
    pool_size : int
        Connection pool size (default 10).
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "socialink",
        pool_size: int = 10,
    ) -> None:
        """Initialize the Redis storage."""
        try:
            from redis.asyncio import Redis as RedisClient
        except ImportError:
            msg = "Redis backend requires the 'redis' package. Install with: pip install socialink[redis]"
            raise ImportError(msg) from None

        self._prefix = prefix
        self._redis: Any = RedisClient.from_url(
            redis_url,
            max_connections=pool_size,
            decode_responses=True,
        )

    def _key(self, key: str) -> str:
        """Build a Redis key with prefix."""
        return f"{self._prefix}:client:{key}"

    async def get(self, key: str) -> str | None:
        """Read a value from Redis."""
        return await self._redis.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        """Store a value in Redis."""
        await self._redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        """Delete a value from Redis."""
        await self._redis.delete(self._key(key))

    async def take(self, key: str) -> str | None:
        """Atomically read and delete a value in Redis."""
        return await self._redis.getdel(self._key(key))

    async def exists(self, key: str) -> bool:
        """Check if a value exists in Redis."""
        return bool(await self._redis.exists(self._key(key)))

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()


_storage_instance: ClientStorage | None = None
_storage_lock = threading.Lock()


def get_storage(backend: str = "memory", **kwargs: Any) -> ClientStorage:
    """Factory function for client storage.

    Returns a singleton instance. Call ``reset_storage()`` to clear
    the cached instance (e.g. in tests).

    Parameters
    ----------
    backend : str
        Storage backend: "memory", "keyring", or "redis".
    **kwargs : Any
        Additional keyword arguments passed to the storage constructor.

    Returns
    -------
    ClientStorage
        A configured storage instance.
    """
    global _storage_instance  # noqa: PLW0603

    with _storage_lock:
        if _storage_instance is not None:
            return _storage_instance

        if backend == "memory":
            _storage_instance = MemoryStorage()
        elif backend == "keyring":
            _storage_instance = KeyringStorage(
                service_name=kwargs.get("service_name", "socialink"),
            )
        elif backend == "redis":
            _storage_instance = RedisStorage(
                redis_url=kwargs.get("redis_url", "redis://localhost:6379/0"),
                prefix=kwargs.get("prefix", "socialink"),
                pool_size=kwargs.get("pool_size", 10),
            )
        else:
            msg = f"Unknown storage backend: {backend}"
            raise ValueError(msg)

        return _storage_instance


def reset_storage() -> None:
    """Reset the singleton storage instance."""
    global _storage_instance  # noqa: PLW0603

    with _storage_lock:
        _storage_instance = None
