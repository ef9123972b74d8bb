"""
Durable key-value storage for carts.

Backends store raw strings; the engine owns (de)serialization so a corrupt
record is detected in one place.
"""
import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from storefront import config
from storefront.db import TTL, RedisKeys, get_redis
from storefront.errors import ERROR_STORAGE_UNAVAILABLE, CartStorageError


class CartStorage(ABC):
    """Async key-value store holding serialized carts."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; absent keys are not an error."""


class MemoryCartStorage(CartStorage):
    """Dict-backed storage for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileCartStorage(CartStorage):
    """
    One JSON file per key under a directory.

    The local equivalent of browser storage for a desktop or CLI process.
    Writes go to a temporary file that is renamed into place, so a crash
    mid-write never leaves a truncated cart behind.
    """

    def __init__(self, directory: str | os.PathLike = config.CART_STORAGE_DIR) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    def _write(self, key: str, value: str) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, self._path(key))
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    def _delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


class RedisCartStorage(CartStorage):
    """
    Upstash Redis storage for server-side sessions.

    TTL is refreshed on every write so abandoned carts expire.
    """

    def __init__(self, redis=None, ttl: Optional[int] = None) -> None:
        self._redis = redis  # Lazy initialization
        self.ttl = TTL.CART if ttl is None else ttl

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise CartStorageError(f"Redis not available: {e}") from e
        return self._redis

    @staticmethod
    def _key(key: str) -> str:
        return RedisKeys.cart_key(key)

    async def get(self, key: str) -> Optional[str]:
        try:
            data = await self.redis.get(self._key(key))
        except CartStorageError:
            raise
        except Exception as e:
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        return data or None

    async def set(self, key: str, value: str) -> None:
        try:
            if self.ttl > 0:
                await self.redis.set(self._key(key), value, ex=self.ttl)
            else:
                await self.redis.set(self._key(key), value)
        except CartStorageError:
            raise
        except Exception as e:
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except CartStorageError:
            raise
        except Exception as e:
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e


def create_cart_storage(backend: Optional[str] = None) -> CartStorage:
    """
    Build the storage backend named by CART_STORAGE_BACKEND.

    Args:
        backend: Override for the configured backend (memory, file, redis)

    Raises:
        ValueError: Unknown backend name
    """
    name = (backend or config.CART_STORAGE_BACKEND).lower()
    if name == "memory":
        return MemoryCartStorage()
    if name == "file":
        return FileCartStorage(config.CART_STORAGE_DIR)
    if name == "redis":
        return RedisCartStorage()
    raise ValueError(f"Unknown cart storage backend: {name!r} (expected memory, file or redis)")
