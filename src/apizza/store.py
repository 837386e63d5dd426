"""Persistent key-value store for cached resources and saved orders.

:class:`KeyValueStore` is the four-operation contract the rest of apizza
depends on (``put``, ``get``, ``delete``, ``get_all``). Two implementations
are provided:

* :class:`DiskStore` -- durable storage in a :class:`diskcache.Cache`
  directory (SQLite plus value files). Each ``put``/``delete`` is a single
  SQLite statement, so readers never see a half-written value, and
  ``get_all`` runs inside one transaction to return a consistent snapshot.
  Eviction is disabled: entries live until they are deleted.
* :class:`MemoryStore` -- a lock-guarded dict for library callers that do
  not want files on disk.

Backing failures (I/O errors, database corruption, lock timeouts) surface
as :class:`~apizza.exceptions.StoreUnavailableError`.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import diskcache

from apizza.exceptions import StoreKeyNotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


class KeyValueStore(ABC):
    """Durable mapping from ``str`` keys to ``bytes`` values."""

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any existing value."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the value for *key*.

        Raises:
            StoreKeyNotFoundError: If *key* does not exist.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*. Deleting a missing key is not an error."""

    @abstractmethod
    def get_all(self) -> dict[str, bytes]:
        """Return every entry as a new dict."""

    def close(self) -> None:
        """Release any resources held by the store."""

    def __enter__(self) -> KeyValueStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class MemoryStore(KeyValueStore):
    """In-process store; contents are lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def get(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._data[key]
            except KeyError:
                raise StoreKeyNotFoundError(f"Key not found: {key}") from None

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def get_all(self) -> dict[str, bytes]:
        with self._lock:
            return dict(self._data)


class DiskStore(KeyValueStore):
    """Key-value store backed by a :class:`diskcache.Cache` directory.

    Args:
        directory: Directory holding the store's SQLite database and value
            files. Created if it does not exist.
        timeout: Seconds to wait for the SQLite lock before giving up.

    Raises:
        StoreUnavailableError: If the directory or database cannot be opened.

    Example::

        with DiskStore(get_cache_dir() / "apizza.db") as store:
            store.put("user_order_friday", b"{...}")
            raw = store.get("user_order_friday")
    """

    def __init__(self, directory: str | Path, timeout: float = 60.0) -> None:
        self._directory = Path(directory)
        try:
            self._cache: diskcache.Cache | None = diskcache.Cache(
                str(self._directory),
                timeout=timeout,
                eviction_policy="none",
            )
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(
                f"Cannot open store at {self._directory}: {exc}"
            ) from exc
        logger.debug("Opened store at %s", self._directory)

    @property
    def directory(self) -> Path:
        """The directory holding the store's files."""
        return self._directory

    def put(self, key: str, value: bytes) -> None:
        cache = self._require_open()
        try:
            cache.set(key, bytes(value))
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"Cannot write '{key}': {exc}") from exc

    def get(self, key: str) -> bytes:
        cache = self._require_open()
        try:
            value = cache.get(key, default=None, retry=True)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"Cannot read '{key}': {exc}") from exc
        if value is None:
            raise StoreKeyNotFoundError(f"Key not found: {key}")
        return value

    def delete(self, key: str) -> None:
        cache = self._require_open()
        try:
            cache.delete(key, retry=True)
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"Cannot delete '{key}': {exc}") from exc

    def get_all(self) -> dict[str, bytes]:
        cache = self._require_open()
        try:
            with cache.transact(retry=True):
                entries: dict[str, bytes] = {}
                for key in cache.iterkeys():
                    value = cache.get(key, default=None)
                    if value is not None:
                        entries[key] = value
                return entries
        except _STORE_ERRORS as exc:
            raise StoreUnavailableError(f"Cannot list store entries: {exc}") from exc

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def _require_open(self) -> diskcache.Cache:
        if self._cache is None:
            raise StoreUnavailableError(f"Store at {self._directory} is closed")
        return self._cache
